"""Service monitors, their history and the shapes the API reports them in."""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .common import Common
from .rule import CycleTransferStats

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_INTERVAL = 30


class TaskType(enum.IntEnum):
    """Kinds of task the dashboard sends to agents."""

    HTTP_GET = 1
    ICMP_PING = 2
    TCP_PING = 3
    COMMAND = 4
    TERMINAL = 5
    UPGRADE = 6
    KEEPALIVE = 7
    TERMINAL_GRPC = 8
    NAT = 9
    REPORT_HOST_INFO_DEPRECATED = 10
    FM = 11


class ServiceCover(enum.IntEnum):
    """Which servers a service monitor runs on."""

    ALL = 0
    IGNORE_ALL = 1


def _decode_ids(raw: str) -> list[int]:
    value = json.loads(raw)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("expected a JSON array of ids")
    ids = []
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int) or item < 0:
            raise ValueError(f"invalid id {item!r}")
        ids.append(item)
    return ids


def _decode_skip_servers(raw: str) -> dict[int, bool]:
    value = json.loads(raw)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("expected a JSON object of server ids")
    result: dict[int, bool] = {}
    for key, flag in value.items():
        if not isinstance(flag, bool):
            raise ValueError(f"invalid flag {flag!r} for server {key}")
        server_id = int(key)
        if server_id < 0:
            raise ValueError(f"invalid server id {key}")
        result[server_id] = flag
    return result


@dataclass
class Service(Common):
    """A service monitor: a target probed periodically by agents."""

    name: str = ""
    type: int = 0
    target: str = ""
    skip_servers_raw: str = ""
    duration: int = 0
    notify: bool = False
    notification_group_id: int = 0
    cover: int = ServiceCover.ALL

    enable_trigger_task: bool = False
    enable_show_in_service: bool = False
    fail_trigger_tasks_raw: str = "[]"
    recover_trigger_tasks_raw: str = "[]"

    fail_trigger_tasks: list[int] = field(default_factory=list)
    recover_trigger_tasks: list[int] = field(default_factory=list)

    min_latency: float = 0.0
    max_latency: float = 0.0
    latency_notify: bool = False

    skip_servers: dict[int, bool] = field(default_factory=dict)
    cron_job_id: int = 0

    def cron_spec(self) -> str:
        """Return the schedule for probing; a zero interval becomes 30 seconds."""
        if self.duration == 0:
            self.duration = DEFAULT_SERVICE_INTERVAL
        return f"@every {self.duration}s"

    def before_save(self) -> None:
        """Encode the skip list and task lists into their stored text form."""
        self.skip_servers_raw = json.dumps(
            {str(key): value for key, value in self.skip_servers.items()}, sort_keys=True
        )
        self.fail_trigger_tasks_raw = json.dumps(list(self.fail_trigger_tasks))
        self.recover_trigger_tasks_raw = json.dumps(list(self.recover_trigger_tasks))

    def after_find(self) -> None:
        """Decode the stored text form.

        A bad skip list is logged and stops decoding; bad task lists raise ValueError.
        """
        self.skip_servers = {}
        try:
            self.skip_servers = _decode_skip_servers(self.skip_servers_raw)
        except ValueError as exc:
            logger.warning("Service.after_find: %s", exc)
            return
        self.fail_trigger_tasks = _decode_ids(self.fail_trigger_tasks_raw)
        self.recover_trigger_tasks = _decode_ids(self.recover_trigger_tasks_raw)


def is_service_sentinel_needed(task_type: int) -> bool:
    """Tell whether results of this task type feed the service monitor."""
    return task_type not in (
        TaskType.COMMAND,
        TaskType.TERMINAL_GRPC,
        TaskType.UPGRADE,
        TaskType.KEEPALIVE,
    )


@dataclass
class ServiceForm:
    name: str = ""
    target: str = ""
    type: int = 0
    cover: int = 0
    notify: bool = False
    duration: int = 0
    min_latency: float = 0.0
    max_latency: float = 0.0
    latency_notify: bool = False
    enable_trigger_task: bool = False
    enable_show_in_service: bool = False
    fail_trigger_tasks: list[int] = field(default_factory=list)
    recover_trigger_tasks: list[int] = field(default_factory=list)
    skip_servers: dict[int, bool] = field(default_factory=dict)
    notification_group_id: int = 0


@dataclass
class ServiceResponseItem:
    """Availability figures of one service over the last thirty days."""

    service_name: str = ""
    current_up: int = 0
    current_down: int = 0
    total_up: int = 0
    total_down: int = 0
    delay: list[float] | None = None
    up: list[int] | None = None
    down: list[int] | None = None

    def total_uptime(self) -> float:
        """Return the share of successful checks as a percentage."""
        total = self.total_up + self.total_down
        if total == 0:
            return 0.0
        return self.total_up / total * 100


@dataclass
class ServiceResponse:
    services: dict[int, ServiceResponseItem] = field(default_factory=dict)
    cycle_transfer_stats: dict[int, CycleTransferStats] = field(default_factory=dict)


@dataclass
class ServiceHistory:
    """One aggregated record of probe results."""

    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    service_id: int = 0
    server_id: int = 0
    avg_delay: float = 0.0
    up: int = 0
    down: int = 0
    data: str = ""


@dataclass
class ServiceInfos:
    service_id: int = 0
    server_id: int = 0
    service_name: str = ""
    server_name: str = ""
    created_at: list[int] = field(default_factory=list)
    avg_delay: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form used by the API."""
        return {
            "monitor_id": self.service_id,
            "server_id": self.server_id,
            "monitor_name": self.service_name,
            "server_name": self.server_name,
            "created_at": list(self.created_at),
            "avg_delay": list(self.avg_delay),
        }
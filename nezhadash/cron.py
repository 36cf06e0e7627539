"""Scheduled and alert-triggered tasks run on servers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime

from .common import Common

CRON_COVER_IGNORE_ALL = 0
CRON_COVER_ALL = 1
CRON_COVER_ALERT_TRIGGER = 2

CRON_TYPE_CRON_TASK = 0
CRON_TYPE_TRIGGER_TASK = 1


@dataclass
class Cron(Common):
    """A task run on a schedule or when an alert fires."""

    name: str = ""
    task_type: int = CRON_TYPE_CRON_TASK
    scheduler: str = ""
    command: str = ""
    servers: list[int] = field(default_factory=list)
    push_successful: bool = False
    notification_group_id: int = 0
    last_executed_at: datetime | None = None
    last_result: bool = False
    cover: int = CRON_COVER_IGNORE_ALL

    cron_job_id: int = 0
    servers_raw: str = ""

    def before_save(self) -> None:
        """Encode the server list into its stored text form."""
        self.servers_raw = json.dumps(list(self.servers))

    def after_find(self) -> None:
        """Decode the stored server list; malformed JSON raises ValueError."""
        value = json.loads(self.servers_raw)
        if value is None:
            self.servers = []
            return
        if not isinstance(value, list):
            raise ValueError("expected a JSON array of server ids")
        servers = []
        for item in value:
            if isinstance(item, bool) or not isinstance(item, int) or item < 0:
                raise ValueError(f"invalid server id {item!r}")
            servers.append(item)
        self.servers = servers


@dataclass
class CronForm:
    task_type: int = CRON_TYPE_CRON_TASK
    name: str = ""
    scheduler: str = ""
    command: str = ""
    servers: list[int] = field(default_factory=list)
    cover: int = CRON_COVER_IGNORE_ALL
    push_successful: bool = False
    notification_group_id: int = 0
"""Alert rule conditions and the cycle-based transfer accounting they use."""

from __future__ import annotations

import enum
import math
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from .host import Host, HostState
from .server import Server

MIN_RECHECK_SECONDS = 180
MAX_RECHECK_SECONDS = 1800
OFFLINE_GRACE_SECONDS = 6

_UNIT_STEPS: dict[str, tuple[int, int, int]] = {
    "year": (1, 0, 0),
    "month": (0, 1, 0),
    "week": (0, 0, 7),
    "day": (0, 0, 1),
}

_CYCLE_COLUMNS = {
    "transfer_in_cycle": "`in`",
    "transfer_out_cycle": "`out`",
    "transfer_all_cycle": "`in`+`out`",
}


class Cover(enum.IntEnum):
    """Which servers a rule applies to."""

    ALL = 0
    IGNORE_ALL = 1


@dataclass
class CycleTransferStats:
    """Per-server traffic totals for the current transfer cycle of one alert."""

    name: str = ""
    from_: datetime | None = None
    to: datetime | None = None
    max: int = 0
    min: int = 0
    server_name: dict[int, str] = field(default_factory=dict)
    transfer: dict[int, int] = field(default_factory=dict)
    next_update: dict[int, datetime] = field(default_factory=dict)


def percentage(used: int, total: int) -> float:
    """Return used as a percentage of total, or 0 when total is 0."""
    if total == 0:
        return 0
    return used * 100 / total


def add_date(moment: datetime, years: int, months: int, days: int) -> datetime:
    """Add calendar years, months and days, letting overflowing days roll over."""
    total_months = (moment.year + years) * 12 + (moment.month - 1) + months
    year, month_index = divmod(total_months, 12)
    base = moment.replace(year=year, month=month_index + 1, day=1)
    return base + timedelta(days=moment.day - 1 + days)


def _default_now(moment: datetime) -> datetime:
    return datetime.now(moment.tzinfo) if moment.tzinfo is not None else datetime.now()


def _sub_snapshot(value: int, snapshot: int) -> int:
    return max(value - snapshot, 0)


@dataclass
class Rule:
    """One condition of an alert rule."""

    type: str = ""
    min: float = 0.0
    max: float = 0.0
    cycle_start: datetime | None = None
    cycle_interval: int = 0
    cycle_unit: str = ""
    duration: int = 0
    cover: int = Cover.ALL
    ignore: dict[int, bool] = field(default_factory=dict)

    next_transfer_at: dict[int, datetime] = field(default_factory=dict, compare=False, repr=False)
    last_cycle_status: dict[int, bool] = field(default_factory=dict, compare=False, repr=False)

    def is_transfer_duration_rule(self) -> bool:
        """Tell whether this rule watches traffic over a repeating cycle."""
        return self.type.endswith("_cycle")

    def _cycle_bounds(self, now: datetime | None) -> tuple[datetime, datetime]:
        if self.cycle_start is None:
            raise ValueError("cycle_start is not set")
        if self.cycle_interval < 1:
            raise ValueError("cycle_interval need to be at least 1")
        start = self.cycle_start
        if now is None:
            now = _default_now(start)
        interval = int(self.cycle_interval)

        step = _UNIT_STEPS.get(self.cycle_unit.lower())
        if step is None:
            seconds = 3600 * interval
            origin = math.floor(start.timestamp())
            elapsed = math.floor(now.timestamp()) - origin
            periods = abs(elapsed) // seconds * (1 if elapsed >= 0 else -1)
            begin_ts = origin + periods * seconds
            return (
                datetime.fromtimestamp(begin_ts, tz=start.tzinfo),
                datetime.fromtimestamp(begin_ts + seconds, tz=start.tzinfo),
            )

        years, months, days = (part * interval for part in step)
        following = add_date(start, years, months, days)
        while now > following:
            start = following
            following = add_date(following, years, months, days)
        return start, following

    def transfer_duration_start(self, now: datetime | None = None) -> datetime:
        """Return when the transfer cycle containing now began."""
        return self._cycle_bounds(now)[0]

    def transfer_duration_end(self, now: datetime | None = None) -> datetime:
        """Return when the transfer cycle containing now ends."""
        return self._cycle_bounds(now)[1]

    def _out_of_range(self, value: float) -> bool:
        return (self.max > 0 and value > self.max) or (self.min > 0 and value < self.min)

    def _transferred_since_cycle_start(self, db: Any, column: str, server_id: int) -> float:
        start = self.transfer_duration_start().astimezone(timezone.utc)
        row = db.execute(
            f"SELECT SUM({column}) AS n FROM transfers "
            "WHERE datetime(created_at) >= datetime(?) AND server_id = ?",
            (start.strftime("%Y-%m-%d %H:%M:%S"), server_id),
        ).fetchone()
        return float(row[0] or 0) if row else 0.0

    def _source_value(self, server: Server, db: Any) -> float:
        state = server.state or HostState()
        host = server.host or Host()

        if self.type in _CYCLE_COLUMNS:
            inbound = _sub_snapshot(state.net_in_transfer, server.prev_transfer_in_snapshot)
            outbound = _sub_snapshot(state.net_out_transfer, server.prev_transfer_out_snapshot)
            value = {
                "transfer_in_cycle": inbound,
                "transfer_out_cycle": outbound,
                "transfer_all_cycle": outbound + inbound,
            }[self.type]
            src = float(value)
            if self.cycle_interval != 0 and db is not None:
                src += self._transferred_since_cycle_start(db, _CYCLE_COLUMNS[self.type], server.id)
            return src

        extractors: dict[str, Callable[[], float]] = {
            "cpu": lambda: float(state.cpu),
            "gpu_max": lambda: max(state.gpu, default=0.0),
            "memory": lambda: percentage(state.mem_used, host.mem_total),
            "swap": lambda: percentage(state.swap_used, host.swap_total),
            "disk": lambda: percentage(state.disk_used, host.disk_total),
            "net_in_speed": lambda: float(state.net_in_speed),
            "net_out_speed": lambda: float(state.net_out_speed),
            "net_all_speed": lambda: float(state.net_out_speed + state.net_out_speed),
            "transfer_in": lambda: float(state.net_in_transfer),
            "transfer_out": lambda: float(state.net_out_transfer),
            "transfer_all": lambda: float(state.net_out_transfer + state.net_in_transfer),
            "offline": lambda: (
                0.0 if server.last_active is None else float(math.floor(server.last_active.timestamp()))
            ),
            "load1": lambda: float(state.load_1),
            "load5": lambda: float(state.load_5),
            "load15": lambda: float(state.load_15),
            "tcp_conn_count": lambda: float(state.tcp_conn_count),
            "udp_conn_count": lambda: float(state.udp_conn_count),
            "process_count": lambda: float(state.process_count),
            "temperature_max": lambda: max(
                (t.temperature for t in state.temperatures if t.temperature != 0), default=0.0
            ),
        }
        extractor = extractors.get(self.type)
        return extractor() if extractor else 0.0

    def snapshot(self, cycle_transfer_stats: CycleTransferStats, server: Server, db: Any) -> bool:
        """Evaluate the rule against a server: False when it fails, True when it passes."""
        sid = server.id
        if self.cover == Cover.ALL and self.ignore.get(sid):
            return True
        if self.cover == Cover.IGNORE_ALL and not self.ignore.get(sid):
            return True

        is_cycle = self.is_transfer_duration_rule()
        if is_cycle:
            next_at = self.next_transfer_at.get(sid)
            if next_at is not None and next_at > datetime.now(timezone.utc):
                return self.last_cycle_status.get(sid, False)

        src = self._source_value(server, db)

        if is_cycle:
            seconds = MAX_RECHECK_SECONDS * ((self.max - src) / self.max) if self.max else 0.0
            seconds = max(seconds, MIN_RECHECK_SECONDS)
            self.next_transfer_at[sid] = datetime.now(timezone.utc) + timedelta(seconds=int(seconds))
            self.last_cycle_status[sid] = not self._out_of_range(src)

            stats = cycle_transfer_stats
            stats.server_name[sid] = server.name
            stats.transfer[sid] = int(src)
            stats.next_update[sid] = self.next_transfer_at[sid]
            stats.from_, stats.to = self._cycle_bounds(None)

        if self.type == "offline" and math.floor(time.time()) - src > OFFLINE_GRACE_SECONDS:
            return False
        return not self._out_of_range(src)
"""Alert rules: groups of conditions checked against servers over time."""

from __future__ import annotations

import enum
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .common import Common
from .rule import CycleTransferStats, Rule
from .server import Server

FAIL_RATIO = 0.7


class TriggerMode(enum.IntEnum):
    ALWAYS = 0
    ONETIME = 1


class RuleValidationError(ValueError):
    """An alert rule's conditions are not acceptable."""


def _format_time(moment: datetime) -> str:
    text = moment.isoformat()
    return text[:-6] + "Z" if text.endswith("+00:00") else text


def _parse_time(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


def _rule_to_dict(rule: Rule) -> dict[str, Any]:
    data: dict[str, Any] = {"type": rule.type}
    if rule.min:
        data["min"] = rule.min
    if rule.max:
        data["max"] = rule.max
    if rule.cycle_start is not None:
        data["cycle_start"] = _format_time(rule.cycle_start)
    if rule.cycle_interval:
        data["cycle_interval"] = rule.cycle_interval
    if rule.cycle_unit:
        data["cycle_unit"] = rule.cycle_unit
    if rule.duration:
        data["duration"] = rule.duration
    data["cover"] = int(rule.cover)
    if rule.ignore:
        data["ignore"] = {str(key): value for key, value in rule.ignore.items()}
    return data


def _rule_from_dict(data: dict[str, Any]) -> Rule:
    start = data.get("cycle_start")
    return Rule(
        type=data.get("type", ""),
        min=float(data.get("min", 0)),
        max=float(data.get("max", 0)),
        cycle_start=_parse_time(start) if start else None,
        cycle_interval=int(data.get("cycle_interval", 0)),
        cycle_unit=data.get("cycle_unit", ""),
        duration=int(data.get("duration", 0)),
        cover=int(data.get("cover", 0)),
        ignore={int(key): bool(value) for key, value in (data.get("ignore") or {}).items()},
    )


def _decode_ids(raw: str) -> list[int]:
    value = json.loads(raw)
    return [] if value is None else [int(item) for item in value]


@dataclass
class AlertRule(Common):
    """A named set of rules whose failure triggers notifications and tasks."""

    name: str = ""
    rules_raw: str = ""
    enable: bool | None = None
    trigger_mode: int = TriggerMode.ALWAYS
    notification_group_id: int = 0
    fail_trigger_tasks_raw: str = "[]"
    recover_trigger_tasks_raw: str = "[]"
    rules: list[Rule] = field(default_factory=list)
    fail_trigger_tasks: list[int] = field(default_factory=list)
    recover_trigger_tasks: list[int] = field(default_factory=list)

    def before_save(self) -> None:
        """Encode the rules and task lists into their stored text form."""
        self.rules_raw = json.dumps([_rule_to_dict(rule) for rule in self.rules])
        self.fail_trigger_tasks_raw = json.dumps(list(self.fail_trigger_tasks))
        self.recover_trigger_tasks_raw = json.dumps(list(self.recover_trigger_tasks))

    def after_find(self) -> None:
        """Decode the stored text form; malformed JSON raises ValueError."""
        rules = json.loads(self.rules_raw)
        self.rules = [] if rules is None else [_rule_from_dict(item) for item in rules]
        self.fail_trigger_tasks = _decode_ids(self.fail_trigger_tasks_raw)
        self.recover_trigger_tasks = _decode_ids(self.recover_trigger_tasks_raw)

    def enabled(self) -> bool:
        return self.enable is True

    def snapshot(self, cycle_transfer_stats: CycleTransferStats, server: Server, db: Any) -> list[bool]:
        """Evaluate every rule against the server, in order."""
        return [rule.snapshot(cycle_transfer_stats, server, db) for rule in self.rules]

    def check(self, points: list[list[bool]]) -> tuple[int, bool]:
        """Return the longest rule duration and whether the alert passes.

        The alert fails only when every rule has failed.
        """
        max_duration = 0
        fail_count = 0
        for i, rule in enumerate(self.rules):
            if rule.is_transfer_duration_rule():
                max_duration = max(max_duration, 1)
                if not all(points[i]):
                    fail_count += 1
                continue

            duration = int(rule.duration)
            max_duration = max(max_duration, duration)
            if duration == 0 or len(points) < duration:
                continue
            failed = sum(1 for row in points[-duration:] if not row[i])
            if failed / duration > FAIL_RATIO:
                fail_count += 1
                break
        return max_duration, fail_count != len(self.rules)


@dataclass
class AlertRuleForm:
    name: str = ""
    rules: list[Rule] = field(default_factory=list)
    fail_trigger_tasks: list[int] = field(default_factory=list)
    recover_trigger_tasks: list[int] = field(default_factory=list)
    notification_group_id: int = 0
    trigger_mode: int = TriggerMode.ALWAYS
    enable: bool = False


def validate_rule(rule: AlertRule, now: datetime | None = None) -> None:
    """Raise RuleValidationError if the alert rule's conditions are unusable."""
    if not rule.rules:
        raise RuleValidationError("need to configure at least a single rule")
    for item in rule.rules:
        if not item.is_transfer_duration_rule():
            if item.duration < 3:
                raise RuleValidationError("duration need to be at least 3")
            continue
        if item.cycle_interval < 1:
            raise RuleValidationError("cycle_interval need to be at least 1")
        if item.cycle_start is None:
            raise RuleValidationError("cycle_start is not set")
        current = now if now is not None else (
            datetime.now(item.cycle_start.tzinfo) if item.cycle_start.tzinfo else datetime.now()
        )
        if item.cycle_start > current:
            raise RuleValidationError("cycle_start is a future value")
"""Host description and live state as reported by agents."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    return False


@dataclass
class SensorTemperature:
    name: str = ""
    temperature: float = 0.0


@dataclass
class HostState:
    """A point-in-time reading of a host's resource usage."""

    cpu: float = 0.0
    mem_used: int = 0
    swap_used: int = 0
    disk_used: int = 0
    net_in_transfer: int = 0
    net_out_transfer: int = 0
    net_in_speed: int = 0
    net_out_speed: int = 0
    uptime: int = 0
    load_1: float = 0.0
    load_5: float = 0.0
    load_15: float = 0.0
    tcp_conn_count: int = 0
    udp_conn_count: int = 0
    process_count: int = 0
    temperatures: list[SensorTemperature] = field(default_factory=list)
    gpu: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty fields."""
        result: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if _is_empty(value):
                continue
            if f.name == "temperatures":
                value = [{"Name": t.name, "Temperature": t.temperature} for t in value]
            elif isinstance(value, list):
                value = list(value)
            result[f.name] = value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HostState:
        """Build a state from its JSON form; missing fields take their defaults."""
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            value = data[f.name]
            if f.name == "temperatures":
                value = [
                    SensorTemperature(name=t.get("Name", ""), temperature=t.get("Temperature", 0.0))
                    for t in value
                ]
            elif isinstance(value, list):
                value = list(value)
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass
class Host:
    """Static facts about a host."""

    platform: str = ""
    platform_version: str = ""
    cpu: list[str] = field(default_factory=list)
    mem_total: int = 0
    disk_total: int = 0
    swap_total: int = 0
    arch: str = ""
    virtualization: str = ""
    boot_time: int = 0
    version: str = ""
    gpu: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty fields."""
        result: dict[str, Any] = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if _is_empty(value):
                continue
            result[f.name] = list(value) if isinstance(value, list) else value
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Host:
        """Build a host from its JSON form; missing fields take their defaults."""
        kwargs: dict[str, Any] = {}
        for f in dataclasses.fields(cls):
            if f.name not in data or data[f.name] is None:
                continue
            value = data[f.name]
            kwargs[f.name] = list(value) if isinstance(value, list) else value
        return cls(**kwargs)

    def filter(self) -> Host:
        """Return a copy without the platform version and agent version."""
        return Host(
            platform=self.platform,
            cpu=list(self.cpu),
            mem_total=self.mem_total,
            disk_total=self.disk_total,
            swap_total=self.swap_total,
            arch=self.arch,
            virtualization=self.virtualization,
            boot_time=self.boot_time,
            gpu=list(self.gpu),
        )


@dataclass
class IP:
    ipv4_addr: str = ""
    ipv6_addr: str = ""

    def join(self) -> str:
        """Return both addresses as "v4/v6", or whichever one is set."""
        if self.ipv4_addr and self.ipv6_addr:
            return f"{self.ipv4_addr}/{self.ipv6_addr}"
        if self.ipv4_addr:
            return self.ipv4_addr
        return self.ipv6_addr


@dataclass
class GeoIP:
    ip: IP = field(default_factory=IP)
    country_code: str = ""
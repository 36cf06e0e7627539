"""Monitored servers and the shapes the API uses to show them."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .common import Common
from .host import GeoIP, Host, HostState

logger = logging.getLogger(__name__)


@dataclass
class Server(Common):
    """A server as stored, plus the runtime state its agent reports."""

    name: str = ""
    uuid: str = ""
    note: str = ""
    public_note: str = ""
    display_index: int = 0
    hide_for_guest: bool = False
    enable_ddns: bool = False
    ddns_profiles_raw: str = ""
    ddns_profiles: list[int] = field(default_factory=list)

    host: Host | None = None
    state: HostState | None = None
    geoip: GeoIP | None = None
    last_active: datetime | None = None
    task_stream: Any = None
    prev_transfer_in_snapshot: int = 0
    prev_transfer_out_snapshot: int = 0

    def copy_from_running_server(self, old: Server) -> None:
        """Take over the runtime state of the live instance of this server."""
        self.host = old.host
        self.state = old.state
        self.geoip = old.geoip
        self.last_active = old.last_active
        self.task_stream = old.task_stream
        self.prev_transfer_in_snapshot = old.prev_transfer_in_snapshot
        self.prev_transfer_out_snapshot = old.prev_transfer_out_snapshot

    def after_find(self) -> None:
        """Decode the stored DDNS profile list; a bad value is logged, not raised."""
        if not self.ddns_profiles_raw:
            return
        try:
            profiles = json.loads(self.ddns_profiles_raw)
        except json.JSONDecodeError as exc:
            logger.warning("Server.after_find: %s", exc)
            return
        if profiles is None:
            self.ddns_profiles = []
            return
        if not isinstance(profiles, list) or not all(
            isinstance(p, int) and not isinstance(p, bool) and p >= 0 for p in profiles
        ):
            logger.warning("Server.after_find: invalid ddns profile list %r", self.ddns_profiles_raw)
            return
        self.ddns_profiles = profiles


@dataclass
class StreamServer:
    id: int = 0
    name: str = ""
    public_note: str = ""
    display_index: int = 0
    host: Host | None = None
    state: HostState | None = None
    country_code: str = ""
    last_active: datetime | None = None


@dataclass
class StreamServerData:
    now: int = 0
    servers: list[StreamServer] = field(default_factory=list)


@dataclass
class ServerForm:
    name: str = ""
    note: str = ""
    public_note: str = ""
    display_index: int = 0
    hide_for_guest: bool = False
    enable_ddns: bool = False
    ddns_profiles: list[int] = field(default_factory=list)


@dataclass
class ForceUpdateResponse:
    success: list[int] = field(default_factory=list)
    failure: list[int] = field(default_factory=list)
    offline: list[int] = field(default_factory=list)
"""Shared record types and API envelopes used across the dashboard."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar

API_ERROR_UNAUTHORIZED = 10001

CTX_KEY_AUTHORIZED_USER = "ckau"
CTX_KEY_REAL_IP_STR = "ckri"

T = TypeVar("T")


def _is_empty(value: Any) -> bool:
    """Tell whether a value counts as empty for fields that are left out when empty."""
    if value is None or value is False:
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    if isinstance(value, (str, bytes, list, tuple, dict, set)):
        return len(value) == 0
    return False


def _plain(value: Any) -> Any:
    """Turn a value into plain JSON-ready data."""
    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    return value


def _omit_empty(pairs: dict[str, Any]) -> dict[str, Any]:
    return {key: _plain(value) for key, value in pairs.items() if not _is_empty(value)}


@dataclass
class Common:
    """Fields every stored record carries."""

    id: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class LoginRequest:
    username: str = ""
    password: str = ""


@dataclass
class LoginResponse:
    token: str = ""
    expire: str = ""


@dataclass
class CommonResponse(Generic[T]):
    """The envelope every API reply is wrapped in."""

    success: bool = False
    data: T | None = None
    error: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty fields."""
        return _omit_empty({"success": self.success, "data": self.data, "error": self.error})


@dataclass
class Response:
    code: int = 0
    message: str = ""
    result: Any = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form, leaving out empty fields."""
        return _omit_empty({"code": self.code, "message": self.message, "result": self.result})


@dataclass
class NAT(Common):
    name: str = ""
    server_id: int = 0
    host: str = ""
    domain: str = ""


@dataclass
class NATForm:
    name: str = ""
    server_id: int = 0
    host: str = ""
    domain: str = ""


@dataclass
class User(Common):
    username: str = ""
    password: str = ""


@dataclass
class UserForm:
    username: str = ""
    password: str = ""


@dataclass
class Profile(User):
    login_ip: str = ""


@dataclass
class ProfileForm:
    original_password: str = ""
    new_username: str = ""
    new_password: str = ""


@dataclass
class UserGroup(Common):
    name: str = ""


@dataclass
class UserGroupUser(Common):
    user_group_id: int = 0
    user_id: int = 0


@dataclass
class Transfer(Common):
    server_id: int = 0
    in_: int = 0
    out: int = 0


@dataclass
class ServerGroup(Common):
    name: str = ""


@dataclass
class ServerGroupForm:
    name: str = ""
    servers: list[int] = field(default_factory=list)


@dataclass
class ServerGroupServer(Common):
    server_group_id: int = 0
    server_id: int = 0


@dataclass
class ServerGroupResponseItem:
    group: ServerGroup = field(default_factory=ServerGroup)
    servers: list[int] = field(default_factory=list)


@dataclass
class CreateFMResponse:
    session_id: str = ""


@dataclass
class TerminalForm:
    protocol: str = ""
    server_id: int = 0


@dataclass
class CreateTerminalResponse:
    session_id: str = ""
    server_id: int = 0
    server_name: str = ""
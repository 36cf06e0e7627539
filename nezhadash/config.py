"""Dashboard configuration: loading from environment and YAML, defaults, saving."""

from __future__ import annotations

import dataclasses
import os
import re
import secrets
import string
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

CONFIG_USE_PEER_IP = "NZ::Use-Peer-IP"
CONFIG_COVER_ALL = 1
CONFIG_COVER_IGNORE_ALL = 2

ENV_PREFIX = "NZ_"

DEFAULT_LISTEN_PORT = 8008
DEFAULT_LANGUAGE = "en_US"
DEFAULT_LOCATION = "Asia/Shanghai"
DEFAULT_USER_TEMPLATE = "user-dist"
DEFAULT_ADMIN_TEMPLATE = "admin-dist"
DEFAULT_AVG_PING_COUNT = 2
JWT_SECRET_LENGTH = 1024
AGENT_SECRET_LENGTH = 32

_UINT64_MAX = (1 << 64) - 1
_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

# Integer bounds of fields whose stored form is unsigned or narrow.
_INT_BOUNDS: dict[str, tuple[int, int]] = {
    "listen_port": (0, _UINT64_MAX),
    "ip_change_notification_group_id": (0, _UINT64_MAX),
    "cover": (0, 255),
    "avg_ping_count": (_INT64_MIN, _INT64_MAX),
}

# Fields written out in the JSON form even when empty.
_JSON_ALWAYS = {"language", "site_name", "ip_change_notification_group_id", "cover"}

_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}

_SERVER_ID = re.compile(r"[0-9]+")
_RANDOM_ALPHABET = string.ascii_letters + string.digits


def _random_string(length: int) -> str:
    return "".join(secrets.choice(_RANDOM_ALPHABET) for _ in range(length))


def _file_key(name: str) -> str:
    """Key used in files and environment: the field name without underscores."""
    return name.replace("_", "")


def _env_tree() -> dict[str, Any]:
    tree: dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path = key[len(ENV_PREFIX):].lower().replace("_", ".").split(".")
        node = tree
        for part in path[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        node[path[-1]] = value
    return tree


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    for key, value in overlay.items():
        current = base.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            _merge(current, value)
        else:
            base[key] = value
    return base


def _lookup(data: dict[str, Any], key: str) -> tuple[bool, Any]:
    if key in data:
        return True, data[key]
    for candidate, value in data.items():
        if isinstance(candidate, str) and candidate.lower() == key:
            return True, value
    return False, None


def _decode_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        if value == "" or value in _FALSE_WORDS:
            return False
        if value in _TRUE_WORDS:
            return True
    raise ValueError(f"cannot parse '{name}' as bool: {value!r}")


def _decode_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        number = int(value)
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value)
    elif isinstance(value, str):
        try:
            number = int(value or "0", 0)
        except ValueError as exc:
            raise ValueError(f"cannot parse '{name}' as int: {value!r}") from exc
    else:
        raise ValueError(f"cannot parse '{name}' as int: {value!r}")
    low, high = _INT_BOUNDS.get(name, (_INT64_MIN, _INT64_MAX))
    if not low <= number <= high:
        raise ValueError(f"value of '{name}' out of range: {number}")
    return number


def _decode_str(name: str, value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    raise ValueError(f"cannot parse '{name}' as string: {value!r}")


@dataclass
class FrontendTemplate:
    path: str = ""
    name: str = ""
    repository: str = ""
    author: str = ""
    version: str = ""
    is_admin: bool = False
    is_official: bool = False


@dataclass
class Config:
    """Dashboard settings, read from a YAML file and NZ_ environment variables."""

    debug: bool = False
    real_ip_header: str = ""

    language: str = ""
    site_name: str = ""
    user_template: str = ""
    admin_template: str = ""
    jwt_secret_key: str = ""
    agent_secret_key: str = ""
    listen_port: int = 0
    listen_host: str = ""
    install_host: str = ""
    tls: bool = False
    location: str = ""

    enable_plain_ip_in_notification: bool = False

    enable_ip_change_notification: bool = False
    ip_change_notification_group_id: int = 0
    cover: int = 0
    ignored_ip_notification: str = ""

    ignored_ip_notification_server_ids: dict[int, bool] = field(default_factory=dict)
    avg_ping_count: int = 0
    dns_servers: str = ""

    custom_code: str = ""
    custom_code_dashboard: str = ""

    file_path: str = field(default="", repr=False, compare=False)

    def _settings(self) -> list[dataclasses.Field]:
        return [f for f in dataclasses.fields(self) if f.name != "file_path"]

    def _apply(self, data: dict[str, Any]) -> None:
        for f in self._settings():
            if f.name == "ignored_ip_notification_server_ids":
                continue
            found, value = _lookup(data, _file_key(f.name))
            if not found or value is None:
                continue
            default = getattr(self, f.name)
            if isinstance(default, bool):
                decoded: Any = _decode_bool(f.name, value)
            elif isinstance(default, int):
                decoded = _decode_int(f.name, value)
            else:
                decoded = _decode_str(f.name, value)
            setattr(self, f.name, decoded)

    def read(self, path: str | os.PathLike[str], frontend_templates: list[FrontendTemplate]) -> None:
        """Load settings from the environment and the file, fill in defaults.

        Missing secrets are generated and the file is saved.
        """
        self.file_path = os.fspath(path)
        data = _env_tree()

        if os.path.exists(self.file_path):
            with open(self.file_path, encoding="utf-8") as handle:
                loaded = yaml.safe_load(handle)
            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ValueError(f"{self.file_path}: expected a mapping at the top level")
            _merge(data, loaded)

        self._apply(data)

        if self.listen_port == 0:
            self.listen_port = DEFAULT_LISTEN_PORT
        if self.language == "":
            self.language = DEFAULT_LANGUAGE
        if self.location == "":
            self.location = DEFAULT_LOCATION

        user_valid = any(
            t.path == self.user_template and not t.is_admin for t in frontend_templates
        )
        admin_valid = any(t.path == self.admin_template and t.is_admin for t in frontend_templates)
        if self.user_template == "" or not user_valid:
            self.user_template = DEFAULT_USER_TEMPLATE
        if self.admin_template == "" or not admin_valid:
            self.admin_template = DEFAULT_ADMIN_TEMPLATE
        if self.avg_ping_count == 0:
            self.avg_ping_count = DEFAULT_AVG_PING_COUNT
        if self.cover == 0:
            self.cover = 1

        if self.jwt_secret_key == "":
            self.jwt_secret_key = _random_string(JWT_SECRET_LENGTH)
            self.save()
        if self.agent_secret_key == "":
            self.agent_secret_key = _random_string(AGENT_SECRET_LENGTH)
            self.save()

        self._update_ignored_ip_notification_ids()

    def _update_ignored_ip_notification_ids(self) -> None:
        ids: dict[int, bool] = {}
        for part in self.ignored_ip_notification.split(","):
            if not _SERVER_ID.fullmatch(part):
                continue
            server_id = int(part)
            if 0 < server_id <= _UINT64_MAX:
                ids[server_id] = True
        self.ignored_ip_notification_server_ids = ids

    def _file_form(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for f in self._settings():
            value = getattr(self, f.name)
            if isinstance(value, dict):
                value = dict(value)
            result[_file_key(f.name)] = value
        return result

    def save(self) -> None:
        """Write the settings to the file they were read from."""
        self._update_ignored_ip_notification_ids()
        text = yaml.safe_dump(self._file_form(), sort_keys=False, allow_unicode=True)
        target = Path(self.file_path)
        target.parent.mkdir(mode=0o750, parents=True, exist_ok=True)
        fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form used by the API, leaving out empty optional fields."""
        result: dict[str, Any] = {}
        for f in self._settings():
            value = getattr(self, f.name)
            if f.name not in _JSON_ALWAYS and not value:
                continue
            if isinstance(value, dict):
                value = {str(key): flag for key, flag in value.items()}
            result[f.name] = value
        return result


@dataclass
class SettingForm:
    dns_servers: str = ""
    ignored_ip_notification: str = ""
    ip_change_notification_group_id: int = 0
    cover: int = 0
    site_name: str = ""
    language: str = ""
    install_host: str = ""
    custom_code: str = ""
    custom_code_dashboard: str = ""
    real_ip_header: str = ""
    user_template: str = ""

    tls: bool = False
    enable_ip_change_notification: bool = False
    enable_plain_ip_in_notification: bool = False
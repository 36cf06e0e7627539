"""Blocking of addresses that fail authentication too often."""

from __future__ import annotations

import enum
import ipaddress
import sqlite3
import time
from dataclasses import dataclass

UINT64_MAX = (1 << 64) - 1
BLOCK_EXPONENT = 4
MIN_BLOCK_SECONDS = 3


class BlockReason(enum.IntEnum):
    LOGIN_FAIL = 1
    BRUTE_FORCE_TOKEN = 2
    AGENT_AUTH_FAIL = 3


class WAFBlockedError(Exception):
    """The address is currently blocked."""


@dataclass
class WAF:
    """A record of how often an address has been blocked."""

    table_name = "waf"

    ip: bytes = b""
    count: int = 0
    last_block_reason: int = 0
    last_block_timestamp: int = 0


def ip_to_binary(ip: str) -> bytes:
    """Return the 16-byte form of an address; IPv4 is mapped into IPv6."""
    try:
        address = ipaddress.ip_address(ip)
    except ValueError as exc:
        raise ValueError(f"invalid IP address: {ip!r}") from exc
    if isinstance(address, ipaddress.IPv4Address):
        address = ipaddress.IPv6Address(f"::ffff:{address}")
    return address.packed


def pow_add(x: int, y: int, z: int) -> int:
    """Return x**y + z capped at the largest 64-bit value, and at least z + 3."""
    result = x**y + z
    if result > UINT64_MAX:
        return UINT64_MAX
    return max(result, z + MIN_BLOCK_SECONDS)


def _now(now: int | None) -> int:
    return int(time.time()) if now is None else int(now)


def create_table(db: sqlite3.Connection) -> None:
    """Create the table that holds blocked addresses, if it is missing."""
    with db:
        db.execute(
            "CREATE TABLE IF NOT EXISTS waf ("
            "ip BLOB PRIMARY KEY, "
            "count INTEGER NOT NULL DEFAULT 0, "
            "last_block_reason INTEGER NOT NULL DEFAULT 0, "
            "last_block_timestamp INTEGER NOT NULL DEFAULT 0)"
        )


def check_ip(db: sqlite3.Connection, ip: str, now: int | None = None) -> None:
    """Raise WAFBlockedError while the address is blocked."""
    if ip == "":
        return
    binary = ip_to_binary(ip)
    row = db.execute(
        "SELECT count, last_block_timestamp FROM waf WHERE ip = ? LIMIT 1", (binary,)
    ).fetchone()
    if row is None:
        return
    count, last_block = row
    if pow_add(count, BLOCK_EXPONENT, last_block) > _now(now):
        raise WAFBlockedError("you are blocked by nezha WAF")


def clear_ip(db: sqlite3.Connection, ip: str) -> None:
    """Forget an address's block record."""
    if ip == "":
        return
    binary = ip_to_binary(ip)
    with db:
        db.execute("DELETE FROM waf WHERE ip = ?", (binary,))


def batch_clear_ip(db: sqlite3.Connection, ips: list[str]) -> None:
    """Forget several addresses; entries that are not addresses are skipped."""
    if not ips:
        return
    binaries = []
    for ip in ips:
        try:
            binaries.append(ip_to_binary(ip))
        except ValueError:
            continue
    if not binaries:
        return
    placeholders = ", ".join("?" for _ in binaries)
    with db:
        db.execute(f"DELETE FROM waf WHERE ip IN ({placeholders})", binaries)


def block_ip(db: sqlite3.Connection, ip: str, reason: int, now: int | None = None) -> None:
    """Record one more block of an address."""
    if ip == "":
        return
    binary = ip_to_binary(ip)
    moment = _now(now)
    with db:
        db.execute(
            "INSERT OR IGNORE INTO waf (ip, count, last_block_reason, last_block_timestamp) "
            "VALUES (?, 0, ?, ?)",
            (binary, int(reason), moment),
        )
        db.execute(
            "UPDATE waf SET count = count + 1, last_block_reason = ?, last_block_timestamp = ? "
            "WHERE ip = ?",
            (int(reason), moment, binary),
        )
"""Same-origin checks for WebSocket upgrade requests."""

from __future__ import annotations

from urllib.parse import urlsplit


def equal_ascii_fold(s: str, t: str) -> bool:
    """Compare two strings, ignoring case of ASCII letters only."""
    if len(s) != len(t):
        return False
    for a, b in zip(s, t):
        if a == b:
            continue
        if "A" <= a <= "Z":
            a = chr(ord(a) + 32)
        if "A" <= b <= "Z":
            b = chr(ord(b) + 32)
        if a != b:
            return False
    return True


def _has_control_char(text: str) -> bool:
    return any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in text)


def check_same_origin(origin: str | None, host: str) -> bool:
    """Tell whether an Origin header value names the requested host.

    A request without an Origin header is accepted.
    """
    if origin is None:
        return True
    if _has_control_char(origin):
        return False
    try:
        netloc = urlsplit(origin).netloc
    except ValueError:
        return False
    origin_host = netloc.rpartition("@")[2]
    return equal_ascii_fold(origin_host, host)
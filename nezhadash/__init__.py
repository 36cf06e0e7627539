"""Records, alert rules, WAF blocking and configuration for a server monitoring dashboard."""

__version__ = "0.1.0"

__all__ = [
    "alertrule",
    "common",
    "config",
    "cron",
    "ddns",
    "host",
    "origin",
    "rule",
    "server",
    "service",
    "waf",
]
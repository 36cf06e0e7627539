"""Dynamic DNS profiles and the validation applied when they are edited."""

from __future__ import annotations

import json
from dataclasses import dataclass, field

import idna

from .common import Common

PROVIDER_DUMMY = "dummy"
PROVIDER_WEBHOOK = "webhook"
PROVIDER_CLOUDFLARE = "cloudflare"
PROVIDER_TENCENTCLOUD = "tencentcloud"

PROVIDER_LIST = [PROVIDER_DUMMY, PROVIDER_WEBHOOK, PROVIDER_CLOUDFLARE, PROVIDER_TENCENTCLOUD]

MIN_RETRIES = 1
MAX_RETRIES = 10


class DDNSFormError(ValueError):
    """A DDNS profile form holds unacceptable values."""


@dataclass
class DDNSProfile(Common):
    """Settings for keeping DNS records pointed at a server's address."""

    table_name = "ddns"

    enable_ipv4: bool | None = None
    enable_ipv6: bool | None = None
    max_retries: int = 0
    name: str = ""
    provider: str = ""
    access_id: str = ""
    access_secret: str = ""
    webhook_url: str = ""
    webhook_method: int = 0
    webhook_request_type: int = 0
    webhook_request_body: str = ""
    webhook_headers: str = ""
    domains: list[str] = field(default_factory=list)
    domains_raw: str = ""

    def before_save(self) -> None:
        """Encode the domain list into its stored text form."""
        self.domains_raw = json.dumps(list(self.domains), ensure_ascii=False)

    def after_find(self) -> None:
        """Decode the stored domain list; malformed JSON raises ValueError."""
        value = json.loads(self.domains_raw)
        if value is None:
            self.domains = []
            return
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            raise ValueError("expected a JSON array of domain names")
        self.domains = value


@dataclass
class DDNSForm:
    max_retries: int = 3
    enable_ipv4: bool = False
    enable_ipv6: bool = False
    name: str = ""
    provider: str = ""
    domains: list[str] = field(default_factory=list)
    access_id: str = ""
    access_secret: str = ""
    webhook_url: str = ""
    webhook_method: int = 1
    webhook_request_type: int = 1
    webhook_request_body: str = ""
    webhook_headers: str = ""


def _to_ascii(domain: str) -> str:
    if domain == "":
        return ""
    try:
        return idna.encode(domain, uts46=True).decode("ascii")
    except (idna.IDNAError, UnicodeError) as exc:
        raise DDNSFormError(f"error parsing {domain}: {exc}") from exc


def to_ascii_domains(domains: list[str]) -> list[str]:
    """Convert internationalised domain names to their ASCII form."""
    return [_to_ascii(domain) for domain in domains]


def profile_from_form(form: DDNSForm, profile: DDNSProfile | None = None) -> DDNSProfile:
    """Apply a form to a profile (a new one if none is given) after validating it."""
    if not MIN_RETRIES <= form.max_retries <= MAX_RETRIES:
        raise DDNSFormError("the retry count must be an integer between 1 and 10")

    domains = to_ascii_domains(form.domains)

    if profile is None:
        profile = DDNSProfile()
    profile.name = form.name
    profile.enable_ipv4 = form.enable_ipv4
    profile.enable_ipv6 = form.enable_ipv6
    profile.max_retries = form.max_retries
    profile.provider = form.provider
    profile.domains = domains
    profile.access_id = form.access_id
    profile.access_secret = form.access_secret
    profile.webhook_url = form.webhook_url
    profile.webhook_method = form.webhook_method
    profile.webhook_request_type = form.webhook_request_type
    profile.webhook_request_body = form.webhook_request_body
    profile.webhook_headers = form.webhook_headers
    return profile
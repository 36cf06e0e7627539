import pytest

from nezhadash.ddns import (
    DDNSForm,
    DDNSFormError,
    DDNSProfile,
    profile_from_form,
    to_ascii_domains,
)


def test_form_defaults():
    form = DDNSForm()
    assert form.max_retries == 3
    assert form.webhook_method == 1
    assert form.webhook_request_type == 1


@pytest.mark.parametrize("retries", [0, 11])
def test_retry_count_out_of_range(retries):
    with pytest.raises(DDNSFormError, match="between 1 and 10"):
        profile_from_form(DDNSForm(max_retries=retries, name="p"))


@pytest.mark.parametrize("retries", [1, 10])
def test_retry_count_bounds_accepted(retries):
    profile = profile_from_form(DDNSForm(max_retries=retries, name="p"))
    assert profile.max_retries == retries


def test_ascii_domains_pass_through():
    assert to_ascii_domains(["example.com", "sub.example.com"]) == [
        "example.com",
        "sub.example.com",
    ]


def test_unicode_domain_converted():
    assert to_ascii_domains(["münchen.de"]) == ["xn--mnchen-3ya.de"]


def test_invalid_domain_raises():
    with pytest.raises(DDNSFormError, match="error parsing -example.com"):
        profile_from_form(DDNSForm(domains=["-example.com"]))


def test_profile_from_form_updates_existing_profile():
    existing = DDNSProfile(id=7, name="old", provider="dummy")
    form = DDNSForm(
        name="new",
        provider="cloudflare",
        enable_ipv4=True,
        domains=["example.com"],
        access_secret="secret",
    )
    profile = profile_from_form(form, existing)
    assert profile is existing
    assert profile.id == 7
    assert profile.name == "new"
    assert profile.provider == "cloudflare"
    assert profile.enable_ipv4 is True
    assert profile.enable_ipv6 is False
    assert profile.domains == ["example.com"]
    assert profile.access_secret == "secret"


def test_domains_round_trip():
    profile = DDNSProfile(domains=["example.com", "a.example.com"])
    profile.before_save()
    loaded = DDNSProfile(domains_raw=profile.domains_raw)
    loaded.after_find()
    assert loaded.domains == ["example.com", "a.example.com"]


def test_domains_invalid_raw_raises():
    with pytest.raises(ValueError):
        DDNSProfile(domains_raw="[1, 2]").after_find()
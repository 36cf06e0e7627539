import os

import pytest
import yaml

from nezhadash.config import Config, FrontendTemplate, SettingForm


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("NZ_"):
            monkeypatch.delenv(key)


def _write(path, data):
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


def test_defaults_for_missing_file(tmp_path):
    path = tmp_path / "data" / "config.yaml"
    conf = Config()
    conf.read(path, [])
    assert conf.listen_port == 8008
    assert conf.language == "en_US"
    assert conf.location == "Asia/Shanghai"
    assert conf.user_template == "user-dist"
    assert conf.admin_template == "admin-dist"
    assert conf.avg_ping_count == 2
    assert conf.cover == 1
    assert len(conf.jwt_secret_key) == 1024
    assert len(conf.agent_secret_key) == 32
    assert path.exists()


def test_generated_secrets_are_saved(tmp_path):
    path = tmp_path / "config.yaml"
    conf = Config()
    conf.read(path, [])
    stored = yaml.safe_load(path.read_text(encoding="utf-8"))
    assert stored["jwtsecretkey"] == conf.jwt_secret_key
    assert stored["agentsecretkey"] == conf.agent_secret_key


def test_values_from_file(tmp_path):
    path = tmp_path / "config.yaml"
    _write(
        path,
        {
            "listenport": 9000,
            "sitename": "Probe",
            "jwtsecretkey": "secret",
            "agentsecretkey": "secret",
            "ignoredipnotification": "1,2,abc,0, 3",
            "tls": True,
        },
    )
    before = path.read_text(encoding="utf-8")
    conf = Config()
    conf.read(path, [])
    assert conf.listen_port == 9000
    assert conf.site_name == "Probe"
    assert conf.jwt_secret_key == "secret"
    assert conf.tls is True
    assert conf.ignored_ip_notification_server_ids == {1: True, 2: True}
    assert path.read_text(encoding="utf-8") == before


def test_keys_match_case_insensitively(tmp_path):
    path = tmp_path / "config.yaml"
    _write(path, {"ListenPort": 9100, "jwtsecretkey": "secret", "agentsecretkey": "secret"})
    conf = Config()
    conf.read(path, [])
    assert conf.listen_port == 9100


def test_environment_and_file_precedence(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    _write(path, {"listenport": 9200, "jwtsecretkey": "secret", "agentsecretkey": "secret"})
    monkeypatch.setenv("NZ_LISTENPORT", "7000")
    monkeypatch.setenv("NZ_DEBUG", "true")
    monkeypatch.setenv("NZ_SITENAME", "FromEnv")
    conf = Config()
    conf.read(path, [])
    assert conf.listen_port == 9200
    assert conf.debug is True
    assert conf.site_name == "FromEnv"


def test_environment_with_underscore_becomes_nested_and_is_ignored(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    _write(path, {"jwtsecretkey": "secret", "agentsecretkey": "secret"})
    monkeypatch.setenv("NZ_SITE_NAME", "Nested")
    conf = Config()
    conf.read(path, [])
    assert conf.site_name == ""


def test_valid_templates_are_kept(tmp_path):
    path = tmp_path / "config.yaml"
    _write(
        path,
        {
            "usertemplate": "theme-a",
            "admintemplate": "theme-b",
            "jwtsecretkey": "secret",
            "agentsecretkey": "secret",
        },
    )
    templates = [
        FrontendTemplate(path="theme-a", is_admin=False),
        FrontendTemplate(path="theme-b", is_admin=True),
    ]
    conf = Config()
    conf.read(path, templates)
    assert conf.user_template == "theme-a"
    assert conf.admin_template == "theme-b"


def test_template_with_wrong_role_falls_back(tmp_path):
    path = tmp_path / "config.yaml"
    _write(
        path,
        {"usertemplate": "theme-b", "jwtsecretkey": "secret", "agentsecretkey": "secret"},
    )
    conf = Config()
    conf.read(path, [FrontendTemplate(path="theme-b", is_admin=True)])
    assert conf.user_template == "user-dist"


def test_save_then_read_round_trip(tmp_path):
    path = tmp_path / "config.yaml"
    conf = Config()
    conf.read(path, [])
    conf.site_name = "Round"
    conf.ignored_ip_notification = "5,6"
    conf.enable_ip_change_notification = True
    conf.dns_servers = "1.1.1.1:53"
    conf.save()

    again = Config()
    again.read(path, [])
    assert again == conf


def test_invalid_number_raises(tmp_path):
    path = tmp_path / "config.yaml"
    _write(path, {"listenport": "abc"})
    with pytest.raises(ValueError):
        Config().read(path, [])


def test_negative_unsigned_value_raises(tmp_path):
    path = tmp_path / "config.yaml"
    _write(path, {"cover": -1})
    with pytest.raises(ValueError):
        Config().read(path, [])


def test_non_mapping_file_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ValueError):
        Config().read(path, [])


def test_to_dict_omits_empty_fields():
    conf = Config(site_name="", language="en_US", cover=0, listen_port=8008)
    data = conf.to_dict()
    assert data["language"] == "en_US"
    assert data["site_name"] == ""
    assert data["cover"] == 0
    assert data["listen_port"] == 8008
    assert "debug" not in data
    assert "file_path" not in data


def test_to_dict_server_ids_as_strings(tmp_path):
    conf = Config(ignored_ip_notification="7")
    conf.file_path = str(tmp_path / "c.yaml")
    conf.save()
    assert conf.to_dict()["ignored_ip_notification_server_ids"] == {"7": True}


def test_setting_form_defaults():
    form = SettingForm(site_name="Site", language="zh-CN")
    assert form.site_name == "Site"
    assert form.tls is False
    assert form.cover == 0
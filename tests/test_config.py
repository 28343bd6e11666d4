"""Test configuration loading and validation"""

from pathlib import Path

import pytest

from content_delivery.core.config import (
    DELIVERY_HOST,
    ENV_ACCESS_TOKEN,
    ENV_ENVIRONMENT,
    ENV_SPACE_ID,
    PREVIEW_HOST,
    load_config,
    parse_config,
)
from content_delivery.core.exceptions import ConfigurationError


class TestParseConfig:
    """Test parse_config() validation and defaults"""

    def test_defaults(self, config, tmp_path):
        assert config.space.space_id == "space1"
        assert config.space.access_token == "token"
        assert config.space.environment == "master"
        assert config.api.host == DELIVERY_HOST
        assert config.api.scheme == "https"
        assert not config.is_preview
        assert not config.api.rate_limiting
        assert config.api.timeout == 30.0
        assert config.storage.database_path == (tmp_path / "store").resolve() / "sync.db"

    def test_preview_host(self, preview_config):
        assert preview_config.is_preview
        assert preview_config.api.host == PREVIEW_HOST

    def test_explicit_host(self, raw_config):
        config = parse_config({**raw_config, "api": {"host": "cdn.eu.example.net"}})
        assert config.api.host == "cdn.eu.example.net"

    @pytest.mark.parametrize("space", [
        {},
        {"id": "space1"},
        {"id": "", "access_token": "token"},
        {"id": "space1", "access_token": 42},
    ])
    def test_space_required(self, raw_config, space):
        with pytest.raises(ConfigurationError):
            parse_config({**raw_config, "space": space})

    @pytest.mark.parametrize("api, field", [
        ({"preview": "yes"}, "api.preview"),
        ({"secure": 1}, "api.secure"),
        ({"requests_per_second": 0}, "api.requests_per_second"),
        ({"requests_per_second": True}, "api.requests_per_second"),
        ({"timeout": -1}, "api.timeout"),
        ({"host": ""}, "api.host"),
    ])
    def test_invalid_api_values(self, raw_config, api, field):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({**raw_config, "api": api})
        assert exc_info.value.details["field"] == field

    def test_section_must_be_mapping(self, raw_config):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_config({**raw_config, "api": ["preview"]})
        assert exc_info.value.details["section"] == "api"

    def test_storage_expands_home(self, raw_config):
        config = parse_config({**raw_config, "storage": {"directory": "~/cds"}})
        assert config.storage.directory == Path("~/cds").expanduser().resolve()

    def test_environment_overrides(self, raw_config):
        config = parse_config(raw_config, environ={
            ENV_SPACE_ID: "other-space",
            ENV_ACCESS_TOKEN: "secret",
        })
        assert config.space.space_id == "other-space"
        assert config.space.access_token == "secret"

    def test_environment_fills_missing_values(self, raw_config):
        config = parse_config(
            {"storage": raw_config["storage"]},
            environ={ENV_SPACE_ID: "space2", ENV_ACCESS_TOKEN: "secret"}
        )
        assert config.space.space_id == "space2"


class TestLoadConfig:
    """Test load_config() file handling"""

    def test_load_file(self, tmp_path, monkeypatch):
        monkeypatch.delenv(ENV_SPACE_ID, raising=False)
        monkeypatch.delenv(ENV_ACCESS_TOKEN, raising=False)
        monkeypatch.delenv(ENV_ENVIRONMENT, raising=False)
        monkeypatch.chdir(tmp_path)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "space:\n"
            "  id: cfexampleapi\n"
            "  access_token: b4c0n73n7fu1\n"
            "api:\n"
            "  rate_limiting: true\n"
            "storage:\n"
            f"  directory: {tmp_path / 'data'}\n",
            encoding="utf-8"
        )

        config = load_config(config_file)

        assert config.space.space_id == "cfexampleapi"
        assert config.api.rate_limiting
        assert config.storage.directory == (tmp_path / "data").resolve()

    def test_default_location(self, tmp_path, monkeypatch):
        monkeypatch.delenv(ENV_SPACE_ID, raising=False)
        monkeypatch.delenv(ENV_ACCESS_TOKEN, raising=False)
        monkeypatch.delenv(ENV_ENVIRONMENT, raising=False)
        monkeypatch.chdir(tmp_path)
        (tmp_path / "config.yaml").write_text(
            "space:\n  id: space1\n  access_token: token\n", encoding="utf-8"
        )

        assert load_config().space.space_id == "space1"

    def test_missing_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigurationError) as exc_info:
            load_config(tmp_path / "nope.yaml")
        assert "not found" in exc_info.value.message

    def test_invalid_yaml(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("space: [unclosed\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(config_file)

    def test_not_a_mapping(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n", encoding="utf-8")
        with pytest.raises(ConfigurationError):
            load_config(config_file)

"""Test the cds command line"""

import pytest
from click.testing import CliRunner

from content_delivery import cli as cli_module
from content_delivery.cli import cli
from content_delivery.core.config import ENV_ACCESS_TOKEN, ENV_ENVIRONMENT, ENV_SPACE_ID
from content_delivery.core.exceptions import TransportError


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    """config.yaml pointing the store at tmp_path/store"""
    for name in (ENV_SPACE_ID, ENV_ACCESS_TOKEN, ENV_ENVIRONMENT):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        "space:\n"
        "  id: space1\n"
        "  access_token: token\n"
        "storage:\n"
        f"  directory: \"{tmp_path / 'store'}\"\n",
        encoding="utf-8"
    )
    return path


@pytest.fixture
def fake_transport(monkeypatch, transport):
    """Route the CLI's transport to the FakeTransport fixture"""
    monkeypatch.setattr(cli_module, "AiohttpTransport", lambda config: transport)
    return transport


class TestSyncCommand:
    """Test `cds sync`"""

    def test_initial_then_incremental(self, config_file, fake_transport, payloads, locales_payload, tmp_path):
        fake_transport.queue(
            locales_payload,
            payloads.sync_page(
                [payloads.entry("cat-1", {"image": {"en-US": payloads.link("Asset", "img-1")}})],
                next_page_token="tokenA"
            ),
            payloads.sync_page([payloads.asset("img-1")], next_sync_token="tokenB"),
        )
        runner = CliRunner()

        result = runner.invoke(cli, ["sync", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "Synced 1 entries and 1 assets (token tokenB)" in result.output
        assert (tmp_path / "store" / "sync.db").exists()
        assert list((tmp_path / "store" / "logs").glob("sync_full_*.log"))

        fake_transport.calls.clear()
        fake_transport.queue(
            locales_payload,
            payloads.sync_page([payloads.deleted("Asset", "img-1")], next_sync_token="tokenC"),
        )

        result = runner.invoke(cli, ["sync", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert fake_transport.calls[1][1] == {"sync_token": "tokenB"}
        assert "Synced 1 entries and 0 assets (token tokenC)" in result.output

    def test_content_type_filter(self, config_file, fake_transport, payloads, locales_payload):
        fake_transport.queue(locales_payload, payloads.sync_page([], next_sync_token="tokenA"))

        result = CliRunner().invoke(cli, ["sync", "--config", str(config_file), "--content-type", "cat"])

        assert result.exit_code == 0, result.output
        assert fake_transport.calls[1][1] == {"initial": "true", "type": "Entry", "content_type": "cat"}

    def test_reset(self, config_file, fake_transport, payloads, locales_payload):
        fake_transport.queue(locales_payload, payloads.sync_page([payloads.entry("cat-1")], next_sync_token="t1"))
        runner = CliRunner()
        assert runner.invoke(cli, ["sync", "--config", str(config_file)]).exit_code == 0

        fake_transport.calls.clear()
        fake_transport.queue(locales_payload, payloads.sync_page([], next_sync_token="t2"))

        result = runner.invoke(cli, ["sync", "--config", str(config_file), "--reset", "--type", "assets"])

        assert result.exit_code == 0, result.output
        assert fake_transport.calls[1][1] == {"initial": "true", "type": "Asset"}
        assert "Synced 0 entries and 0 assets (token t2)" in result.output

    def test_missing_config(self, tmp_path):
        result = CliRunner().invoke(cli, ["sync", "--config", str(tmp_path / "missing.yaml")])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_transport_error(self, config_file, fake_transport):
        fake_transport.queue(TransportError("HTTP 401: GET locales", status_code=401))

        result = CliRunner().invoke(cli, ["sync", "--config", str(config_file)])

        assert result.exit_code == 2
        assert "Transport error: HTTP 401" in result.output

    def test_decoding_error(self, config_file, fake_transport, locales_payload, payloads):
        fake_transport.queue(
            locales_payload,
            payloads.sync_page([{"sys": {"id": "x", "type": "Mystery"}}], next_sync_token="t1"),
        )

        result = CliRunner().invoke(cli, ["sync", "--config", str(config_file)])

        assert result.exit_code == 3
        assert "Sync error" in result.output

    def test_unknown_type(self, config_file):
        result = CliRunner().invoke(cli, ["sync", "--config", str(config_file), "--type", "snapshots"])
        assert result.exit_code != 0


class TestStatusCommand:
    """Test `cds status`"""

    def test_without_store(self, config_file):
        result = CliRunner().invoke(cli, ["status", "--config", str(config_file)])

        assert result.exit_code == 0
        assert "No local store" in result.output

    def test_after_sync(self, config_file, fake_transport, payloads, locales_payload):
        fake_transport.queue(
            locales_payload,
            payloads.sync_page([payloads.entry("cat-1"), payloads.asset("img-1")], next_sync_token="tokenA"),
        )
        runner = CliRunner()
        assert runner.invoke(cli, ["sync", "--config", str(config_file)]).exit_code == 0

        result = runner.invoke(cli, ["status", "--config", str(config_file)])

        assert result.exit_code == 0, result.output
        assert "tokenA" in result.output
        assert "en-US, de-DE, de-CH, fr-FR" in result.output
        assert "Entries:         1" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

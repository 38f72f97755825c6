"""Tests for MediaControlClient against a fake panel."""

import httpx
import pytest

from relaycast.services.integrations.media_control import (
    AddRuleParams,
    ConfigurationError,
    MediaControlClient,
    MediaControlSettings,
    RemoteRejectionError,
    RemoveRuleParams,
    ToggleRuleParams,
    TransportError,
)
from tests.fixtures.media_control import PANEL_UUID, FakePanel


def _add_params(**overrides) -> AddRuleParams:
    values = {
        "src_app": "live",
        "src_stream": "morningyoga",
        "dest_addr": "a.rtmp.youtube.com",
        "dest_port": 1935,
        "dest_app": "live2",
        "dest_stream": "yt-key-123",
    }
    values.update(overrides)
    return AddRuleParams(**values)


class TestSettings:
    def test_base_url(self):
        settings = MediaControlSettings(panel_domain="panel.example.com", api_version="2")
        assert settings.base_url == "https://panel.example.com/api/2"

    def test_is_configured_needs_uuid_and_secret(self):
        assert MediaControlSettings(panel_uuid="u", secret="s").is_configured is True
        assert MediaControlSettings(panel_uuid="u").is_configured is False
        assert MediaControlSettings(secret="s").is_configured is False

    def test_unkeyed_scheme_needs_only_uuid(self):
        assert MediaControlSettings(panel_uuid="u", signature_scheme="md5").is_configured is True
        assert MediaControlSettings(signature_scheme="md5").is_configured is False


class TestRequest:
    async def test_query_carries_uuid_timestamp_signature_and_params(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        """The request is signed and every action param is sent as a query param."""
        await media_client.add_republishing_rule(_add_params())

        request = fake_panel.requests[-1]
        params = request.url.params
        assert request.method == "POST"
        assert request.url.host == "panel.test"
        assert request.url.path == "/api/2/servers/republishing"
        assert params["uuid"] == PANEL_UUID
        assert params["timestamp"].isdigit()
        assert len(params["signature"]) == 32
        assert params["action"] == "add_republishing"
        assert params["dest_port"] == "1935"
        assert params["enabled"] == "true"
        assert request.headers["content-type"] == "application/json"

    async def test_missing_uuid_raises_configuration_error(self, fake_panel: FakePanel):
        """Nothing is sent when the panel UUID is absent."""
        client = MediaControlClient(
            MediaControlSettings(panel_uuid=None, secret="s"),
            transport=httpx.MockTransport(fake_panel.handler),
        )

        with pytest.raises(ConfigurationError):
            await client.request("/test")
        assert fake_panel.requests == []

    async def test_missing_secret_raises_configuration_error(self, fake_panel: FakePanel):
        """No unsigned request is ever sent."""
        client = MediaControlClient(
            MediaControlSettings(panel_uuid=PANEL_UUID, secret=None),
            transport=httpx.MockTransport(fake_panel.handler),
        )

        with pytest.raises(ConfigurationError):
            await client.list_republishing_rules()
        assert fake_panel.requests == []

    async def test_network_failure_raises_transport_error(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        fake_panel.mode = "unreachable"

        with pytest.raises(TransportError):
            await media_client.get_server_stats()

    async def test_timeout_raises_transport_error(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        fake_panel.mode = "timeout"

        with pytest.raises(TransportError, match="timed out"):
            await media_client.get_server_config()

    async def test_non_2xx_raises_remote_rejection(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        fake_panel.mode = "reject"

        with pytest.raises(RemoteRejectionError) as exc_info:
            await media_client.add_republishing_rule(_add_params())

        assert exc_info.value.status_code == 500
        assert "internal" in (exc_info.value.body or "")

    async def test_bad_signature_is_rejected_by_panel(self, fake_panel: FakePanel):
        client = MediaControlClient(
            MediaControlSettings(
                panel_domain="panel.test", panel_uuid=PANEL_UUID, secret="wrong-secret"
            ),
            transport=httpx.MockTransport(fake_panel.handler),
        )

        with pytest.raises(RemoteRejectionError) as exc_info:
            await client.get_server_config()
        assert exc_info.value.status_code == 403

    async def test_non_json_body_raises_remote_rejection(self, panel_settings):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
        client = MediaControlClient(panel_settings, transport=transport)

        with pytest.raises(RemoteRejectionError):
            await client.get_server_config()


class TestRuleOperations:
    async def test_add_list_toggle_remove(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        response = await media_client.add_republishing_rule(_add_params())
        rule_id = str(response["id"])

        rules = await media_client.list_republishing_rules()
        assert [r.rule_id for r in rules] == [rule_id]
        assert rules[0].rule_key == ("live", "morningyoga", "live2", "yt-key-123")
        assert rules[0].enabled is True

        await media_client.toggle_republishing_rule(ToggleRuleParams(rule_id=rule_id, enabled=False))
        assert fake_panel.rules[rule_id]["enabled"] == "false"
        assert fake_panel.calls("toggle_republishing")[0].url.params["enabled"] == "false"

        await media_client.remove_republishing_rule(RemoveRuleParams(rule_id=rule_id))
        assert fake_panel.rules == {}

    async def test_remove_unknown_rule_is_rejected(self, media_client: MediaControlClient):
        with pytest.raises(RemoteRejectionError):
            await media_client.remove_republishing_rule(RemoveRuleParams(rule_id=999))

    async def test_list_skips_malformed_rules(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        rule_id = fake_panel.add_rule(src_app="live", src_stream="morningyoga")
        fake_panel.raw_rules = [{"id": 99, "src_stream": 42, "dest_port": "n/a"}]

        rules = await media_client.list_republishing_rules()

        assert [r.rule_id for r in rules] == [rule_id]


class TestStats:
    async def test_is_stream_active_matches_name_or_stream(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        fake_panel.active_streams = [{"name": "morningyoga"}, {"stream": "eveningrun"}]

        assert await media_client.is_stream_active("morningyoga") is True
        assert await media_client.is_stream_active("eveningrun") is True
        assert await media_client.is_stream_active("other") is False

    async def test_is_stream_active_propagates_errors(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        fake_panel.mode = "unreachable"

        with pytest.raises(TransportError):
            await media_client.is_stream_active("morningyoga")

    async def test_malformed_stats_raise_remote_rejection(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        fake_panel.stats_body = {"streams": "not-a-list"}

        with pytest.raises(RemoteRejectionError):
            await media_client.get_server_stats()


class TestConnection:
    async def test_success(self, media_client: MediaControlClient):
        result = await media_client.test_connection()

        assert result.success is True
        assert result.uuid == PANEL_UUID
        assert result.response == {"status": "ok"}

    async def test_failure_is_reported_not_raised(
        self, media_client: MediaControlClient, fake_panel: FakePanel
    ):
        fake_panel.mode = "unreachable"

        result = await media_client.test_connection()

        assert result.success is False
        assert result.error

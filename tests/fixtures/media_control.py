"""Fake media-control panel served through httpx.MockTransport."""

import asyncio
import itertools

import httpx
import pytest

from relaycast.services.integrations.media_control import (
    MediaControlClient,
    MediaControlSettings,
    Signer,
)

PANEL_UUID = "panel-uuid-123"
PANEL_SECRET = "panel-secret-xyz"
_AUTH_PARAMS = {"uuid", "timestamp", "signature"}


class FakePanel:
    """Minimal stateful stand-in for the panel's republishing API.

    `mode` switches the whole panel to a failure ("unreachable", "timeout",
    "reject"); `reject_streams` / `slow_streams` fail or delay individual
    add requests by `dest_stream`. `raw_rules` and `stats_body` are served
    verbatim, so malformed payloads can be simulated.
    """

    def __init__(self, secret: str = PANEL_SECRET):
        self.signer = Signer(secret)
        self.mode = "ok"
        self.reject_streams: set[str] = set()
        self.slow_streams: set[str] = set()
        self.slow_seconds = 1.0
        self.list_status = 200
        self.reject_removals = False
        self.raw_rules: list[dict] = []
        self.stats_body: dict | None = None
        self.rules: dict[str, dict[str, str]] = {}
        self.active_streams: list[dict[str, str]] = []
        self.requests: list[httpx.Request] = []
        self._ids = itertools.count(1)

    def calls(self, action: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.params.get("action") == action]

    def add_rule(self, **params: str) -> str:
        rule_id = str(next(self._ids))
        self.rules[rule_id] = dict(params)
        return rule_id

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if self.mode == "unreachable":
            raise httpx.ConnectError("connection refused", request=request)
        if self.mode == "timeout":
            raise httpx.ReadTimeout("read timed out", request=request)
        if self.mode == "reject":
            return httpx.Response(500, json={"error": "internal"})

        query = dict(request.url.params)
        action_params = {k: v for k, v in query.items() if k not in _AUTH_PARAMS}
        path = request.url.path.split("/api/2", 1)[-1]
        expected = self.signer.sign(query.get("timestamp", ""), path, action_params)
        if query.get("uuid") != PANEL_UUID or query.get("signature") != expected:
            return httpx.Response(403, json={"error": "bad signature"})

        if path == "/servers/republishing" and request.method == "GET":
            if self.list_status != 200:
                return httpx.Response(self.list_status, json={"error": "unsupported"})
            rules = [{"id": rule_id, **params} for rule_id, params in self.rules.items()]
            rules.extend(self.raw_rules)
            return httpx.Response(200, json={"rules": rules})

        if path == "/servers/republishing":
            return await self._handle_action(action_params)

        if path == "/servers/stats":
            if self.stats_body is not None:
                return httpx.Response(200, json=self.stats_body)
            return httpx.Response(200, json={"streams": self.active_streams})
        if path == "/servers/config":
            return httpx.Response(200, json={"uuid": PANEL_UUID})
        if path == "/test":
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(404, json={"error": "not found"})

    async def _handle_action(self, params: dict[str, str]) -> httpx.Response:
        action = params.pop("action", None)
        if action == "add_republishing":
            if params.get("dest_stream") in self.slow_streams:
                await asyncio.sleep(self.slow_seconds)
            if params.get("dest_stream") in self.reject_streams:
                return httpx.Response(400, json={"error": "destination refused"})
            return httpx.Response(200, json={"id": self.add_rule(**params)})
        if action == "remove_republishing":
            if self.reject_removals:
                return httpx.Response(500, json={"error": "removal failed"})
            if self.rules.pop(params.get("rule_id", ""), None) is None:
                return httpx.Response(404, json={"error": "no such rule"})
            return httpx.Response(200, json={"status": "ok"})
        if action == "toggle_republishing":
            rule = self.rules.get(params.get("rule_id", ""))
            if rule is None:
                return httpx.Response(404, json={"error": "no such rule"})
            rule["enabled"] = params["enabled"]
            return httpx.Response(200, json={"status": "ok"})
        return httpx.Response(400, json={"error": f"unknown action {action}"})


@pytest.fixture
def panel_settings() -> MediaControlSettings:
    return MediaControlSettings(
        panel_domain="panel.test",
        api_version="2",
        panel_uuid=PANEL_UUID,
        secret=PANEL_SECRET,
        timeout_seconds=2.0,
    )


@pytest.fixture
def fake_panel() -> FakePanel:
    return FakePanel()


@pytest.fixture
def media_client(panel_settings: MediaControlSettings, fake_panel: FakePanel) -> MediaControlClient:
    return MediaControlClient(panel_settings, transport=httpx.MockTransport(fake_panel.handler))

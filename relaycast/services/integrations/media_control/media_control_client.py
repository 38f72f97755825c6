"""Client for the remote media-control panel API.

The panel configures republishing rules on the media server that ingests
RTMP. Requests are authenticated purely through query parameters:

    ?uuid=<server uuid>&timestamp=<nonce>&signature=<hex>&<action params>

Usage:
    client = MediaControlClient(MediaControlSettings.from_app_config())
    rule = await client.add_republishing_rule(AddRuleParams(...))

The client keeps no state between calls. It raises `ConfigurationError`,
`TransportError` or `RemoteRejectionError` and leaves fallback decisions to
its callers.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from relaycast.app_config import AppEnvironConfig, get_app_environ_config

from .errors import ConfigurationError, RemoteRejectionError, TransportError
from .media_control_schemas import (
    CONFIG_PATH,
    REPUBLISHING_PATH,
    STATS_PATH,
    TEST_PATH,
    AddRuleParams,
    ConnectionTestResult,
    RemoveRuleParams,
    RepublishingRule,
    ServerStats,
    ToggleRuleParams,
    extract_rules,
)
from .signer import SCHEME_HMAC_MD5, SCHEME_MD5, NonceSource, Signer


@dataclass(frozen=True)
class MediaControlSettings:
    panel_domain: str = "nimble.wmspanel.com"
    api_version: str = "2"
    panel_uuid: str | None = None
    secret: str | None = None
    timeout_seconds: float = 10.0
    user_agent: str = "Relaycast/0.1"
    signature_scheme: str = SCHEME_HMAC_MD5

    @property
    def base_url(self) -> str:
        return f"https://{self.panel_domain}/api/{self.api_version}"

    @property
    def is_configured(self) -> bool:
        return bool(self.panel_uuid) and (self.signature_scheme == SCHEME_MD5 or bool(self.secret))

    @classmethod
    def from_app_config(cls, cfg: AppEnvironConfig | None = None) -> MediaControlSettings:
        cfg = cfg or get_app_environ_config()
        return cls(
            panel_domain=cfg.MEDIA_PANEL_DOMAIN,
            api_version=cfg.MEDIA_PANEL_API_VERSION,
            panel_uuid=cfg.MEDIA_PANEL_UUID,
            secret=cfg.MEDIA_PANEL_SECRET,
            timeout_seconds=cfg.MEDIA_PANEL_TIMEOUT_SECONDS,
            signature_scheme=cfg.MEDIA_PANEL_SIGNATURE_SCHEME,
        )


class MediaControlClient:
    def __init__(
        self,
        settings: MediaControlSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        nonce_source: NonceSource | None = None,
    ):
        self.settings = settings
        self._signer = Signer(settings.secret, settings.signature_scheme)
        self._nonces = nonce_source or NonceSource()
        self._transport = transport

        if not settings.panel_uuid:
            logger.warning("Media panel UUID not configured, remote rule management disabled")

    @property
    def is_configured(self) -> bool:
        return self.settings.is_configured

    async def request(
        self,
        path: str,
        method: str = "GET",
        params: Mapping[str, str] | None = None,
    ) -> Any:
        """Send one signed request and return the decoded JSON body.

        Raises:
            ConfigurationError: UUID or secret missing, nothing was sent
            TransportError: Network failure or timeout
            RemoteRejectionError: Non-2xx status or a body that is not JSON
        """
        if not self.settings.panel_uuid:
            raise ConfigurationError("Media panel UUID is not configured")

        params = dict(params or {})
        nonce = self._nonces.next()
        signature = self._signer.sign(nonce, path, params)

        query: dict[str, str] = {
            "uuid": self.settings.panel_uuid,
            "timestamp": str(nonce),
            "signature": signature,
        }
        query.update(params)

        url = f"{self.settings.base_url}{path}"
        logger.debug(f"Media panel request: {method} {path} action={params.get('action')}")

        try:
            async with httpx.AsyncClient(
                transport=self._transport,
                timeout=self.settings.timeout_seconds,
            ) as client:
                response = await client.request(
                    method,
                    url,
                    params=query,
                    headers={
                        "Content-Type": "application/json",
                        "User-Agent": self.settings.user_agent,
                    },
                )
        except httpx.TimeoutException as e:
            raise TransportError(f"Media panel request timed out: {method} {path}") from e
        except httpx.TransportError as e:
            raise TransportError(f"Media panel unreachable: {method} {path}: {e}") from e

        if not response.is_success:
            raise RemoteRejectionError(
                f"Media panel error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise RemoteRejectionError(
                f"Media panel returned a non-JSON body for {path}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        logger.debug(f"Media panel response for {path}: {data}")
        return data

    async def get_server_config(self) -> Any:
        return await self.request(CONFIG_PATH)

    async def add_republishing_rule(self, params: AddRuleParams) -> Any:
        logger.info(
            f"Adding republishing rule: {params.src_app}/{params.src_stream} -> "
            f"{params.dest_addr}:{params.dest_port}/{params.dest_app}/<stream>"
        )
        return await self.request(REPUBLISHING_PATH, "POST", params.to_params())

    async def remove_republishing_rule(self, params: RemoveRuleParams) -> Any:
        logger.info(f"Removing republishing rule: {params.rule_id}")
        return await self.request(REPUBLISHING_PATH, "POST", params.to_params())

    async def toggle_republishing_rule(self, params: ToggleRuleParams) -> Any:
        logger.info(
            f"{'Enabling' if params.enabled else 'Disabling'} republishing rule: {params.rule_id}"
        )
        return await self.request(REPUBLISHING_PATH, "POST", params.to_params())

    async def list_republishing_rules(self) -> list[RepublishingRule]:
        return extract_rules(await self.request(REPUBLISHING_PATH))

    async def get_server_stats(self) -> ServerStats:
        data = await self.request(STATS_PATH)
        if not isinstance(data, dict):
            return ServerStats()
        try:
            return ServerStats.model_validate(data)
        except PydanticValidationError as e:
            raise RemoteRejectionError(
                f"Media panel returned malformed stats for {STATS_PATH}",
                body=str(data),
            ) from e

    async def is_stream_active(self, stream_name: str) -> bool:
        """Whether the media server currently ingests `stream_name`."""
        stats = await self.get_server_stats()
        active = stats.has_stream(stream_name)
        logger.debug(f"Stream {stream_name} is {'active' if active else 'inactive'}")
        return active

    async def test_connection(self) -> ConnectionTestResult:
        """Probe the panel; failures are reported in the result, not raised."""
        try:
            response = await self.request(TEST_PATH)
        except (ConfigurationError, TransportError, RemoteRejectionError) as e:
            logger.warning(f"Media panel connection test failed: {e}")
            return ConnectionTestResult(success=False, uuid=self.settings.panel_uuid, error=str(e))

        logger.info("Media panel connection test successful")
        return ConnectionTestResult(success=True, uuid=self.settings.panel_uuid, response=response)

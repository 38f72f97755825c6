"""Wire schemas for the media-control panel API.

Request records keep the panel's exact query-parameter names; `to_params()`
renders them as the string map that is both signed and sent.
"""

from __future__ import annotations

from typing import Any, ClassVar

from loguru import logger
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

REPUBLISHING_PATH = "/servers/republishing"
CONFIG_PATH = "/servers/config"
STATS_PATH = "/servers/stats"
TEST_PATH = "/test"


def _wire_bool(value: bool) -> str:
    return "true" if value else "false"


class _ActionParams(BaseModel):
    action: ClassVar[str]

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {"action": self.action}
        for key, value in self.model_dump().items():
            params[key] = _wire_bool(value) if isinstance(value, bool) else str(value)
        return params


class AddRuleParams(_ActionParams):
    """Parameters for `add_republishing`."""

    action: ClassVar[str] = "add_republishing"

    src_app: str = Field(..., min_length=1, description="Source RTMP application")
    src_stream: str = Field(..., min_length=1, description="Source stream name")
    dest_addr: str = Field(..., min_length=1, description="Destination host")
    dest_port: int = Field(1935, ge=1, le=65535, description="Destination port")
    dest_app: str = Field(..., min_length=1, description="Destination RTMP application")
    dest_stream: str = Field(..., min_length=1, description="Destination stream name/key")
    enabled: bool = True

    @property
    def rule_key(self) -> tuple[str, str, str, str]:
        return (self.src_app, self.src_stream, self.dest_app, self.dest_stream)


class RemoveRuleParams(_ActionParams):
    """Parameters for `remove_republishing`."""

    action: ClassVar[str] = "remove_republishing"

    rule_id: str = Field(..., min_length=1)

    @field_validator("rule_id", mode="before")
    @classmethod
    def _coerce_rule_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class ToggleRuleParams(_ActionParams):
    """Parameters for `toggle_republishing`."""

    action: ClassVar[str] = "toggle_republishing"

    rule_id: str = Field(..., min_length=1)
    enabled: bool

    @field_validator("rule_id", mode="before")
    @classmethod
    def _coerce_rule_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v


class RepublishingRule(BaseModel):
    """One rule as reported by the panel's rule list."""

    rule_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("id", "rule_id"),
    )
    src_app: str | None = None
    src_stream: str | None = None
    dest_addr: str | None = None
    dest_port: int | None = None
    dest_app: str | None = None
    dest_stream: str | None = None
    enabled: bool | None = None

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    @field_validator("rule_id", mode="before")
    @classmethod
    def _coerce_rule_id(cls, v: Any) -> Any:
        return str(v) if isinstance(v, int) else v

    @field_validator("enabled", mode="before")
    @classmethod
    def _parse_enabled(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return v

    @property
    def rule_key(self) -> tuple[str | None, str | None, str | None, str | None]:
        return (self.src_app, self.src_stream, self.dest_app, self.dest_stream)


class StreamStat(BaseModel):
    name: str | None = None
    stream: str | None = None

    model_config = ConfigDict(extra="allow")


class ServerStats(BaseModel):
    """Server statistics; only the `streams` list is interpreted."""

    streams: list[StreamStat] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    def has_stream(self, stream_name: str) -> bool:
        return any(s.name == stream_name or s.stream == stream_name for s in self.streams)


class ConnectionTestResult(BaseModel):
    success: bool
    uuid: str | None = None
    error: str | None = None
    response: Any = None


def extract_rule_id(response: Any) -> str | None:
    """Pull the created rule id out of an `add_republishing` response."""
    if not isinstance(response, dict):
        return None
    for key in ("id", "rule_id"):
        value = response.get(key)
        if value not in (None, ""):
            return str(value)
    nested = response.get("rule") or response.get("result")
    if isinstance(nested, dict):
        return extract_rule_id(nested)
    return None


def extract_rules(response: Any) -> list[RepublishingRule]:
    """Normalize the rule-list response, which is either a bare list or wrapped."""
    items: Any = response
    if isinstance(response, dict):
        items = response.get("rules") or response.get("republishing") or []
    if not isinstance(items, list):
        return []
    rules: list[RepublishingRule] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            rules.append(RepublishingRule.model_validate(item))
        except PydanticValidationError as e:
            logger.warning(f"Skipping malformed republishing rule {item}: {e.error_count()} error(s)")
    return rules

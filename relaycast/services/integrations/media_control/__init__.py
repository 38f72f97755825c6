from .errors import ConfigurationError, MediaControlError, RemoteRejectionError, TransportError
from .media_control_client import MediaControlClient, MediaControlSettings
from .media_control_schemas import (
    AddRuleParams,
    ConnectionTestResult,
    RemoveRuleParams,
    RepublishingRule,
    ServerStats,
    ToggleRuleParams,
    extract_rule_id,
    extract_rules,
)
from .signer import NonceSource, Signer

__all__ = [
    "AddRuleParams",
    "ConfigurationError",
    "ConnectionTestResult",
    "MediaControlClient",
    "MediaControlError",
    "MediaControlSettings",
    "NonceSource",
    "RemoteRejectionError",
    "RemoveRuleParams",
    "RepublishingRule",
    "ServerStats",
    "Signer",
    "ToggleRuleParams",
    "TransportError",
    "extract_rule_id",
    "extract_rules",
]

"""Request signing for the media-control panel API.

Every call carries `timestamp` (the nonce) and `signature` query parameters.
The signed message is `<timestamp><path><k1=v1&k2=v2...>` with the action
parameters sorted by key. The message layout is fixed by the panel.

The digest depends on the panel's auth setting (`MEDIA_PANEL_SIGNATURE_SCHEME`):

- `hmac-md5` (default): hex HMAC-MD5 of the message keyed with the shared
  secret. A plain digest of public query values can be recomputed by anyone
  who sees one request, so the secret is mixed in.
- `md5`: hex MD5 of the message alone, for panels set up with unkeyed
  signatures. No secret is needed.
"""

import hashlib
import hmac
import threading
import time
from collections.abc import Mapping

from .errors import ConfigurationError

SCHEME_HMAC_MD5 = "hmac-md5"
SCHEME_MD5 = "md5"
SIGNATURE_SCHEMES = (SCHEME_HMAC_MD5, SCHEME_MD5)


def canonical_params(params: Mapping[str, str] | None) -> str:
    if not params:
        return ""
    return "&".join(f"{key}={params[key]}" for key in sorted(params))


def build_signing_message(nonce: int | str, path: str, params: Mapping[str, str] | None) -> str:
    return f"{nonce}{path}{canonical_params(params)}"


class NonceSource:
    """Unix-second nonces that never repeat within one process.

    The panel rejects timestamps outside its validity window, so the value
    stays close to wall-clock time and only moves ahead when two requests
    land in the same second.
    """

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def next(self) -> int:
        with self._lock:
            value = max(int(self._clock()), self._last + 1)
            self._last = value
            return value


class Signer:
    def __init__(self, secret: str | None, scheme: str = SCHEME_HMAC_MD5):
        if scheme not in SIGNATURE_SCHEMES:
            raise ConfigurationError(
                f"Unknown signature scheme {scheme!r}, expected one of {SIGNATURE_SCHEMES}"
            )
        self._secret = secret
        self.scheme = scheme

    @property
    def is_configured(self) -> bool:
        return self.scheme == SCHEME_MD5 or bool(self._secret)

    def sign(self, nonce: int | str, path: str, params: Mapping[str, str] | None = None) -> str:
        """Return the hex signature for one request.

        Raises:
            ConfigurationError: If the scheme needs a secret and none is configured
        """
        message = build_signing_message(nonce, path, params).encode("utf-8")
        if self.scheme == SCHEME_MD5:
            return hashlib.md5(message).hexdigest()

        if not self._secret:
            raise ConfigurationError("Media panel secret is not configured")
        return hmac.new(self._secret.encode("utf-8"), message, hashlib.md5).hexdigest()

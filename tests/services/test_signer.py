"""Tests for media panel request signing."""

import hashlib
import hmac

import pytest

from relaycast.services.integrations.media_control import ConfigurationError, NonceSource, Signer
from relaycast.services.integrations.media_control.signer import (
    build_signing_message,
    canonical_params,
)


class TestSigningMessage:
    def test_params_sorted_by_key(self):
        """Parameters are joined as k=v pairs in key order."""
        assert canonical_params({"b": "2", "a": "1", "c": "3"}) == "a=1&b=2&c=3"

    def test_empty_params(self):
        assert canonical_params({}) == ""
        assert canonical_params(None) == ""

    def test_message_layout(self):
        """Message is nonce, then path, then the sorted parameter string."""
        message = build_signing_message(1700000000, "/servers/republishing", {"rule_id": "7"})
        assert message == "1700000000/servers/republishingrule_id=7"


class TestSigner:
    def test_known_vector(self):
        """Signature is hex HMAC-MD5 of the message keyed by the secret."""
        signer = Signer("s3cret")
        expected = hmac.new(
            b"s3cret", b"1700000000/testaction=x", hashlib.md5
        ).hexdigest()

        assert signer.sign(1700000000, "/test", {"action": "x"}) == expected

    def test_deterministic(self):
        """Same inputs produce the same signature."""
        signer = Signer("s3cret")
        params = {"src_app": "live", "src_stream": "yoga"}

        first = signer.sign(42, "/servers/republishing", params)
        second = signer.sign(42, "/servers/republishing", dict(reversed(list(params.items()))))

        assert first == second
        assert len(first) == 32

    @pytest.mark.parametrize(
        "nonce,path,params,secret",
        [
            (43, "/servers/republishing", {"src_app": "live"}, "s3cret"),
            (42, "/servers/stats", {"src_app": "live"}, "s3cret"),
            (42, "/servers/republishing", {"src_app": "live2"}, "s3cret"),
            (42, "/servers/republishing", {"src_app": "live", "x": "1"}, "s3cret"),
            (42, "/servers/republishing", {"src_app": "live"}, "other"),
        ],
    )
    def test_any_change_changes_signature(self, nonce, path, params, secret):
        baseline = Signer("s3cret").sign(42, "/servers/republishing", {"src_app": "live"})
        assert Signer(secret).sign(nonce, path, params) != baseline

    @pytest.mark.parametrize("secret", [None, ""])
    def test_missing_secret_fails_loudly(self, secret):
        signer = Signer(secret)

        assert signer.is_configured is False
        with pytest.raises(ConfigurationError):
            signer.sign(1, "/test")

    def test_unkeyed_md5_scheme(self):
        """The md5 scheme digests the message alone and needs no secret."""
        signer = Signer(None, scheme="md5")
        expected = hashlib.md5(b"1700000000/testaction=x").hexdigest()

        assert signer.is_configured is True
        assert signer.sign(1700000000, "/test", {"action": "x"}) == expected

    def test_schemes_produce_different_signatures(self):
        keyed = Signer("s3cret").sign(42, "/test")
        unkeyed = Signer("s3cret", scheme="md5").sign(42, "/test")

        assert keyed != unkeyed

    def test_unknown_scheme_is_rejected(self):
        with pytest.raises(ConfigurationError):
            Signer("s3cret", scheme="sha1")


class TestNonceSource:
    def test_follows_clock(self):
        source = NonceSource(clock=lambda: 1700000000.9)
        assert source.next() == 1700000000

    def test_strictly_increasing_within_same_second(self):
        """Requests in the same second still get distinct nonces."""
        source = NonceSource(clock=lambda: 1700000000.0)

        values = [source.next() for _ in range(3)]

        assert values == [1700000000, 1700000001, 1700000002]

    def test_never_goes_backwards(self):
        ticks = iter([100.0, 90.0, 101.0])
        source = NonceSource(clock=lambda: next(ticks))

        assert [source.next(), source.next(), source.next()] == [100, 101, 102]

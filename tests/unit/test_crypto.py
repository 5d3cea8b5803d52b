"""
Unit tests for CryptoBox.

Tests cover:
- Round trip of seal/open
- Randomised tokens
- Wrong key and corrupted tokens
- Key validation
"""

import pytest

from timecapsule.crypto import CryptoBox
from timecapsule.errors import ConfigError, DecryptionError


class TestRoundTrip:
    """open(seal(p)) == p."""

    @pytest.mark.parametrize(
        "plaintext",
        ["hello", "", "Grüße aus der Vergangenheit 🕰️", "line one\nline two\n", "x" * 10_000],
    )
    def test_round_trip(self, crypto: CryptoBox, plaintext: str) -> None:
        assert crypto.open(crypto.seal(plaintext)) == plaintext

    def test_ciphertext_is_not_plaintext(self, crypto: CryptoBox) -> None:
        token = crypto.seal("secret message")
        assert "secret message" not in token

    def test_sealing_twice_differs(self, crypto: CryptoBox) -> None:
        """Each seal uses a fresh IV."""
        assert crypto.seal("same") != crypto.seal("same")

    def test_same_key_other_instance(self, key: str) -> None:
        """A second box built from the same key opens the token."""
        token = CryptoBox(key).seal("hello")
        assert CryptoBox(key).open(token) == "hello"

    def test_bytes_key_accepted(self, key: str) -> None:
        box = CryptoBox(key.encode("ascii"))
        assert box.open(box.seal("hi")) == "hi"


class TestFailures:
    """open() failures are reported as DecryptionError."""

    def test_wrong_key(self, crypto: CryptoBox) -> None:
        token = crypto.seal("hello")
        other = CryptoBox(CryptoBox.generate_key())
        with pytest.raises(DecryptionError):
            other.open(token)

    def test_malformed_token(self, crypto: CryptoBox) -> None:
        with pytest.raises(DecryptionError):
            crypto.open("not-a-token")

    def test_tampered_token(self, crypto: CryptoBox) -> None:
        token = crypto.seal("hello")
        tampered = token[:-4] + ("AAAA" if not token.endswith("AAAA") else "BBBB")
        with pytest.raises(DecryptionError):
            crypto.open(tampered)

    def test_empty_key_rejected(self) -> None:
        with pytest.raises(ConfigError):
            CryptoBox("")

    def test_invalid_key_rejected(self) -> None:
        with pytest.raises(ConfigError) as exc_info:
            CryptoBox("too-short")
        assert exc_info.value.context["setting"] == "encryption_key"

    def test_generated_keys_are_unique(self) -> None:
        assert CryptoBox.generate_key() != CryptoBox.generate_key()

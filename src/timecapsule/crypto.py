"""
Symmetric sealing of capsule content.

CryptoBox wraps Fernet (AES-128-CBC with an HMAC-SHA256 tag and a random IV
per token), so sealing the same text twice yields different ciphertexts
while ``open(seal(p)) == p`` always holds for the same key.

The key is handed to the constructor once at process start. Nothing here
reads the environment or keeps module-level key state.

Usage:
    box = CryptoBox(CryptoBox.generate_key())
    token = box.seal("hello")
    assert box.open(token) == "hello"
"""

import binascii

from cryptography.fernet import Fernet, InvalidToken

from timecapsule.errors import ConfigError, DecryptionError


class CryptoBox:
    """Seal and open capsule text with a single Fernet key."""

    def __init__(self, key: str | bytes) -> None:
        """
        Initialize the box.

        Args:
            key: URL-safe base64 encoded 32-byte key (see generate_key)

        Raises:
            ConfigError: If the key is empty or not a valid Fernet key
        """
        if not key:
            raise ConfigError(
                setting="encryption_key",
                message="Encryption key is empty",
                suggestion="Run `timecapsule keygen` and set TIMECAPSULE_KEY",
            )
        raw = key.encode("ascii") if isinstance(key, str) else key
        try:
            self._fernet = Fernet(raw)
        except (ValueError, binascii.Error) as e:
            raise ConfigError(
                setting="encryption_key",
                message=f"Invalid encryption key: {e}",
                suggestion="Run `timecapsule keygen` to create a valid key",
            ) from e

    @staticmethod
    def generate_key() -> str:
        """Create a new random key as text."""
        return Fernet.generate_key().decode("ascii")

    def seal(self, plaintext: str) -> str:
        """Encrypt ``plaintext`` and return the token as text."""
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def open(self, ciphertext: str) -> str:
        """
        Decrypt a token produced by seal.

        Raises:
            DecryptionError: If the token is malformed or the key does not match
        """
        try:
            return self._fernet.decrypt(ciphertext.encode("utf-8")).decode("utf-8")
        except (InvalidToken, UnicodeError, TypeError, AttributeError) as e:
            raise DecryptionError() from e

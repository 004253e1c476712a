"""Symmetric encryption utilities for protecting stored freee tokens."""

from __future__ import annotations

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


class TokenCipherService:
    """Encrypt and decrypt token strings using a derived Fernet key.

    Ciphertexts carry a ``fernet:`` prefix so values written before encryption
    was enabled are still readable; they are passed through unchanged and get
    encrypted on the next refresh.
    """

    PREFIX = "fernet:"

    def __init__(self, *, secret: str) -> None:
        if not secret:
            raise ValueError("Token encryption secret must be provided.")
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        key = base64.urlsafe_b64encode(digest)
        self._fernet = Fernet(key)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a plaintext string and return the prefixed ciphertext."""
        token = self._fernet.encrypt(plaintext.encode("utf-8"))
        return self.PREFIX + token.decode("utf-8")

    def decrypt(self, stored: str) -> str:
        """Return the plaintext for a stored value."""
        if not stored.startswith(self.PREFIX):
            return stored
        ciphertext = stored[len(self.PREFIX):]
        try:
            plaintext = self._fernet.decrypt(ciphertext.encode("utf-8"))
        except InvalidToken as exc:
            raise ValueError(
                "Failed to decrypt token; invalid ciphertext or rotated secret."
            ) from exc
        return plaintext.decode("utf-8")


__all__ = ["TokenCipherService"]

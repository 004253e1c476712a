try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from kintai_relay.services.token_cipher import TokenCipherService


def test_token_cipher_roundtrip() -> None:
    cipher = TokenCipherService(secret="super-secret-key")
    plaintext = "sensitive-token"

    encrypted = cipher.encrypt(plaintext)
    assert encrypted != plaintext
    assert encrypted.startswith(TokenCipherService.PREFIX)

    decrypted = cipher.decrypt(encrypted)
    assert decrypted == plaintext


def test_token_cipher_passes_plaintext_through() -> None:
    cipher = TokenCipherService(secret="super-secret-key")

    assert cipher.decrypt("legacy-plaintext-token") == "legacy-plaintext-token"


def test_token_cipher_rejects_rotated_secret() -> None:
    encrypted = TokenCipherService(secret="old-secret").encrypt("token")

    with pytest.raises(ValueError):
        TokenCipherService(secret="new-secret").decrypt(encrypted)


def test_token_cipher_rejects_bad_ciphertext() -> None:
    cipher = TokenCipherService(secret="another-secret")

    with pytest.raises(ValueError):
        cipher.decrypt("fernet:not-valid")

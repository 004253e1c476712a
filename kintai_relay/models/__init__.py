"""Domain models."""

from .credential import CredentialRecord

__all__ = ["CredentialRecord"]

"""Expose constructed client wrappers."""

from .dynamodb import DynamoDBCredentialStore
from .freee_auth import FreeeOAuthClient
from .freee_hr import FreeeHRClient
from .slack import SlackClient, SlackSignatureVerifier
from .sqlite_store import SQLiteCredentialStore

__all__ = [
    "DynamoDBCredentialStore",
    "FreeeHRClient",
    "FreeeOAuthClient",
    "SQLiteCredentialStore",
    "SlackClient",
    "SlackSignatureVerifier",
]

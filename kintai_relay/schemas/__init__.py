"""Public schema exports."""

from .slack import AttendanceOutcome, SlackEventEnvelope, SlackMessageEvent
from .tokens import TokenGrant, TokenSeedRequest, TokenStatus

__all__ = [
    "AttendanceOutcome",
    "SlackEventEnvelope",
    "SlackMessageEvent",
    "TokenGrant",
    "TokenSeedRequest",
    "TokenStatus",
]

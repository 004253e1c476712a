"""Slack Events API payloads and attendance outcomes."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class SlackMessageEvent(BaseModel):
    """Subset of Slack ``message`` event fields used for attendance."""

    model_config = ConfigDict(extra="ignore")

    type: str
    channel: Optional[str] = None
    user: Optional[str] = None
    text: Optional[str] = None
    ts: Optional[str] = None
    subtype: Optional[str] = None
    bot_id: Optional[str] = None


class SlackEventEnvelope(BaseModel):
    """Outer Events API envelope."""

    model_config = ConfigDict(extra="ignore")

    type: str
    challenge: Optional[str] = None
    team_id: Optional[str] = None
    event_id: Optional[str] = None
    event: Optional[Dict[str, Any]] = None


class AttendanceOutcome(BaseModel):
    """What happened to one Slack message."""

    status: Literal["ignored", "recorded", "unmatched", "failed"]
    action: Optional[str] = None
    employee_id: Optional[int] = None
    reply: Optional[str] = Field(None, description="Text posted back to the thread.")
    reason: Optional[str] = None


__all__ = ["AttendanceOutcome", "SlackEventEnvelope", "SlackMessageEvent"]

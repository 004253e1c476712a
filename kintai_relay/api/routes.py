"""
FastAPI routes for the Slack to freee attendance relay.
"""

from __future__ import annotations

import hmac
import json
import logging
from http import HTTPStatus
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError

from kintai_relay.clients.errors import (
    CredentialError,
    CredentialStoreError,
    FreeeAPIError,
)
from kintai_relay.dependencies import (
    get_app_settings,
    get_attendance_service,
    get_slack_signature_verifier,
    get_token_manager,
)
from kintai_relay.schemas import (
    SlackEventEnvelope,
    SlackMessageEvent,
    TokenSeedRequest,
    TokenStatus,
)

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.post("/integrations/slack/events", status_code=HTTPStatus.OK)
async def slack_events(
    request: Request,
    verifier: Annotated[Any, Depends(get_slack_signature_verifier)],
    attendance_service: Annotated[Any, Depends(get_attendance_service)],
    x_slack_retry_num: str | None = Header(None),
) -> dict:
    """Receive Slack Events API deliveries and record attendance messages."""
    body = await request.body()

    if verifier is None:
        logger.warning("SLACK_SIGNING_SECRET not set; signature verification skipped")
    elif not verifier.verify(body, request.headers):
        logger.error("Invalid Slack signature")
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Invalid signature")

    try:
        envelope = SlackEventEnvelope.model_validate(json.loads(body))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST, detail="Malformed Slack event payload."
        ) from exc

    if envelope.type == "url_verification":
        return {"challenge": envelope.challenge}

    # Slack redelivers when we answer slowly; the first delivery already ran.
    if x_slack_retry_num:
        logger.info("Ignoring Slack retry #%s for event %s", x_slack_retry_num, envelope.event_id)
        return {"status": "ignored"}

    if envelope.type != "event_callback" or not envelope.event:
        return {"status": "ignored"}

    event = SlackMessageEvent.model_validate(envelope.event)
    if event.type != "message":
        return {"status": "ignored"}

    outcome = await attendance_service.handle_message(event)
    return {"status": outcome.status, "action": outcome.action}


def require_admin(
    settings: Annotated[Any, Depends(get_app_settings)],
    x_admin_token: str | None = Header(None),
) -> None:
    """Guard the admin endpoints with the shared ``ADMIN_API_TOKEN``."""
    expected = settings.security.admin_api_token
    if not expected:
        raise HTTPException(status_code=HTTPStatus.FORBIDDEN, detail="Admin API disabled.")
    if not x_admin_token or not hmac.compare_digest(x_admin_token, expected):
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Invalid admin token.")


@router.post(
    "/admin/tokens",
    status_code=HTTPStatus.CREATED,
    dependencies=[Depends(require_admin)],
)
async def seed_tokens(
    payload: TokenSeedRequest,
    token_manager: Annotated[Any, Depends(get_token_manager)],
) -> dict:
    """Seed the initial freee token pair."""
    try:
        record = await token_manager.seed_tokens(
            payload.access_token, payload.refresh_token, payload.expires_in
        )
    except CredentialStoreError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Credential store unavailable.",
        ) from exc
    return {"status": "initialized", "expires_at": record.expires_at.isoformat()}


@router.get(
    "/admin/tokens/status",
    response_model=TokenStatus,
    dependencies=[Depends(require_admin)],
)
async def token_status(
    token_manager: Annotated[Any, Depends(get_token_manager)],
) -> TokenStatus:
    """Report the stored credential state without refreshing it."""
    return await token_manager.get_token_status()


@router.post("/admin/tokens/refresh", dependencies=[Depends(require_admin)])
async def force_refresh(
    token_manager: Annotated[Any, Depends(get_token_manager)],
) -> dict:
    """Refresh the access token immediately."""
    try:
        await token_manager.refresh_access_token()
    except CredentialError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=str(exc)) from exc
    except FreeeAPIError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE, detail=str(exc)
        ) from exc
    status = await token_manager.get_token_status()
    return {"status": "refreshed", "expires_at": status.expires_at}

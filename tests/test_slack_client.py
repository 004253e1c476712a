try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import asyncio

import pytest
from slack_sdk.errors import SlackApiError

from kintai_relay.clients.errors import SlackAPIError
from kintai_relay.clients.slack import SlackClient, SlackSignatureVerifier

pytestmark = pytest.mark.anyio

NOW = 1_753_833_600


class StubResponse(dict):
    @property
    def data(self):
        return dict(self)


class StubWebClient:
    def __init__(self, error: Exception | None = None, user=None) -> None:
        self.error = error
        self.user = user or {}
        self.calls: list = []

    async def chat_postMessage(self, **kwargs):  # noqa: N802 - slack_sdk API
        self.calls.append(("chat.postMessage", kwargs))
        if self.error is not None:
            raise self.error
        return StubResponse(ok=True, ts="2.0")

    async def users_info(self, **kwargs):
        self.calls.append(("users.info", kwargs))
        if self.error is not None:
            raise self.error
        return StubResponse(ok=True, user=self.user)


def _headers(timestamp: str, signature: str) -> dict:
    return {"x-slack-request-timestamp": timestamp, "x-slack-signature": signature}


def test_signature_round_trip() -> None:
    verifier = SlackSignatureVerifier("signing-secret", clock=lambda: NOW)
    body = b'{"type":"event_callback"}'
    signature = verifier.sign(str(NOW), body)

    assert signature.startswith("v0=")
    assert verifier.verify(body, _headers(str(NOW), signature)) is True
    assert verifier.verify(body + b" ", _headers(str(NOW), signature)) is False
    assert verifier.verify(body, {"x-slack-signature": signature}) is False
    assert verifier.verify(body, _headers("not-a-number", signature)) is False


def test_signature_headers_are_case_insensitive() -> None:
    verifier = SlackSignatureVerifier("signing-secret", clock=lambda: NOW)
    body = b"{}"
    headers = {
        "X-Slack-Request-Timestamp": str(NOW),
        "X-Slack-Signature": verifier.sign(str(NOW), body),
    }

    assert verifier.verify(body, headers) is True


def test_stale_timestamp_is_rejected() -> None:
    verifier = SlackSignatureVerifier("signing-secret", clock=lambda: NOW)
    old = str(NOW - 301)
    body = b"{}"

    assert verifier.verify(body, _headers(old, verifier.sign(old, body))) is False


def test_other_secret_is_rejected() -> None:
    body = b"{}"
    forged = SlackSignatureVerifier("someone-else", clock=lambda: NOW).sign(str(NOW), body)

    verifier = SlackSignatureVerifier("signing-secret", clock=lambda: NOW)
    assert verifier.verify(body, _headers(str(NOW), forged)) is False


async def test_post_message_threads_reply() -> None:
    web = StubWebClient()

    result = await SlackClient("xoxb-1", web_client=web).post_message("C1", "hi", thread_ts="1.2")

    assert result["ok"] is True
    assert web.calls == [
        ("chat.postMessage", {"channel": "C1", "text": "hi", "thread_ts": "1.2"})
    ]


async def test_api_error_is_mapped_to_slack_api_error() -> None:
    error = SlackApiError("failed", {"ok": False, "error": "channel_not_found"})
    client = SlackClient("xoxb-1", web_client=StubWebClient(error=error))

    with pytest.raises(SlackAPIError) as excinfo:
        await client.post_message("C404", "hi")

    assert excinfo.value.error == "channel_not_found"


async def test_timeout_is_mapped_to_slack_api_error() -> None:
    client = SlackClient("xoxb-1", web_client=StubWebClient(error=asyncio.TimeoutError()))

    with pytest.raises(SlackAPIError):
        await client.get_user_info("U1")


async def test_get_user_info_returns_user() -> None:
    web = StubWebClient(user={"id": "U1", "profile": {"email": "a@example.com"}})

    user = await SlackClient("xoxb-1", web_client=web).get_user_info("U1")

    assert user["profile"]["email"] == "a@example.com"
    assert web.calls == [("users.info", {"user": "U1"})]

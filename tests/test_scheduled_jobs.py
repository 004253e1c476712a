try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import pytest

from kintai_relay.clients.errors import FreeeHTTPStatusError, SlackAPIError
from kintai_relay.schemas import TokenStatus
from kintai_relay.services.scheduled import ChannelNotifier, ScheduledJobs
from kintai_relay.services.token_manager import FreeeTokenManager

pytestmark = pytest.mark.anyio


class StubTokenManager:
    def __init__(self, refreshed: bool, status: TokenStatus) -> None:
        self.refreshed = refreshed
        self.status = status
        self.proactive_calls = 0

    async def proactive_refresh(self) -> bool:
        self.proactive_calls += 1
        return self.refreshed

    async def get_token_status(self) -> TokenStatus:
        return self.status

    def is_due_for_proactive_refresh(self, status: TokenStatus) -> bool:
        return (
            status.minutes_until_expiry is not None
            and status.minutes_until_expiry <= FreeeTokenManager.PROACTIVE_REFRESH_MINUTES
        )


class StubFreeeClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error

    async def get_user_info(self):
        if self.error is not None:
            raise self.error
        return {"id": 1}


class RecordingNotifier:
    def __init__(self, delivered: bool = True) -> None:
        self.texts: list[str] = []
        self.delivered = delivered

    async def notify(self, text: str) -> bool:
        self.texts.append(text)
        return self.delivered


class RecordingSlackClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.posts: list = []
        self.error = error

    async def post_message(self, channel, text, thread_ts=None):
        if self.error is not None:
            raise self.error
        self.posts.append((channel, text))
        return {"ok": True}


def _jobs(token_manager, freee=None, notifier=None, notify_on_success=False):
    notifier = notifier or RecordingNotifier()
    jobs = ScheduledJobs(
        token_manager,
        freee or StubFreeeClient(),
        notifier,
        notify_on_refresh_success=notify_on_success,
    )
    return jobs, notifier


async def test_successful_refresh_is_quiet_by_default() -> None:
    jobs, notifier = _jobs(StubTokenManager(True, TokenStatus(present=True)))

    assert await jobs.refresh_tokens() is True
    assert notifier.texts == []


async def test_successful_refresh_can_notify() -> None:
    jobs, notifier = _jobs(
        StubTokenManager(True, TokenStatus(present=True)), notify_on_success=True
    )

    assert await jobs.refresh_tokens() is True
    assert "自動更新しました" in notifier.texts[0]


async def test_token_not_due_sends_nothing() -> None:
    jobs, notifier = _jobs(
        StubTokenManager(False, TokenStatus(present=True, minutes_until_expiry=200))
    )

    assert await jobs.refresh_tokens() is False
    assert notifier.texts == []


async def test_failed_refresh_while_due_alerts_the_channel() -> None:
    jobs, notifier = _jobs(
        StubTokenManager(False, TokenStatus(present=True, minutes_until_expiry=12))
    )

    assert await jobs.refresh_tokens() is False
    assert len(notifier.texts) == 1
    assert "自動更新に失敗しました" in notifier.texts[0]
    assert "12分" in notifier.texts[0]


async def test_store_error_alerts_the_channel() -> None:
    jobs, notifier = _jobs(
        StubTokenManager(False, TokenStatus(storage="error", error="table missing"))
    )

    assert await jobs.refresh_tokens() is False
    assert "table missing" in notifier.texts[0]


async def test_health_check_reports_ok() -> None:
    jobs, notifier = _jobs(StubTokenManager(False, TokenStatus()))

    assert await jobs.health_check() is True
    assert notifier.texts == ["🔍 定期ヘルスチェック: システム正常"]


async def test_health_check_reports_api_failure() -> None:
    jobs, notifier = _jobs(
        StubTokenManager(False, TokenStatus()),
        freee=StubFreeeClient(error=FreeeHTTPStatusError(503, "maintenance")),
    )

    assert await jobs.health_check() is False
    assert "503" in notifier.texts[0]


async def test_notifier_requires_channel() -> None:
    slack = RecordingSlackClient()

    assert await ChannelNotifier(slack, None).notify("hello") is False
    assert slack.posts == []
    assert await ChannelNotifier(slack, "C1").notify("hello") is True
    assert slack.posts == [("C1", "hello")]


async def test_notifier_swallows_slack_errors() -> None:
    slack = RecordingSlackClient(error=SlackAPIError("not_in_channel"))

    assert await ChannelNotifier(slack, "C1").notify("hello") is False


async def test_health_check_passes_without_notification_channel() -> None:
    slack = RecordingSlackClient()
    jobs = ScheduledJobs(
        StubTokenManager(False, TokenStatus()),
        StubFreeeClient(),
        ChannelNotifier(slack, None),
    )

    assert await jobs.health_check() is True
    assert slack.posts == []


async def test_health_check_passes_when_notice_fails() -> None:
    jobs, notifier = _jobs(
        StubTokenManager(False, TokenStatus()), notifier=RecordingNotifier(delivered=False)
    )

    assert await jobs.health_check() is True
    assert len(notifier.texts) == 1

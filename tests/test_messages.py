try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

import httpx

from kintai_relay.clients.errors import (
    FreeeHTTPStatusError,
    FreeeTransportError,
    NoRefreshTokenError,
    TimeClockStateError,
)
from kintai_relay.services import messages


def test_recorded_message_uses_display_name() -> None:
    assert messages.format_recorded("break_begin") == "✅ 休憩開始を記録しました！"


def test_failures_distinguish_admin_user_and_transient_causes() -> None:
    admin = messages.format_failure("clock_in", NoRefreshTokenError("missing"))
    conflict = messages.format_failure(
        "clock_in", TimeClockStateError(400, "打刻の種類が正しくありません")
    )
    transient = messages.format_failure(
        "clock_in", FreeeTransportError(httpx.ConnectError("refused"))
    )
    generic = messages.format_failure("clock_in", FreeeHTTPStatusError(500, "boom"))

    assert "管理者に連絡" in admin
    assert "既に出勤済み" in conflict
    assert "しばらくしてから" in transient
    assert "500" in generic
    assert len({admin, conflict, transient, generic}) == 4


def test_unknown_errors_do_not_leak_details() -> None:
    text = messages.format_failure("clock_out", RuntimeError("secret detail"))

    assert "secret detail" not in text
    assert "システムエラー" in text

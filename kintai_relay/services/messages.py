"""User-facing Slack texts for attendance results and scheduled notifications."""

from __future__ import annotations

from kintai_relay.clients.errors import (
    CredentialError,
    FreeeAPIError,
    FreeeTransportError,
    TimeClockStateError,
)

ACTION_DISPLAY_NAMES = {
    "clock_in": "出勤",
    "clock_out": "退勤",
    "break_begin": "休憩開始",
    "break_end": "休憩終了",
}

# Explanations for a clock type that freee rejects in the current state.
STATE_CONFLICT_MESSAGES = {
    "clock_in": "既に出勤済みです。",
    "clock_out": "まだ出勤していないか、既に退勤済みです。",
    "break_begin": "まだ出勤していないか、既に休憩中です。",
    "break_end": "休憩を開始していません。",
}
_DEFAULT_STATE_CONFLICT = "現在の打刻状況では、この操作はできません。"


def action_display_name(action: str) -> str:
    return ACTION_DISPLAY_NAMES.get(action, action)


def format_recorded(action: str) -> str:
    return f"✅ {action_display_name(action)}を記録しました！"


def format_unmatched() -> str:
    return (
        "❌ 従業員が見つかりません。\n"
        "• 手動マッピング: 管理者に設定を依頼してください\n"
        "• 自動マッチング: Slackプロフィールとfreeeのメールアドレスが一致している必要があります"
    )


def format_failure(action: str, error: Exception) -> str:
    """Explain a failed clock event, separating admin, user and transient causes."""
    if isinstance(error, CredentialError):
        return (
            "❌ 打刻の記録に失敗しました: freeeとの連携設定に問題があります。"
            "管理者に連絡してください。"
        )
    if isinstance(error, TimeClockStateError):
        reason = STATE_CONFLICT_MESSAGES.get(action, _DEFAULT_STATE_CONFLICT)
        return f"❌ 打刻の記録に失敗しました: {reason}"
    if isinstance(error, FreeeTransportError):
        return (
            "❌ 打刻の記録に失敗しました: freeeに接続できませんでした。"
            "しばらくしてから再度お試しください。"
        )
    if isinstance(error, FreeeAPIError):
        return f"❌ 打刻の記録に失敗しました: {error}"
    return "❌ 打刻の記録に失敗しました: システムエラーが発生しました"


def format_refresh_success() -> str:
    return "🔄 freeeアクセストークンを自動更新しました\n✅ システム正常稼働中"


def format_refresh_failure(detail: str) -> str:
    return f"🚨 freeeトークンの自動更新に失敗しました\n{detail}\n手動での更新が必要です"


def format_health_ok() -> str:
    return "🔍 定期ヘルスチェック: システム正常"


def format_health_failure(error: Exception) -> str:
    return f"❌ システムヘルスチェックエラー: {error}"


__all__ = [
    "ACTION_DISPLAY_NAMES",
    "STATE_CONFLICT_MESSAGES",
    "action_display_name",
    "format_failure",
    "format_health_failure",
    "format_health_ok",
    "format_recorded",
    "format_refresh_failure",
    "format_refresh_success",
    "format_unmatched",
]

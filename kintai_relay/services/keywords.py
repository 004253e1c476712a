"""Map free-text Slack messages to freee time-clock actions."""

from __future__ import annotations

import re
import unicodedata
from typing import Dict, Optional, Tuple

# Checked in order; the first matching keyword wins. The explicit freee/f
# prefixed forms avoid clashing with other attendance bots in the channel.
KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "clock_in": (
        "freee出勤", "freee始業", "f出勤", "f始業",
        "出勤", "始業", "しゅっきん", "しぎょう",
        "おはようございます", "in",
    ),
    "clock_out": (
        "freee退勤", "freee終業", "f退勤", "f終業",
        "退勤", "終業", "たいきん", "しゅうぎょう",
        "お疲れ様", "out",
    ),
    "break_begin": (
        "freee休憩入り", "f休憩入り",
        "休憩入り", "休憩開始", "きゅうけいいり", "きゅうけいかいし",
    ),
    "break_end": (
        "freee休憩戻り", "f休憩戻り",
        "休憩戻り", "休憩終了", "きゅうけいもどり", "きゅうけいしゅうりょう",
    ),
}

_WORD_PATTERN = re.compile(r"[a-z]+")


def _normalize(text: str) -> str:
    return unicodedata.normalize("NFKC", text).lower().strip()


def detect_action(text: Optional[str]) -> Optional[str]:
    """Return the time-clock type requested by ``text``, if any.

    Purely alphabetic keywords such as ``in`` only match whole words so that
    ordinary English chatter ("ping", "about") is not mistaken for a clock event.
    """
    if not text:
        return None

    normalized = _normalize(text)
    words = set(_WORD_PATTERN.findall(normalized))
    for action, keywords in KEYWORDS.items():
        for keyword in keywords:
            if keyword.isascii() and keyword.isalpha():
                if keyword in words:
                    return action
            elif keyword in normalized:
                return action
    return None


__all__ = ["KEYWORDS", "detect_action"]

"""
CSV 내보내기용 포맷 유틸리티

날짜(epoch ms)와 금액을 사람이 읽는 문자열로 변환합니다.
"""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from budget_tracker.core.config import settings
from budget_tracker.schemas import DEFAULT_DATE_FORMAT


_DATE_PATTERNS = {
    "MM/DD/YYYY": "%m/%d/%Y",
    "DD/MM/YYYY": "%d/%m/%Y",
    "YYYY-MM-DD": "%Y-%m-%d",
}


def _local_zone() -> ZoneInfo | timezone:
    try:
        return ZoneInfo(settings.TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def resolve_date_format(date_format: str | None) -> str:
    """Return a supported format name; unknown names fall back to MM/DD/YYYY."""
    if date_format in _DATE_PATTERNS:
        return date_format  # type: ignore[return-value]
    return DEFAULT_DATE_FORMAT


def format_epoch_date(epoch_ms: int | float | None, date_format: str | None = None) -> str:
    """
    epoch 밀리초를 지정 포맷의 날짜 문자열로 변환

    Example:
        >>> format_epoch_date(1719792000000, "YYYY-MM-DD")
        "2024-07-01"
    """
    if epoch_ms is None:
        return ""
    moment = datetime.fromtimestamp(float(epoch_ms) / 1000.0, tz=_local_zone())
    return moment.strftime(_DATE_PATTERNS[resolve_date_format(date_format)])


def format_amount(value: int | float | None) -> str:
    """Two decimal places, no thousands separator: ``1234.5`` -> ``"1234.50"``."""
    return f"{float(value or 0):.2f}"

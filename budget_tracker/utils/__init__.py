"""
Utils 패키지
"""

from .formatting import format_amount, format_epoch_date, resolve_date_format

__all__ = [
    "format_amount",
    "format_epoch_date",
    "resolve_date_format",
]

from __future__ import annotations

from ..core.exceptions import ReasonRequired, ValidationError


def require_reason(value: str | None, message: str) -> str:
    if not value or not value.strip():
        raise ReasonRequired(message)
    return value.strip()


def require_month(month: int, year: int) -> None:
    if not 1 <= int(month) <= 12:
        raise ValidationError("month must be between 1 and 12")
    if int(year) < 2000:
        raise ValidationError("year is out of range")

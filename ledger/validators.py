"""Validation helpers shared across ledger services."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .exceptions import ValidationError
from .models import TRANSACTION_TYPES

TITLE_MAX_LENGTH = 100
CATEGORY_MAX_LENGTH = 50


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_value(raw: object, field: str) -> Decimal:
    """Convert raw input to a non-negative Decimal with exactly two fraction digits."""
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        amount = Decimal(str(raw))
    except (InvalidOperation, TypeError) as exc:  # type: ignore[arg-type]
        raise ValidationError(f"{field} must be a numeric value") from exc

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")

    try:
        return _quantize_two_decimals(amount)
    except InvalidOperation as exc:
        raise ValidationError(f"{field} is too large") from exc


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_type(value: object, field: str = "type") -> str:
    """Accept a transaction type case-insensitively, returning its canonical form."""
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    canonical = value.strip().lower()
    if canonical not in TRANSACTION_TYPES:
        raise ValidationError(f"{field} must be one of: {', '.join(sorted(TRANSACTION_TYPES))}")
    return canonical

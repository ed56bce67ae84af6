from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any


# Maximum money value accepted from clients: 9,999,999,999.99
# Matches the Numeric(12, 2) columns and rejects nonsensical amounts
MAX_AMOUNT = Decimal("9999999999.99")

MAX_PAYMENT_METHOD_LENGTH = 32

# Largest id or quantity accepted; matches the 32-bit Integer columns
MAX_INT = 2**31 - 1


class ValidationError(ValueError):
    """400-level input problem."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def coerce_positive_int(value: Any, field: str) -> int:
    """
    Strict integer coercion for ids and quantities.

    Rejects booleans, floats, decimals and scientific notation so that
    "1.5" or 1e3 never silently becomes a different quantity.
    """
    if value is None:
        raise ValidationError(f"{field} is required")

    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{field} must be an integer")
        if 'e' in stripped.lower():
            raise ValidationError(f"{field} must be a plain integer (scientific notation not allowed)")
        if '.' in stripped:
            raise ValidationError(f"{field} must be an integer (no decimals)")
        try:
            number = int(stripped)
        except ValueError:
            raise ValidationError(f"{field} must be an integer")
    elif isinstance(value, float):
        raise ValidationError(f"{field} must be an integer, not a decimal")
    else:
        raise ValidationError(f"{field} must be an integer")

    if number <= 0:
        raise ValidationError(f"{field} must be > 0")
    if number > MAX_INT:
        raise ValidationError(f"{field} cannot exceed {MAX_INT}")
    return number


def coerce_amount(value: Any, field: str, *, default: Decimal = Decimal("0")) -> Decimal:
    """
    Parse a non-negative money amount.

    Accepts JSON numbers or numeric strings; None falls back to default.
    Floats go through str() so 0.1 stays 0.1 instead of its binary expansion.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, (int, float, Decimal)):
        raw = str(value)
    elif isinstance(value, str):
        raw = value.strip()
    else:
        raise ValidationError(f"{field} must be a number")

    try:
        amount = Decimal(raw)
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")

    if not amount.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    if amount < 0:
        raise ValidationError(f"{field} must be >= 0")
    if amount > MAX_AMOUNT:
        raise ValidationError(f"{field} cannot exceed {MAX_AMOUNT}")
    return amount


def coerce_payment_method(value: Any) -> str:
    if value is None or not isinstance(value, str) or not value.strip():
        raise ValidationError("payment_method is required")
    method = value.strip().upper()
    if len(method) > MAX_PAYMENT_METHOD_LENGTH:
        raise ValidationError(f"payment_method exceeds max length {MAX_PAYMENT_METHOD_LENGTH}")
    return method


def coerce_optional_text(value: Any, field: str, *, max_length: int | None = None) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length and len(text) > max_length:
        raise ValidationError(f"{field} exceeds max length {max_length}")
    return text

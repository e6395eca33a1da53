"""Input validation shared by the services."""

from decimal import Decimal, InvalidOperation

from freightbid.services.exceptions import ValidationError

MAX_PRICE = Decimal("999999.99")
PRICE_QUANTUM = Decimal("0.01")


def clean_text(field: str, value: object, *, min_length: int = 1, max_length: int) -> str:
    """Trim `value` and check its length.

    Raises:
        ValidationError: If the value is missing, not a string, or out of bounds
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required")
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    cleaned = value.strip()
    if not min_length <= len(cleaned) <= max_length:
        raise ValidationError(f"{field} must be between {min_length} and {max_length} characters")
    return cleaned


def clean_optional_text(field: str, value: object, *, max_length: int) -> str | None:
    """Like clean_text() but empty input becomes None."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return clean_text(field, value, max_length=max_length)


def clean_price(value: object) -> Decimal:
    """Parse a price into a Decimal with two places, 0 <= price <= 999999.99."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("price is required")
    try:
        price = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError("price must be a number") from e
    if not price.is_finite():
        raise ValidationError("price must be a number")
    if price < 0:
        raise ValidationError("price must not be negative")
    if price > MAX_PRICE:
        raise ValidationError(f"price must not exceed {MAX_PRICE}")
    if price != price.quantize(PRICE_QUANTUM):
        raise ValidationError("price must have at most two decimal places")
    return price.quantize(PRICE_QUANTUM)


def clean_expected_price(value: object) -> Decimal:
    """Parse a price the caller expects a quote to have.

    Not rounded: a value that differs from the stored price below a cent is
    a mismatch.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("expected_price is required")
    try:
        price = Decimal(str(value))
    except InvalidOperation as e:
        raise ValidationError("expected_price must be a number") from e
    if not price.is_finite():
        raise ValidationError("expected_price must be a number")
    if not 0 <= price <= MAX_PRICE:
        raise ValidationError(f"expected_price must be between 0 and {MAX_PRICE}")
    return price

"""
Module: billing_kernel.db.types
Responsibility: Annotated type aliases and utility functions for money columns
    and amount normalization.  Centralizes precision, rounding, and the payment
    tolerance so every model and service uses identical definitions.
Architecture position: Kernel > DB.  May be imported by models, domain,
    services, and selectors.  MUST NOT import from any of those layers
    (exceptions excepted).

Invariants enforced:
    - No floats in stored or computed money.  Every amount entering the
      kernel goes through to_money(), which converts via str() so that
      0.1 becomes Decimal("0.1") and never its binary expansion.
    - PAYMENT_TOLERANCE is the single source of the "close enough to
      fully paid" rule.  It is a business rounding allowance, overridable
      through configuration, not a float-drift workaround.

Failure modes:
    - InvalidPaymentAmountError from to_money() on non-numeric, NaN, or
      infinite input.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Annotated

from sqlalchemy import Numeric, String

from billing_kernel.exceptions import InvalidPaymentAmountError

# Monetary amount: 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

# Short identifier strings (status, method, reminder type)
ShortCode = Annotated[str, String(50)]

# Free text (notes, references)
LongText = Annotated[str, String(4000)]


MONEY_DECIMAL_PLACES = 9
DISPLAY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

# Remaining balance at or below this is treated as fully paid.
PAYMENT_TOLERANCE = Decimal("0.01")


def to_money(value) -> Decimal:
    """
    Normalize a supplied or stored amount into a Decimal.

    Accepts Decimal, int, float, or a numeric string.  Databases that keep
    decimals as text (or drivers that hand back floats) are normalized
    here, so callers always receive Decimal.

    Raises:
        InvalidPaymentAmountError: If value is None, not numeric, NaN or
            infinite.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidPaymentAmountError(value, "not a number")
    elif isinstance(value, (int, float)):
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidPaymentAmountError(value, "not a number") from None
    else:
        raise InvalidPaymentAmountError(value, "not a number")

    if not result.is_finite():
        raise InvalidPaymentAmountError(value, "not a finite number")
    return result


def round_money(
    value: Decimal,
    decimal_places: int = DISPLAY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the specified decimal places.

    This is the only sanctioned rounding function for money values.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)


def is_settled(
    amount_total: Decimal,
    amount_paid: Decimal,
    tolerance: Decimal = PAYMENT_TOLERANCE,
) -> bool:
    """True when the remaining balance is within ``tolerance`` of zero (or below)."""
    return amount_total - amount_paid <= tolerance

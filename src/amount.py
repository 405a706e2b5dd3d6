from decimal import Decimal, DecimalException, ROUND_DOWN
from typing import Union

from errors import InvalidAmountError

AMOUNT_PRECISION = Decimal("0.0001")
ZERO = Decimal("0").quantize(AMOUNT_PRECISION)

# 14 integer digits. Summing up to 2**32 such amounts stays within the
# 28 significant digits of the default decimal context, so balances are exact.
MAX_AMOUNT = Decimal("99999999999999.9999")


def to_amount(value: Union[str, int, Decimal]) -> Decimal:
    """
    Convert value to a fixed-point amount with 4 decimal places.
    Extra digits are truncated, never rounded up.
    Raises InvalidAmountError for unparseable, non-finite or out-of-range values.
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
        if not amount.is_finite():
            raise InvalidAmountError(f"amount must be finite, got {value!r}")
        if amount.copy_abs() > MAX_AMOUNT:
            raise InvalidAmountError(f"amount {value!r} exceeds {MAX_AMOUNT}")
        return amount.quantize(AMOUNT_PRECISION, rounding=ROUND_DOWN)
    except DecimalException as e:
        raise InvalidAmountError(f"unparseable amount: {value!r}") from e


def is_within_bounds(amount: Decimal) -> bool:
    return amount.copy_abs() <= MAX_AMOUNT


def format_amount(amount: Decimal) -> str:
    """Format amount with up to 4 decimal places, removing trailing zeros."""
    if amount == 0:
        return "0"
    normalized = amount.normalize()
    return f"{normalized:f}"

"""
Amount conversion helpers.

All monetary amounts on Bison are integers in µUSDC (micro-USDC):
1 USDC = 1,000,000 µUSDC. Contract quantities are fixed-point strings
scaled by a per-market precision.
"""

import re
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable, Union

UUSDC_PER_USDC = 1_000_000
USDC_DECIMALS = 6

# Response fields that carry stringified integers
BIGINT_FIELDS = (
    "uusdcAmount",
    "newBalanceUusdc",
    "priceUusdc",
    "number",
    "requestedQuantity",
    "filledQuantity",
    "filledUusdc",
    "amountUusdc",
    "claimedAmountUusdc",
    "remainingUusdc",
    "depositedBalanceUusdc",
    "totalPending",
    "totalFillLocked",
    "totalUnclaimed",
    "totalAvailableUnclaimed",
    "pendingFeesUusdc",
    "lockedFeesUusdc",
    "unclaimedFeesUusdc",
    "grossFeeBps",
    "grossBaseFeeUusdc",
    "bisonFeeCutBps",
    "maxWithdrawAmount",
    "quantity",
    "payoutUusdc",
    "totalUusdc",
    "feeUusdc",
    "totalDeposits",
    "totalWithdrawals",
    "realizedPnl",
    "unrealizedPnl",
    "netPnl",
    "totalFeesPaid",
)

_INTEGER_STRING = re.compile(r"^\d+$")
_FIXED_POINT = re.compile(r"^-?\d*(\.\d*)?$")

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal going through str() so floats keep their printed value."""
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"Invalid amount: {value!r}") from exc


def usdc_to_uusdc(usdc: Number) -> int:
    """
    Convert USDC to µUSDC, truncating anything below one µUSDC.

    Example:
        usdc_to_uusdc("1.5") -> 1500000
        usdc_to_uusdc(1.5)   -> 1500000
    """
    amount = to_decimal(usdc)
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {usdc!r}")
    return int((amount * UUSDC_PER_USDC).to_integral_value(rounding=ROUND_DOWN))


def uusdc_to_usdc(uusdc: Union[int, str]) -> str:
    """
    Convert µUSDC to a USDC decimal string with six places.

    Example:
        uusdc_to_usdc(1500000) -> "1.500000"
    """
    amount = parse_bigint(uusdc)
    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), UUSDC_PER_USDC)
    return f"{sign}{whole}.{fraction:0{USDC_DECIMALS}d}"


def parse_bigint(value: Union[int, float, str]) -> int:
    """
    Parse an integer that may arrive as int, integral float or string.

    Raises:
        ValueError: For non-integral numbers and unparsable strings
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot convert boolean {value!r} to an integer amount")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Cannot convert non-integer number {value} to an integer amount")
        return int(value)
    text = str(value).strip()
    try:
        if text.lower().startswith(("0x", "-0x")):
            return int(text, 16)
        return int(text)
    except ValueError:
        raise ValueError(f"Invalid integer value: {value!r}") from None


def parse_bigint_fields(obj: Any, fields: Iterable[str] = BIGINT_FIELDS) -> Any:
    """
    Recursively turn stringified integers back into ints.

    Only keys listed in ``fields`` whose value is a plain digit string are
    converted; everything else is copied through.
    """
    field_set = fields if isinstance(fields, (set, frozenset)) else frozenset(fields)

    if isinstance(obj, list):
        return [parse_bigint_fields(item, field_set) for item in obj]

    if isinstance(obj, dict):
        result = {}
        for key, value in obj.items():
            if key in field_set and isinstance(value, str) and _INTEGER_STRING.match(value):
                result[key] = int(value)
            elif isinstance(value, (dict, list)):
                result[key] = parse_bigint_fields(value, field_set)
            else:
                result[key] = value
        return result

    return obj


def format_uusdc_display(uusdc: Union[int, float, str], decimals: int = 2) -> str:
    """
    Format a µUSDC amount as USDC for display.

    Example:
        format_uusdc_display(1500000)       -> "1.50"
        format_uusdc_display("1500000", 6)  -> "1.500000"
    """
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    usdc = Decimal(parse_bigint(uusdc)) / UUSDC_PER_USDC
    quantum = Decimal(1).scaleb(-decimals)
    return f"{usdc.quantize(quantum, rounding=ROUND_HALF_UP):f}"


def fixed_point_to_quantity(fixed_point: str, precision: int) -> int:
    """
    Convert a fixed-point string into a quantity scaled by ``precision``.

    Extra fractional digits are truncated, missing ones padded.

    Example:
        fixed_point_to_quantity("10.50", 2) -> 1050
        fixed_point_to_quantity("10", 0)    -> 10
    """
    if precision < 0:
        raise ValueError("precision must be >= 0")
    text = fixed_point.strip()
    if not text or not _FIXED_POINT.match(text) or text in {"-", ".", "-."}:
        raise ValueError(f"Invalid fixed-point value: {fixed_point!r}")

    negative = text.startswith("-")
    whole_part, _, fractional_part = text.lstrip("-").partition(".")
    fractional = fractional_part[:precision].ljust(precision, "0")
    quantity = int(whole_part or "0") * 10 ** precision + int(fractional or "0")
    return -quantity if negative else quantity


def quantity_to_fixed_point(quantity: int, precision: int) -> str:
    """
    Convert a scaled quantity back into a fixed-point string.

    Fixed-point strings always carry at least two decimal places.

    Example:
        quantity_to_fixed_point(1050, 2) -> "10.50"
        quantity_to_fixed_point(10, 0)   -> "10.00"
    """
    if precision < 0:
        raise ValueError("precision must be >= 0")
    sign = "-" if quantity < 0 else ""
    whole, fraction = divmod(abs(quantity), 10 ** precision)
    fractional = str(fraction).zfill(precision) if precision else ""
    return f"{sign}{whole}.{fractional.ljust(2, '0')}"

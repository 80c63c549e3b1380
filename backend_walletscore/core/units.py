"""
Unit conversion between integer minor units (wei-like) and decimal native units.

Pure functions with explicit decimal places; chains and tokens pass their own
decimals rather than relying on a global constant.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

NATIVE_DECIMALS = 18
# Enough digits for uint256 values at full precision
_PRECISION = 96


def parse_minor_units(value: str | int | Decimal | None) -> int:
    """Parse an explorer value ('123', 123, '') into an int; blank or malformed -> 0."""
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    raw = str(value).strip()
    if not raw:
        return 0
    try:
        return int(Decimal(raw))
    except (InvalidOperation, ValueError):
        return 0


def to_native(value: str | int | Decimal | None, decimals: int = NATIVE_DECIMALS) -> Decimal:
    """Minor units -> native units. to_native(10**18) == Decimal(1)."""
    if decimals < 0:
        raise ValueError("decimals must be >= 0")
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        result = Decimal(parse_minor_units(value)).scaleb(-decimals).normalize()
        # normalize() turns 10 into 1E+1
        if result.as_tuple().exponent > 0:
            result = result.quantize(Decimal(1))
        return result


def sum_native(values: list[str | int | Decimal | None], decimals: int = NATIVE_DECIMALS) -> Decimal:
    """Sum minor-unit values and convert once, so no rounding accumulates."""
    return to_native(sum(parse_minor_units(v) for v in values), decimals)


def parse_decimals(raw: str | int | None, default: int = NATIVE_DECIMALS) -> int:
    """Token decimals from an explorer event field; default when blank."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 0 else default

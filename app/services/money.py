# app/services/money.py
"""Fixed-point currency helpers. Every amount is a Decimal quantized to cents."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def q2(x: Decimal) -> Decimal:
    # Quantize to 2 decimal places with HALF_UP
    return x.quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """
    Coerce a JSON-ish number (int, float, numeric string or Decimal) to cents.
    Floats go through ``str`` first so 26.1 stays 26.10, not 26.0999...
    """
    if isinstance(value, bool):
        raise ValueError(f"not an amount: {value!r}")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    elif isinstance(value, str):
        s = value.strip().replace("$", "").replace(",", "")
        try:
            d = Decimal(s)
        except InvalidOperation:
            raise ValueError(f"not an amount: {value!r}") from None
    else:
        raise ValueError(f"not an amount: {value!r}")
    if not d.is_finite():
        raise ValueError(f"not an amount: {value!r}")
    try:
        return q2(d)
    except InvalidOperation:
        # more digits than the decimal context holds
        raise ValueError(f"amount out of range: {value!r}") from None


def plain(amount: Decimal) -> str:
    """'1234.50' - storage and JSON form."""
    return f"{q2(amount):.2f}"


def fmt_money(amount: Decimal) -> str:
    """'$1,234.50', negatives as '-$2.60'."""
    a = q2(amount)
    sign = "-" if a < 0 else ""
    return f"{sign}${abs(a):,.2f}"


def fmt_rate(rate: Decimal) -> str:
    """Decimal('0.10') -> '10%', Decimal('0.125') -> '12.5%'."""
    pct = (rate * 100).normalize()
    # normalize() can produce exponent form for round numbers (e.g. 1E+1)
    return f"{pct:f}%"

"""
Money helpers

Amounts are ``Decimal`` with two places end to end. Rounding happens when an
amount enters the ledger (``quantize_amount``) and when a database sum comes
back (``to_money``), never in between.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize_amount(value: Decimal | int | str) -> Decimal:
    """
    Round an incoming amount to cents (half up).

    Example:
        >>> quantize_amount(Decimal("333.335"))
        Decimal('333.34')
    """
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Decimal:
    """
    Normalize a database aggregate (None, int, float or Decimal) to a cent Decimal.

    SQLite has no decimal type: it stores NUMERIC as REAL and SUM comes back as
    a float. Going through ``str`` and rounding to cents recovers the exact
    total while the accumulated binary error stays below half a cent, i.e.
    while totals stay well under 10**13 (a double keeps 15 to 16 significant
    digits). This is a SQLite-only limitation; backends with a real
    NUMERIC type return ``Decimal``, which is only quantized.

    Example:
        >>> to_money(0.1 + 0.2)
        Decimal('0.30')
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    # float from SQLite SUM; str() gives the shortest repr, not the binary expansion
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)

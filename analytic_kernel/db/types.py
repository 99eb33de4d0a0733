"""
Module: analytic_kernel.db.types
Responsibility: Annotated column types and the single sanctioned rounding
    function for monetary values.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, selectors/ and analytic_engines.  MUST NOT import from any of
    those layers.

Invariants enforced:
    - No floats for money.  Every monetary column is Money (Numeric(38, 9)).
    - Reported figures (achieved, remaining, percent) are rounded half-up to
      REPORT_DECIMAL_PLACES through round_money() and nowhere else.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated

from sqlalchemy import Numeric

# 38 digits total, 9 decimal places
Money = Annotated[Decimal, Numeric(38, 9)]

REPORT_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def round_money(
    value: Decimal,
    decimal_places: int = REPORT_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    Half-up rounding: round_money(Decimal("0.125")) == Decimal("0.13").
    """
    quantizer = Decimal(10) ** -decimal_places
    return Decimal(value).quantize(quantizer, rounding=rounding)

# glossapp/services/price_engine.py
"""
Pricing resolution: original price, discounted price and washer cut.

No database access here. Record creation and record update both call
price_breakdown() with a matrix lookup callable, so there is a single code
path for pricing. An explicit price beats the matrix, which is how CUSTOM
services bypass it.

All amounts are Decimals quantized to 2 places (ROUND_HALF_UP).
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Optional

from glossapp.exceptions import PricingNotFoundError

CENT = Decimal("0.01")
HUNDRED = Decimal(100)
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PriceBreakdown:
    original_price: Decimal
    discounted_price: Decimal
    washer_cut: Decimal


def to_money(value) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def as_finite_decimal(value) -> Optional[Decimal]:
    """Returns a finite Decimal for numeric input, None for anything else (NaN, inf, text, bool)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        number = Decimal(str(value).strip()) if isinstance(value, (str, float)) else Decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite():
        return None
    return number


def _percentage(value) -> Decimal:
    """Missing, NaN or non-numeric percentages count as 0."""
    number = as_finite_decimal(value)
    return number if number is not None else Decimal(0)


def resolve_original_price(
    car_category: str,
    wash_type: str,
    explicit_override=None,
    lookup: Optional[Callable[[str, str], Optional[Decimal]]] = None,
) -> Decimal:
    """
    Override wins when it is a finite number >= 0.
    Otherwise the matrix lookup is asked; None from the lookup means no entry.
    """
    override = as_finite_decimal(explicit_override)
    if override is not None and override >= 0:
        return to_money(override)

    if lookup is not None:
        price = as_finite_decimal(lookup(car_category, wash_type))
        if price is not None and price >= 0:
            return to_money(price)

    raise PricingNotFoundError(car_category, wash_type)


def compute_discounted_price(original, discount_percentage) -> Decimal:
    result = Decimal(original) * (1 - _percentage(discount_percentage) / HUNDRED)
    return max(ZERO, to_money(result))


def compute_washer_cut(original, salary_percentage) -> Decimal:
    result = Decimal(original) * (_percentage(salary_percentage) / HUNDRED)
    return max(ZERO, to_money(result))


def price_breakdown(
    car_category: str,
    wash_type: str,
    discount_percentage,
    salary_percentage,
    explicit_override=None,
    lookup=None,
) -> PriceBreakdown:
    original = resolve_original_price(car_category, wash_type, explicit_override, lookup)
    return PriceBreakdown(
        original_price=original,
        discounted_price=compute_discounted_price(original, discount_percentage),
        washer_cut=compute_washer_cut(original, salary_percentage),
    )

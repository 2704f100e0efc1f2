"""
MultipleDeriver — industry range + scores → multiple and dollar value.

  baseMultiple   = L + (Core/100) × (H − L)
  discountFrac   = (1 − BRI/100) ^ alpha
  finalMultiple  = L + (baseMultiple − L) × (1 − discountFrac)
  currentValue   = EBITDA × finalMultiple
  potentialValue = EBITDA × baseMultiple
  valueGap       = potentialValue − currentValue

L ≤ finalMultiple ≤ baseMultiple ≤ H holds for every valid input.
"""
from dataclasses import dataclass
from decimal import Decimal

from bri_engine.scoring.config import ALPHA_MIN, ALPHA_MAX
from bri_engine.scoring.numbers import (
    to_decimal, quantize_money, quantize_multiple, quantize_fraction,
)


@dataclass(frozen=True)
class MultipleResult:
    base_multiple: Decimal
    discount_fraction: Decimal
    final_multiple: Decimal
    current_value: Decimal
    potential_value: Decimal
    value_gap: Decimal


def derive_multiple(low, high, core_score, bri_score, alpha, ebitda) -> MultipleResult:
    """Derive multiples and values. core_score and bri_score are on a 0–100 scale.

    Dollar amounts are rounded to the cent; value_gap is the difference of the
    rounded amounts so it reconciles exactly.
    """
    low, high = to_decimal(low), to_decimal(high)
    core, bri = to_decimal(core_score), to_decimal(bri_score)
    alpha, ebitda = to_decimal(alpha), to_decimal(ebitda)

    if low > high:
        raise ValueError(f"Industry multiple low {low} exceeds high {high}")
    if not (0 <= core <= 100):
        raise ValueError(f"Core Score {core} outside [0, 100]")
    if not (0 <= bri <= 100):
        raise ValueError(f"BRI {bri} outside [0, 100]")
    if not (ALPHA_MIN <= alpha <= ALPHA_MAX):
        raise ValueError(f"alpha {alpha} outside [{ALPHA_MIN}, {ALPHA_MAX}]")

    base = low + (core / 100) * (high - low)
    shortfall = 1 - bri / 100
    discount = shortfall ** alpha if shortfall > 0 else Decimal('0')
    final = low + (base - low) * (1 - discount)

    current = quantize_money(ebitda * final)
    potential = quantize_money(ebitda * base)

    return MultipleResult(
        base_multiple=quantize_multiple(base),
        discount_fraction=quantize_fraction(discount),
        final_multiple=quantize_multiple(final),
        current_value=current,
        potential_value=potential,
        value_gap=potential - current,
    )

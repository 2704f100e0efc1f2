"""
ValueGapAttributor — split a value gap into category and driver dollars.

Category level is reconciled to the cent: shares are rounded in integer
cents and the residual lands on the category with the largest headroom
(first in input order on ties). Driver level is proportional only.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from bri_engine.scoring.numbers import (
    to_decimal, to_cents, from_cents, quantize_money, quantize_points,
)

DEFAULT_UNMONETIZED = frozenset({'PERSONAL'})


@dataclass(frozen=True)
class CategoryInput:
    category: str
    score: Optional[Decimal]   # 0–1, None = not assessed
    weight: Decimal


@dataclass(frozen=True)
class CategoryGap:
    category: str
    headroom: Decimal
    share: Decimal
    dollar_impact: Decimal


@dataclass(frozen=True)
class DriverInput:
    driver_id: int
    max_impact_points: Decimal
    score_value: Decimal
    label: str = ''


@dataclass(frozen=True)
class DriverGap:
    driver_id: int
    label: str
    points_lost: Decimal
    dollar_impact: Decimal


def distribute_by_category(categories: Iterable[CategoryInput], total_value_gap,
                           unmonetized=DEFAULT_UNMONETIZED) -> List[CategoryGap]:
    """Attribute total_value_gap across monetized, assessed categories.

    The returned dollar_impact values sum exactly to total_value_gap (to the
    cent) whenever any category has headroom. With zero total headroom every
    category gets 0.
    """
    inputs = []
    for item in categories:
        if item.category in unmonetized or item.score is None:
            continue
        score, weight = to_decimal(item.score), to_decimal(item.weight)
        if not (0 <= score <= 1):
            raise ValueError(f"{item.category}: score {score} outside [0, 1]")
        if weight < 0:
            raise ValueError(f"{item.category}: negative weight {weight}")
        inputs.append((item.category, weight * (1 - score)))

    total_headroom = sum((h for _, h in inputs), Decimal('0'))
    if total_headroom == 0:
        return [CategoryGap(c, h, Decimal('0'), Decimal('0.00')) for c, h in inputs]

    total_cents = to_cents(total_value_gap)
    cents = [
        int((headroom * total_cents / total_headroom).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
        for _, headroom in inputs
    ]

    residual = total_cents - sum(cents)
    if residual:
        largest = max(range(len(inputs)), key=lambda i: inputs[i][1])
        cents[largest] += residual

    return [
        CategoryGap(
            category=category,
            headroom=headroom,
            share=headroom / total_headroom,
            dollar_impact=from_cents(c),
        )
        for (category, headroom), c in zip(inputs, cents)
    ]


def distribute_by_driver(drivers: Iterable[DriverInput], category_dollar) -> List[DriverGap]:
    """Split one category's dollars over its risk drivers, largest first.

    Drivers at or above the maximum score are excluded. Not reconciled.
    """
    lost = []
    for driver in drivers:
        score = to_decimal(driver.score_value)
        if score >= 1:
            continue
        lost.append((driver, to_decimal(driver.max_impact_points) * (1 - score)))

    total_lost = sum((points for _, points in lost), Decimal('0'))
    if total_lost <= 0:
        return []

    category_dollar = to_decimal(category_dollar)
    gaps = [
        DriverGap(
            driver_id=driver.driver_id,
            label=driver.label,
            points_lost=quantize_points(points),
            dollar_impact=quantize_money(points / total_lost * category_dollar),
        )
        for driver, points in lost
    ]
    # sorted() is stable, so equal amounts keep input order
    return sorted(gaps, key=lambda g: g.dollar_impact, reverse=True)


def category_inputs_from_scores(category_scores, config) -> Sequence[CategoryInput]:
    """Build CategoryInputs from {category: score} using the configured weights."""
    return [
        CategoryInput(category=c, score=category_scores.get(c), weight=w)
        for c, w in config.category_weights.items()
    ]

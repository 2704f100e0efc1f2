"""
Value-gap breakdown for the reporting layer.

Reads the latest snapshot, splits its value gap across categories
(reconciled to the cent) and then across the risk drivers inside each
category using the company's current effective answers.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List, Optional

from bri_engine.database import get_session
from bri_engine.models.valuation_snapshot import ValuationSnapshot
from bri_engine.scoring.config import get_scoring_config
from bri_engine.scoring.value_gap import (
    CategoryGap, CategoryInput, DriverGap, DriverInput,
    category_inputs_from_scores, distribute_by_category, distribute_by_driver,
)
from bri_engine.services.stores import get_scored_answers

logger = logging.getLogger('services.breakdown')


@dataclass
class CategoryBreakdown:
    category: str
    score: Decimal
    dollar_impact: Decimal
    share: Decimal
    drivers: List[DriverGap] = field(default_factory=list)


@dataclass
class ValueGapBreakdown:
    company_id: int
    snapshot_id: int
    total_value_gap: Decimal
    categories: List[CategoryBreakdown] = field(default_factory=list)


def compute_category_value_gaps(category_inputs: Iterable[CategoryInput], total_value_gap,
                                config=None) -> List[CategoryGap]:
    """Reconciled category split using the configured unmonetized categories."""
    config = config or get_scoring_config()
    return distribute_by_category(category_inputs, total_value_gap, unmonetized=config.unmonetized_categories)


def compute_value_gap_breakdown(company_id, config=None) -> Optional[ValueGapBreakdown]:
    """Category and driver attribution of the latest snapshot's value gap. None without snapshots."""
    config = config or get_scoring_config()
    session = get_session()
    try:
        snapshot = (
            session.query(ValuationSnapshot)
            .filter(ValuationSnapshot.company_id == company_id)
            .order_by(ValuationSnapshot.created_at.desc(), ValuationSnapshot.id.desc())
            .first()
        )
        if snapshot is None:
            return None
        answers = get_scored_answers(session, company_id)
    finally:
        session.close()

    scores = snapshot.category_scores()
    gaps = compute_category_value_gaps(
        category_inputs_from_scores(scores, config), snapshot.value_gap, config,
    )

    breakdown = ValueGapBreakdown(
        company_id=company_id,
        snapshot_id=snapshot.id,
        total_value_gap=snapshot.value_gap,
    )
    for gap in gaps:
        drivers = [
            DriverInput(
                driver_id=a.question_id,
                max_impact_points=a.max_impact_points,
                score_value=a.score_value,
                label=a.question_text,
            )
            for a in answers if a.bri_category == gap.category
        ]
        breakdown.categories.append(CategoryBreakdown(
            category=gap.category,
            score=scores[gap.category],
            dollar_impact=gap.dollar_impact,
            share=gap.share,
            drivers=distribute_by_driver(drivers, gap.dollar_impact),
        ))

    breakdown.categories.sort(key=lambda c: c.dollar_impact, reverse=True)
    logger.debug("Value gap breakdown for company %s from snapshot %s", company_id, snapshot.id)
    return breakdown

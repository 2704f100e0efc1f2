"""
ScoreCalculator — Core Score, six category scores and the overall BRI.

Pure functions: callers hand in the company's structural factors, its
effective answers and the validated ScoringConfig.

  Core Score  = 100 × Σ weight_f × levelScore_f      (six structural factors)
  category c  = Σ score × maxPoints / Σ maxPoints    (active answered questions)
  BRI         = Σ score_c × weight_c / Σ weight_c    (assessed categories only)

A category without answered questions is "not assessed" (None), never 0.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, Mapping, Optional

from bri_engine.config import BRI_CATEGORIES
from bri_engine.scoring.config import CORE_FACTORS, ScoringConfig
from bri_engine.scoring.numbers import to_decimal, quantize_points, quantize_score


@dataclass(frozen=True)
class ScoredAnswer:
    """One effective answer, flattened for scoring."""
    question_id: int
    bri_category: str
    max_impact_points: Decimal
    score_value: Decimal
    is_active: bool = True
    question_text: str = ''


@dataclass(frozen=True)
class ScoreResult:
    core_score: Decimal                          # 0–100
    category_scores: Mapping[str, Optional[Decimal]]  # 0–1, None = not assessed
    bri_score: Optional[Decimal]                 # 0–1, None = nothing assessed

    @property
    def bri_score_100(self) -> Optional[Decimal]:
        if self.bri_score is None:
            return None
        return self.bri_score * 100

    @property
    def assessed_categories(self):
        return [c for c, s in self.category_scores.items() if s is not None]


def core_factors_of(company, config: ScoringConfig, annual_revenue=None) -> Dict[str, Optional[str]]:
    """Read the six factor levels off a company-like object.

    A missing revenue_size_category is derived from annual revenue when known.
    """
    factors = {factor: getattr(company, factor, None) for factor in CORE_FACTORS}
    if factors['revenue_size_category'] is None and annual_revenue is not None:
        factors['revenue_size_category'] = config.revenue_size_category_for(annual_revenue)
    return factors


def compute_core_score(factors: Mapping[str, Optional[str]], config: ScoringConfig) -> Decimal:
    """Weighted 0–100 structural score. Unknown or missing levels score the default."""
    total = Decimal('0')
    for factor in CORE_FACTORS:
        weight = config.core_factor_weights[factor]
        total += weight * config.factor_score(factor, factors.get(factor))
    return quantize_points(total * 100)


def compute_category_scores(answers: Iterable[ScoredAnswer]) -> Dict[str, Optional[Decimal]]:
    """Points-weighted effective-answer quality per category."""
    weighted = {c: Decimal('0') for c in BRI_CATEGORIES}
    points = {c: Decimal('0') for c in BRI_CATEGORIES}

    for answer in answers:
        if not answer.is_active or answer.bri_category not in points:
            continue
        score = to_decimal(answer.score_value)
        max_points = to_decimal(answer.max_impact_points)
        if not (0 <= score <= 1):
            raise ValueError(f"Question {answer.question_id}: score_value {score} outside [0, 1]")
        if max_points <= 0:
            raise ValueError(f"Question {answer.question_id}: max_impact_points must be positive")
        weighted[answer.bri_category] += score * max_points
        points[answer.bri_category] += max_points

    return {
        c: (quantize_score(weighted[c] / points[c]) if points[c] > 0 else None)
        for c in BRI_CATEGORIES
    }


def compute_bri_score(category_scores: Mapping[str, Optional[Decimal]], config: ScoringConfig) -> Optional[Decimal]:
    """Weighted BRI over assessed categories, renormalized by their weights."""
    numerator = Decimal('0')
    weight_total = Decimal('0')
    for category, weight in config.category_weights.items():
        score = category_scores.get(category)
        if score is None:
            continue
        numerator += score * weight
        weight_total += weight

    if weight_total == 0:
        return None
    return quantize_score(numerator / weight_total)


def compute_scores(company, answers: Iterable[ScoredAnswer], config: ScoringConfig,
                   annual_revenue=None) -> ScoreResult:
    """Core Score + category scores + BRI for one company."""
    core = compute_core_score(core_factors_of(company, config, annual_revenue), config)
    categories = compute_category_scores(answers)
    return ScoreResult(
        core_score=core,
        category_scores=categories,
        bri_score=compute_bri_score(categories, config),
    )

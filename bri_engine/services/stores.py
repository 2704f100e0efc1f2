"""
Read helpers over the assessment, financial and industry-multiple tables.

All functions take an open session; the caller owns the transaction.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import or_

from bri_engine.models.assessment_response import AssessmentResponse
from bri_engine.models.company import Company
from bri_engine.models.financials import FinancialPeriod
from bri_engine.models.industry_multiple import IndustryMultiple
from bri_engine.scoring.calculator import ScoredAnswer

logger = logging.getLogger('services.stores')


@dataclass(frozen=True)
class IcbClassification:
    industry: Optional[str] = None
    super_sector: Optional[str] = None
    sector: Optional[str] = None
    sub_sector: Optional[str] = None

    @classmethod
    def from_company(cls, company):
        return cls(
            industry=company.icb_industry,
            super_sector=company.icb_super_sector,
            sector=company.icb_sector,
            sub_sector=company.icb_sub_sector,
        )


@dataclass(frozen=True)
class EffectiveResponse:
    question_id: int
    selected_option_id: int
    effective_option_id: int


@dataclass(frozen=True)
class ApplicableMultiple:
    id: int
    ebitda_low: Decimal
    ebitda_high: Decimal
    revenue_low: Decimal
    revenue_high: Decimal
    effective_date: date
    match_level: str


# Most specific first: (level name, company attribute, multiple column)
CLASSIFICATION_LEVELS = [
    ('sub_sector', 'sub_sector', IndustryMultiple.icb_sub_sector),
    ('sector', 'sector', IndustryMultiple.icb_sector),
    ('super_sector', 'super_sector', IndustryMultiple.icb_super_sector),
    ('industry', 'industry', IndustryMultiple.icb_industry),
]


# ── Assessment store ─────────────────────────────────────────────────────────

def get_current_responses(session, company_id) -> List[AssessmentResponse]:
    """Latest response row per question (most recently updated wins)."""
    rows = (
        session.query(AssessmentResponse)
        .filter(AssessmentResponse.company_id == company_id)
        .order_by(AssessmentResponse.updated_at.desc(), AssessmentResponse.id.desc())
        .all()
    )
    seen = set()
    current = []
    for row in rows:
        if row.question_id in seen:
            continue
        seen.add(row.question_id)
        current.append(row)
    return current


def get_current_response(session, company_id, question_id) -> Optional[AssessmentResponse]:
    return (
        session.query(AssessmentResponse)
        .filter(
            AssessmentResponse.company_id == company_id,
            AssessmentResponse.question_id == question_id,
        )
        .order_by(AssessmentResponse.updated_at.desc(), AssessmentResponse.id.desc())
        .first()
    )


def get_effective_responses(session, company_id) -> List[EffectiveResponse]:
    return [
        EffectiveResponse(
            question_id=r.question_id,
            selected_option_id=r.selected_option_id,
            effective_option_id=r.effective_option_id or r.selected_option_id,
        )
        for r in get_current_responses(session, company_id)
    ]


def get_scored_answers(session, company_id) -> List[ScoredAnswer]:
    """Current effective answers on active questions, flattened for scoring."""
    answers = []
    for response in get_current_responses(session, company_id):
        question = response.question
        if not question.is_active:
            continue
        answers.append(ScoredAnswer(
            question_id=question.id,
            bri_category=question.bri_category,
            max_impact_points=question.max_impact_points,
            score_value=response.scoring_option.score_value,
            is_active=question.is_active,
            question_text=question.question_text,
        ))
    return answers


# ── Financial store ──────────────────────────────────────────────────────────

def _latest_financial_value(session, company_id, column):
    row = (
        session.query(column)
        .filter(FinancialPeriod.company_id == company_id, column.isnot(None))
        .order_by(FinancialPeriod.period_end.desc(), FinancialPeriod.id.desc())
        .first()
    )
    return row[0] if row else None


def get_latest_adjusted_ebitda(session, company_id) -> Optional[Decimal]:
    return _latest_financial_value(session, company_id, FinancialPeriod.adjusted_ebitda)


def get_latest_free_cash_flow(session, company_id) -> Optional[Decimal]:
    return _latest_financial_value(session, company_id, FinancialPeriod.free_cash_flow)


def get_latest_annual_revenue(session, company_id) -> Optional[Decimal]:
    return _latest_financial_value(session, company_id, FinancialPeriod.annual_revenue)


# ── Industry multiple store ──────────────────────────────────────────────────

def get_applicable_multiple(session, classification: IcbClassification,
                            as_of: date = None) -> Optional[ApplicableMultiple]:
    """Newest effective multiple for the most specific matching ICB level.

    Cascades sub-sector → sector → super-sector → industry. Rows with an
    effective date after as_of (default today) are ignored.
    """
    as_of = as_of or date.today()
    for level, attr, column in CLASSIFICATION_LEVELS:
        value = getattr(classification, attr)
        if not value:
            continue
        row = (
            session.query(IndustryMultiple)
            .filter(column == value, IndustryMultiple.effective_date <= as_of)
            .order_by(IndustryMultiple.effective_date.desc(), IndustryMultiple.id.desc())
            .first()
        )
        if row is not None:
            return ApplicableMultiple(
                id=row.id,
                ebitda_low=row.ebitda_multiple_low,
                ebitda_high=row.ebitda_multiple_high,
                revenue_low=row.revenue_multiple_low,
                revenue_high=row.revenue_multiple_high,
                effective_date=row.effective_date,
                match_level=level,
            )
    return None


def find_affected_companies(session, sub_sector=None, sector=None,
                            super_sector=None, industry=None) -> List[int]:
    """Companies whose multiple lookup can resolve to a row with this key.

    Matches at any level (a company with a finer classification may still
    cascade down to a coarser row). Ordered most specific match first, then id.
    """
    key = IcbClassification(industry=industry, super_sector=super_sector,
                            sector=sector, sub_sector=sub_sector)
    company_columns = {
        'sub_sector': Company.icb_sub_sector,
        'sector': Company.icb_sector,
        'super_sector': Company.icb_super_sector,
        'industry': Company.icb_industry,
    }
    clauses = [
        company_columns[attr] == getattr(key, attr)
        for _, attr, _ in CLASSIFICATION_LEVELS
        if getattr(key, attr)
    ]
    if not clauses:
        return []

    companies = session.query(Company).filter(or_(*clauses)).order_by(Company.id).all()

    def _rank(company):
        for rank, (_, attr, _) in enumerate(CLASSIFICATION_LEVELS):
            value = getattr(key, attr)
            if value and getattr(company, company_columns[attr].key) == value:
                return rank
        return len(CLASSIFICATION_LEVELS)

    ranked = sorted(companies, key=lambda c: (_rank(c), c.id))
    logger.debug("Multiple key %s matches %d companies", key, len(ranked))
    return [c.id for c in ranked]

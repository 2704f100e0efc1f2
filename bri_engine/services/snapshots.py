"""
SnapshotRecalculator — score a company and append a ValuationSnapshot.

Every call inserts a new snapshot row; prior snapshots are never touched.
Missing inputs come back as typed failures (RecalcResult.cause) and any
other exception is caught here, logged with the company id and reason,
and reported as UNEXPECTED so batch callers can keep going.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from bri_engine.config import (
    NO_MULTIPLE, NO_FINANCIALS, NO_ASSESSMENT, NOT_FOUND, UNEXPECTED,
)
from bri_engine.database import get_session
from bri_engine.models.company import Company
from bri_engine.models.valuation_snapshot import ValuationSnapshot, CATEGORY_SCORE_COLUMNS
from bri_engine.scoring.calculator import compute_scores
from bri_engine.scoring.config import get_scoring_config
from bri_engine.scoring.multiples import derive_multiple
from bri_engine.scoring.numbers import quantize_money
from bri_engine.services.locks import company_lock
from bri_engine.services.stores import (
    IcbClassification,
    get_applicable_multiple,
    get_latest_adjusted_ebitda,
    get_latest_annual_revenue,
    get_latest_free_cash_flow,
    get_scored_answers,
)

logger = logging.getLogger('services.snapshots')


@dataclass
class RecalcResult:
    success: bool
    company_id: int
    snapshot: Optional[ValuationSnapshot] = None
    cause: Optional[str] = None
    error: Optional[str] = None


def _failure(company_id, cause, reason, message):
    logger.warning("Company %s not recalculated (%s, reason=%r): %s", company_id, cause, reason, message)
    return RecalcResult(success=False, company_id=company_id, cause=cause, error=message)


def recalc_snapshot_for_company(company_id, reason, actor_user_id=None,
                                allow_estimated_ebitda=False, config=None) -> RecalcResult:
    """
    Recalculate and persist a new valuation snapshot for one company.

    Args:
        company_id: company to value
        reason: free-text snapshot_reason (e.g. "Task completed: ...")
        actor_user_id: user who triggered the change, if any
        allow_estimated_ebitda: fall back to FCF / fcf_to_ebitda_ratio when
            no adjusted EBITDA has been reported
        config: ScoringConfig (defaults to the validated cached config)

    Never raises.
    """
    try:
        config = config or get_scoring_config()
        with company_lock(company_id):
            return _recalc(company_id, reason, actor_user_id, allow_estimated_ebitda, config)
    except Exception as e:
        logger.exception("Recalculation failed for company %s (reason=%r)", company_id, reason)
        return RecalcResult(success=False, company_id=company_id, cause=UNEXPECTED, error=str(e))


def _resolve_ebitda(session, company_id, allow_estimated, config):
    """Return (ebitda, is_estimated) or (None, False)."""
    ebitda = get_latest_adjusted_ebitda(session, company_id)
    if ebitda is not None:
        return ebitda, False
    if not allow_estimated:
        return None, False

    fcf = get_latest_free_cash_flow(session, company_id)
    if fcf is None:
        return None, False
    estimated = quantize_money(fcf / config.fcf_to_ebitda_ratio)
    logger.info("Company %s: using estimated EBITDA %s from FCF %s", company_id, estimated, fcf)
    return estimated, True


def _recalc(company_id, reason, actor_user_id, allow_estimated_ebitda, config):
    session = get_session()
    try:
        company = session.get(Company, company_id)
        if company is None:
            return _failure(company_id, NOT_FOUND, reason, "company does not exist")

        multiple = get_applicable_multiple(session, IcbClassification.from_company(company))
        if multiple is None:
            return _failure(company_id, NO_MULTIPLE, reason, "no industry multiple for classification")

        ebitda, estimated = _resolve_ebitda(session, company_id, allow_estimated_ebitda, config)
        if ebitda is None:
            return _failure(company_id, NO_FINANCIALS, reason, "no adjusted EBITDA reported")

        scores = compute_scores(
            company,
            get_scored_answers(session, company_id),
            config,
            annual_revenue=get_latest_annual_revenue(session, company_id),
        )
        if scores.bri_score is None:
            return _failure(company_id, NO_ASSESSMENT, reason, "no assessed BRI category")

        derived = derive_multiple(
            multiple.ebitda_low, multiple.ebitda_high,
            scores.core_score, scores.bri_score_100,
            config.alpha, ebitda,
        )

        snapshot = ValuationSnapshot(
            company_id=company_id,
            adjusted_ebitda=quantize_money(ebitda),
            ebitda_is_estimated=estimated,
            industry_multiple_id=multiple.id,
            industry_multiple_low=multiple.ebitda_low,
            industry_multiple_high=multiple.ebitda_high,
            multiple_match_level=multiple.match_level,
            core_score=scores.core_score,
            bri_score=scores.bri_score,
            alpha_constant=config.alpha,
            discount_fraction=derived.discount_fraction,
            base_multiple=derived.base_multiple,
            final_multiple=derived.final_multiple,
            current_value=derived.current_value,
            potential_value=derived.potential_value,
            value_gap=derived.value_gap,
            snapshot_reason=reason,
            created_by_user_id=actor_user_id,
        )
        for category, column in CATEGORY_SCORE_COLUMNS.items():
            setattr(snapshot, column, scores.category_scores.get(category))

        session.add(snapshot)
        session.commit()
        logger.info(
            "Snapshot %s for company %s: BRI=%s core=%s value=%s gap=%s (%s)",
            snapshot.id, company_id, scores.bri_score, scores.core_score,
            derived.current_value, derived.value_gap, reason,
        )
        return RecalcResult(success=True, company_id=company_id, snapshot=snapshot)
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ── Read accessors ───────────────────────────────────────────────────────────

def get_latest_snapshot(company_id) -> Optional[ValuationSnapshot]:
    session = get_session()
    try:
        return (
            session.query(ValuationSnapshot)
            .filter(ValuationSnapshot.company_id == company_id)
            .order_by(ValuationSnapshot.created_at.desc(), ValuationSnapshot.id.desc())
            .first()
        )
    finally:
        session.close()


def get_snapshot(company_id, snapshot_id) -> Optional[ValuationSnapshot]:
    """Fetch one snapshot, scoped to its company."""
    session = get_session()
    try:
        snapshot = session.get(ValuationSnapshot, snapshot_id)
        if snapshot is None or snapshot.company_id != company_id:
            return None
        return snapshot
    finally:
        session.close()


def list_snapshots(company_id, limit=None) -> List[ValuationSnapshot]:
    """Snapshot history, newest first."""
    session = get_session()
    try:
        query = (
            session.query(ValuationSnapshot)
            .filter(ValuationSnapshot.company_id == company_id)
            .order_by(ValuationSnapshot.created_at.desc(), ValuationSnapshot.id.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()
    finally:
        session.close()

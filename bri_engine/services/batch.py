"""
BatchRecalculationCoordinator — re-value every company touched by a multiple change.

Companies are recalculated through a bounded thread pool. Each company is
isolated: a failure (typed or unexpected) is logged with the company id,
counted in `failed`, and never stops the rest of the batch. A cancel_event
stops not-yet-started companies; snapshots already written stay.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from bri_engine.config import BATCH_MAX_WORKERS, BATCH_JOB_TIMEOUT, MULTIPLE_TYPES, UNEXPECTED
from bri_engine.database import get_session
from bri_engine.extensions import get_queue
from bri_engine.models.company import Company
from bri_engine.scoring.config import get_scoring_config
from bri_engine.services.snapshots import RecalcResult, recalc_snapshot_for_company
from bri_engine.services.stores import find_affected_companies

logger = logging.getLogger('services.batch')

RESTORE_REASON = 'Industry multiples restored to defaults'


@dataclass
class BatchResult:
    total_companies: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    cancelled: bool = False
    results: List[RecalcResult] = field(default_factory=list)

    @property
    def failures(self) -> List[RecalcResult]:
        return [r for r in self.results if not r.success]


def run_batch(company_ids: Sequence[int], reason: str, actor_user_id=None,
              max_workers: int = None, cancel_event: Optional[threading.Event] = None,
              config=None) -> BatchResult:
    """Recalculate each company with per-company failure isolation. Never raises."""
    company_ids = list(company_ids)
    result = BatchResult(total_companies=len(company_ids))
    if not company_ids:
        logger.info("Batch '%s': no companies to recalculate", reason)
        return result

    config = config or get_scoring_config()
    workers = max(1, min(max_workers or BATCH_MAX_WORKERS, len(company_ids)))

    def _recalc_one(company_id):
        if cancel_event is not None and cancel_event.is_set():
            return None
        return recalc_snapshot_for_company(company_id, reason, actor_user_id, config=config)

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_recalc_one, cid): cid for cid in company_ids}
        for future in as_completed(futures):
            company_id = futures[future]
            try:
                outcome = future.result()
            except Exception as e:
                logger.error("Batch '%s': company %s raised: %s", reason, company_id, e, exc_info=True)
                outcome = RecalcResult(success=False, company_id=company_id, cause=UNEXPECTED, error=str(e))

            if outcome is None:
                result.skipped += 1
                continue

            result.results.append(outcome)
            if outcome.success:
                result.successful += 1
            else:
                result.failed += 1
                logger.warning(
                    "Batch '%s': company %s failed (%s): %s",
                    reason, company_id, outcome.cause, outcome.error,
                )

    order = {cid: i for i, cid in enumerate(company_ids)}
    result.results.sort(key=lambda r: order.get(r.company_id, len(order)))
    result.cancelled = cancel_event is not None and cancel_event.is_set()

    logger.info(
        "Batch '%s' done: total=%d successful=%d failed=%d skipped=%d%s",
        reason, result.total_companies, result.successful, result.failed, result.skipped,
        ' (cancelled)' if result.cancelled else '',
    )
    return result


def recalc_snapshots_for_multiple_update(sub_sector=None, sector=None, super_sector=None,
                                         industry=None, multiple_type='Both', actor_user_id=None,
                                         max_workers=None, cancel_event=None, config=None) -> BatchResult:
    """Recalculate every company whose multiple lookup can hit the changed key.

    multiple_type only labels the snapshot reason ("Industry EBITDA multiples
    updated"). Valuation always uses the EBITDA range, so a Revenue-only change
    is recalculated exactly like any other.
    """
    if multiple_type not in MULTIPLE_TYPES:
        raise ValueError(f"Unknown multiple type: {multiple_type}. Available: {MULTIPLE_TYPES}")

    session = get_session()
    try:
        company_ids = find_affected_companies(
            session, sub_sector=sub_sector, sector=sector,
            super_sector=super_sector, industry=industry,
        )
    finally:
        session.close()

    logger.info(
        "Multiple change %s/%s/%s/%s affects %d companies",
        industry, super_sector, sector, sub_sector, len(company_ids),
    )
    return run_batch(
        company_ids, f"Industry {multiple_type} multiples updated",
        actor_user_id=actor_user_id, max_workers=max_workers,
        cancel_event=cancel_event, config=config,
    )


def recalc_all_companies(reason=RESTORE_REASON, actor_user_id=None, max_workers=None,
                         cancel_event=None, config=None) -> BatchResult:
    """Recalculate every company in the system (e.g. after restoring defaults)."""
    session = get_session()
    try:
        company_ids = [row[0] for row in session.query(Company.id).order_by(Company.id).all()]
    finally:
        session.close()
    return run_batch(
        company_ids, reason, actor_user_id=actor_user_id,
        max_workers=max_workers, cancel_event=cancel_event, config=config,
    )


# ── Deferred (RQ) entry points ───────────────────────────────────────────────
# Per-company ordering still holds: each recalculation takes the company lock.

def enqueue_multiple_update(sub_sector=None, sector=None, super_sector=None, industry=None,
                            multiple_type='Both', actor_user_id=None):
    """Queue recalc_snapshots_for_multiple_update as a background RQ job."""
    job = get_queue().enqueue(
        recalc_snapshots_for_multiple_update,
        sub_sector, sector, super_sector, industry, multiple_type, actor_user_id,
        job_timeout=BATCH_JOB_TIMEOUT,
    )
    logger.info("Enqueued multiple-update recalculation job %s", job.id)
    return job


def enqueue_full_recalculation(reason=RESTORE_REASON, actor_user_id=None):
    """Queue recalc_all_companies as a background RQ job."""
    job = get_queue().enqueue(
        recalc_all_companies, reason, actor_user_id,
        job_timeout=BATCH_JOB_TIMEOUT,
    )
    logger.info("Enqueued full recalculation job %s", job.id)
    return job

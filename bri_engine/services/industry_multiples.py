"""
Industry multiple administration — create, delete, restore defaults.

Every change triggers the batch coordinator for the affected companies.
Pass recalculate=False to only write the table (e.g. when the caller will
enqueue the batch itself).
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional

from bri_engine.database import get_session
from bri_engine.models.industry_multiple import IndustryMultiple
from bri_engine.scoring.config import get_scoring_config
from bri_engine.scoring.numbers import to_decimal
from bri_engine.services.batch import (
    BatchResult, RESTORE_REASON, recalc_all_companies, recalc_snapshots_for_multiple_update,
)

logger = logging.getLogger('services.industry_multiples')


@dataclass
class MultipleChange:
    multiple_ids: List[int] = field(default_factory=list)
    batch: Optional[BatchResult] = None

    @property
    def count(self):
        return len(self.multiple_ids)


def _check_range(low, high, label):
    low, high = to_decimal(low), to_decimal(high)
    if low < 0:
        raise ValueError(f"{label} multiple low must not be negative")
    if low > high:
        raise ValueError(f"{label} multiple low {low} exceeds high {high}")
    return low, high


def create_industry_multiple(icb_industry, icb_super_sector, icb_sector, icb_sub_sector,
                             ebitda_low, ebitda_high, revenue_low, revenue_high,
                             effective_date: date = None, source=None,
                             actor_user_id=None, recalculate=True, max_workers=None) -> MultipleChange:
    """Insert a new multiple row and recalculate the companies it affects.

    Raises:
        ValueError: low > high for either multiple pair
    """
    ebitda_low, ebitda_high = _check_range(ebitda_low, ebitda_high, 'EBITDA')
    revenue_low, revenue_high = _check_range(revenue_low, revenue_high, 'Revenue')

    session = get_session()
    try:
        row = IndustryMultiple(
            icb_industry=icb_industry,
            icb_super_sector=icb_super_sector,
            icb_sector=icb_sector,
            icb_sub_sector=icb_sub_sector,
            effective_date=effective_date or date.today(),
            ebitda_multiple_low=ebitda_low,
            ebitda_multiple_high=ebitda_high,
            revenue_multiple_low=revenue_low,
            revenue_multiple_high=revenue_high,
            source=source,
        )
        session.add(row)
        session.commit()
        change = MultipleChange(multiple_ids=[row.id])
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Industry multiple %s created for %s/%s", change.multiple_ids[0], icb_sector, icb_sub_sector)
    if recalculate:
        change.batch = recalc_snapshots_for_multiple_update(
            icb_sub_sector, icb_sector, icb_super_sector, icb_industry,
            multiple_type='Both', actor_user_id=actor_user_id, max_workers=max_workers,
        )
    return change


def delete_industry_multiple(multiple_id, actor_user_id=None, recalculate=True,
                             max_workers=None) -> Optional[MultipleChange]:
    """Delete a multiple row and recalculate its companies. None if it does not exist."""
    session = get_session()
    try:
        row = session.get(IndustryMultiple, multiple_id)
        if row is None:
            return None
        key = (row.icb_sub_sector, row.icb_sector, row.icb_super_sector, row.icb_industry)
        session.delete(row)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Industry multiple %s deleted", multiple_id)
    change = MultipleChange(multiple_ids=[multiple_id])
    if recalculate:
        sub_sector, sector, super_sector, industry = key
        change.batch = recalc_snapshots_for_multiple_update(
            sub_sector, sector, super_sector, industry,
            multiple_type='Both', actor_user_id=actor_user_id, max_workers=max_workers,
        )
    return change


def restore_default_multiples(actor_user_id=None, recalculate=True, max_workers=None,
                              config=None) -> MultipleChange:
    """Replace the whole table with the configured defaults, then recalculate every company."""
    config = config or get_scoring_config()

    session = get_session()
    try:
        deleted = session.query(IndustryMultiple).delete()
        rows = [
            IndustryMultiple(
                icb_industry=d.icb_industry,
                icb_super_sector=d.icb_super_sector,
                icb_sector=d.icb_sector,
                icb_sub_sector=d.icb_sub_sector,
                effective_date=config.default_multiples_effective_date,
                ebitda_multiple_low=d.ebitda_low,
                ebitda_multiple_high=d.ebitda_high,
                revenue_multiple_low=d.revenue_low,
                revenue_multiple_high=d.revenue_high,
                source='default',
            )
            for d in config.default_multiples
        ]
        session.add_all(rows)
        session.commit()
        change = MultipleChange(multiple_ids=[r.id for r in rows])
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Industry multiples restored: %d removed, %d defaults written", deleted, change.count)
    if recalculate:
        change.batch = recalc_all_companies(
            RESTORE_REASON, actor_user_id=actor_user_id, max_workers=max_workers, config=config,
        )
    return change

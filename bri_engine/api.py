"""
Public entry points for the HTTP layer and other collaborators.
"""
from bri_engine.scoring.calculator import compute_scores
from bri_engine.scoring.multiples import derive_multiple
from bri_engine.scoring.value_gap import (
    CategoryInput, DriverInput, distribute_by_category, distribute_by_driver,
)
from bri_engine.services.batch import (
    BatchResult,
    enqueue_full_recalculation,
    enqueue_multiple_update,
    recalc_all_companies,
    recalc_snapshots_for_multiple_update,
)
from bri_engine.services.breakdown import compute_category_value_gaps, compute_value_gap_breakdown
from bri_engine.services.drift import generate_drift_report, get_drift_report, mark_report_viewed
from bri_engine.services.industry_multiples import (
    create_industry_multiple, delete_industry_multiple, restore_default_multiples,
)
from bri_engine.services.snapshots import (
    RecalcResult, get_latest_snapshot, get_snapshot, list_snapshots, recalc_snapshot_for_company,
)
from bri_engine.services.upgrades import delete_task, handle_task_status_change

__all__ = [
    'BatchResult',
    'CategoryInput',
    'DriverInput',
    'RecalcResult',
    'compute_category_value_gaps',
    'compute_scores',
    'compute_value_gap_breakdown',
    'create_industry_multiple',
    'delete_industry_multiple',
    'delete_task',
    'derive_multiple',
    'distribute_by_category',
    'distribute_by_driver',
    'enqueue_full_recalculation',
    'enqueue_multiple_update',
    'generate_drift_report',
    'get_drift_report',
    'get_latest_snapshot',
    'get_snapshot',
    'handle_task_status_change',
    'list_snapshots',
    'mark_report_viewed',
    'recalc_all_companies',
    'recalc_snapshot_for_company',
    'recalc_snapshots_for_multiple_update',
    'restore_default_multiples',
]

"""
DriftReporter — compare the snapshots bracketing a period.

The start snapshot is the latest one at or before period_start (falling
back to the first snapshot inside the period); the end snapshot is the
latest at or before period_end. BRI drift is measured in points (0–100):

  Δbri < -critical → CRITICAL
  Δbri < -high     → HIGH
  otherwise        → INFO

HIGH and CRITICAL reports also raise a BRI_DRIFT Signal.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from typing import Dict, List, Optional

from bri_engine.config import (
    CATEGORY_LABELS, SEVERITY_CRITICAL, SEVERITY_HIGH, SEVERITY_INFO,
)
from bri_engine.database import get_session
from bri_engine.models.drift_report import DriftReport
from bri_engine.models.signal import Signal
from bri_engine.models.task import Task
from bri_engine.models.valuation_snapshot import ValuationSnapshot
from bri_engine.scoring.config import get_scoring_config
from bri_engine.scoring.numbers import quantize_money, quantize_points, quantize_score

logger = logging.getLogger('services.drift')

IMPROVING = 'improving'
STABLE = 'stable'
DECLINING = 'declining'
NOT_ASSESSED = 'not_assessed'

DRIFT_SIGNAL_TYPE = 'BRI_DRIFT'


@dataclass
class CategoryChange:
    category: str
    start: Optional[Decimal]
    end: Optional[Decimal]
    delta: Optional[Decimal]
    direction: str

    def to_dict(self) -> Dict:
        return {
            'category': self.category,
            'label': CATEGORY_LABELS.get(self.category, self.category),
            'start': None if self.start is None else float(self.start),
            'end': None if self.end is None else float(self.end),
            'delta': None if self.delta is None else float(self.delta),
            'direction': self.direction,
        }


@dataclass
class DriftCalculation:
    bri_start: Optional[Decimal] = None
    bri_end: Optional[Decimal] = None
    bri_delta: Decimal = Decimal('0')          # BRI points
    valuation_start: Optional[Decimal] = None
    valuation_end: Optional[Decimal] = None
    valuation_delta: Decimal = Decimal('0')
    category_changes: List[CategoryChange] = field(default_factory=list)
    overall_direction: str = STABLE
    severity: str = SEVERITY_INFO


def _direction(delta: Decimal, stability: Decimal) -> str:
    if delta > stability:
        return IMPROVING
    if delta < -stability:
        return DECLINING
    return STABLE


def classify_severity(bri_delta_points, thresholds) -> str:
    if bri_delta_points < -thresholds.critical:
        return SEVERITY_CRITICAL
    if bri_delta_points < -thresholds.high:
        return SEVERITY_HIGH
    return SEVERITY_INFO


def calculate_drift(start, end, config) -> DriftCalculation:
    """Deltas between two snapshot-like objects. Either may be None."""
    calc = DriftCalculation()
    if start is None or end is None:
        return calc

    stability = config.drift.stability
    calc.bri_start, calc.bri_end = start.bri_score, end.bri_score
    calc.bri_delta = quantize_points((end.bri_score - start.bri_score) * 100)
    calc.valuation_start, calc.valuation_end = start.current_value, end.current_value
    calc.valuation_delta = quantize_money(end.current_value - start.current_value)

    start_scores, end_scores = start.category_scores(), end.category_scores()
    weighted_delta = Decimal('0')
    weight_total = Decimal('0')
    for category, weight in config.category_weights.items():
        before, after = start_scores.get(category), end_scores.get(category)
        if before is None or after is None:
            calc.category_changes.append(CategoryChange(category, before, after, None, NOT_ASSESSED))
            continue
        delta = quantize_score(after - before)
        calc.category_changes.append(CategoryChange(category, before, after, delta, _direction(delta, stability)))
        weighted_delta += delta * weight
        weight_total += weight

    if weight_total:
        calc.overall_direction = _direction(weighted_delta / weight_total, stability)
    calc.severity = classify_severity(calc.bri_delta, config.drift)
    return calc


def _money(value) -> str:
    return f"${abs(value):,.2f}"


def build_summary(calc: DriftCalculation, period_start, period_end,
                  signals_count=0, tasks_completed=0, tasks_added=0) -> str:
    """One-paragraph narrative of what moved during the period."""
    window = f"between {period_start:%Y-%m-%d} and {period_end:%Y-%m-%d}"
    if calc.bri_end is None:
        return f"No valuation history {window}."

    parts = []
    if calc.bri_delta == 0:
        parts.append(f"Buyer readiness held at {calc.bri_end * 100:.1f} {window}")
    else:
        verb = 'improved' if calc.bri_delta > 0 else 'declined'
        parts.append(
            f"Buyer readiness {verb} {abs(calc.bri_delta)} points "
            f"({calc.bri_start * 100:.1f} → {calc.bri_end * 100:.1f}) {window}"
        )
    if calc.valuation_delta > 0:
        parts[0] += f", and estimated value rose {_money(calc.valuation_delta)}"
    elif calc.valuation_delta < 0:
        parts[0] += f", and estimated value fell {_money(calc.valuation_delta)}"
    parts[0] += '.'

    moved = [c for c in calc.category_changes if c.delta is not None and c.direction != STABLE]
    if moved:
        biggest = max(moved, key=lambda c: abs(c.delta))
        parts.append(
            f"Largest change: {CATEGORY_LABELS.get(biggest.category, biggest.category)} "
            f"{biggest.direction} {abs(biggest.delta) * 100:.1f} points."
        )

    parts.append(
        f"{tasks_completed} task(s) completed, {tasks_added} added, "
        f"{signals_count} signal(s) raised."
    )
    return ' '.join(parts)


# ── Persistence ──────────────────────────────────────────────────────────────

def _as_start(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _as_end(value) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def _latest_at_or_before(session, company_id, moment) -> Optional[ValuationSnapshot]:
    return (
        session.query(ValuationSnapshot)
        .filter(ValuationSnapshot.company_id == company_id, ValuationSnapshot.created_at <= moment)
        .order_by(ValuationSnapshot.created_at.desc(), ValuationSnapshot.id.desc())
        .first()
    )


def _first_within(session, company_id, start, end) -> Optional[ValuationSnapshot]:
    return (
        session.query(ValuationSnapshot)
        .filter(
            ValuationSnapshot.company_id == company_id,
            ValuationSnapshot.created_at >= start,
            ValuationSnapshot.created_at <= end,
        )
        .order_by(ValuationSnapshot.created_at.asc(), ValuationSnapshot.id.asc())
        .first()
    )


def _count(session, model, company_id, column, start, end) -> int:
    return (
        session.query(model)
        .filter(model.company_id == company_id, column >= start, column <= end)
        .count()
    )


def generate_drift_report(company_id, period_start, period_end, config=None) -> DriftReport:
    """
    Build and persist a DriftReport for [period_start, period_end].

    Dates cover whole days; datetimes are used as-is.

    Raises:
        ValueError: period_start after period_end
    """
    start, end = _as_start(period_start), _as_end(period_end)
    if start > end:
        raise ValueError(f"Drift period start {start} is after end {end}")
    config = config or get_scoring_config()

    session = get_session()
    try:
        end_snapshot = _latest_at_or_before(session, company_id, end)
        start_snapshot = _latest_at_or_before(session, company_id, start) or _first_within(
            session, company_id, start, end,
        )
        calc = calculate_drift(start_snapshot, end_snapshot, config)

        signals_count = _count(session, Signal, company_id, Signal.created_at, start, end)
        tasks_completed = _count(session, Task, company_id, Task.completed_at, start, end)
        tasks_added = _count(session, Task, company_id, Task.created_at, start, end)

        report = DriftReport(
            company_id=company_id,
            period_start=start,
            period_end=end,
            start_snapshot_id=start_snapshot.id if start_snapshot else None,
            end_snapshot_id=end_snapshot.id if end_snapshot else None,
            bri_score_start=calc.bri_start,
            bri_score_end=calc.bri_end,
            valuation_start=calc.valuation_start,
            valuation_end=calc.valuation_end,
            bri_delta=calc.bri_delta,
            valuation_delta=calc.valuation_delta,
            category_changes=[c.to_dict() for c in calc.category_changes],
            overall_direction=calc.overall_direction,
            severity=calc.severity,
            summary=build_summary(calc, start, end, signals_count, tasks_completed, tasks_added),
            signals_count=signals_count,
            tasks_completed_count=tasks_completed,
            tasks_added_count=tasks_added,
        )
        session.add(report)
        session.flush()

        if calc.severity in (SEVERITY_HIGH, SEVERITY_CRITICAL):
            session.add(Signal(
                company_id=company_id,
                signal_type=DRIFT_SIGNAL_TYPE,
                severity=calc.severity,
                title=f"Buyer readiness dropped {abs(calc.bri_delta)} points",
                description=report.summary,
                data={
                    'bri_delta': float(calc.bri_delta),
                    'valuation_delta': float(calc.valuation_delta),
                    'period_start': start.isoformat(),
                    'period_end': end.isoformat(),
                },
                drift_report_id=report.id,
            ))
            logger.warning(
                "Company %s BRI drift %s points (%s)", company_id, calc.bri_delta, calc.severity,
            )

        session.commit()
        logger.info("Drift report %s for company %s: %s", report.id, company_id, calc.severity)
        return report
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def get_drift_report(report_id) -> Optional[DriftReport]:
    session = get_session()
    try:
        return session.get(DriftReport, report_id)
    finally:
        session.close()


def mark_report_viewed(report_id, viewed_at: datetime = None) -> Optional[DriftReport]:
    """Set viewed_at once. Later calls leave the first timestamp in place."""
    session = get_session()
    try:
        report = session.get(DriftReport, report_id)
        if report is None:
            return None
        if report.viewed_at is None:
            report.viewed_at = viewed_at or datetime.now()
            session.commit()
        return report
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

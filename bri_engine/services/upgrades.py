"""
AnswerUpgradePropagator — task status changes → answer upgrades, snapshots, new tasks.

On COMPLETED:
  1. Move the linked response's effective option up to the task's target
     option (never down), in the same transaction as the status change.
  2. Recalculate the valuation snapshot ("Task completed: <title>").
  3. Find next-tier templates for the now-effective option and materialize
     the ones the company does not have yet.
On CANCELLED or deletion the open-task set shrinks, so normalized values
are recomputed from raw_impact.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from bri_engine.config import TASK_STATUSES, OPEN_TASK_STATUSES
from bri_engine.database import get_session
from bri_engine.models.question import QuestionOption
from bri_engine.models.task import Task, TaskTemplate
from bri_engine.scoring.numbers import to_decimal, quantize_fraction
from bri_engine.services.snapshots import RecalcResult, recalc_snapshot_for_company
from bri_engine.services.stores import get_current_response

logger = logging.getLogger('services.upgrades')


@dataclass(frozen=True)
class UnlockCandidate:
    """A next-tier task the company qualifies for after an upgrade."""
    template_id: int
    company_id: int
    question_id: int
    upgrades_from_option_id: int
    upgrades_to_option_id: int
    title: str
    description: str
    bri_category: Optional[str]
    raw_impact: Decimal


@dataclass
class TaskStatusChange:
    task_id: int
    company_id: int
    previous_status: str
    status: str
    answer_upgraded: bool = False
    recalc: Optional[RecalcResult] = None
    created_task_ids: List[int] = field(default_factory=list)
    renormalized_count: int = 0


# ── Pure helpers ─────────────────────────────────────────────────────────────

def normalize_task_values(raw_impacts: Sequence) -> List[Decimal]:
    """raw / max(raw) for each task; all zeros when the max is not positive."""
    values = [to_decimal(v) for v in raw_impacts]
    if not values:
        return []
    top = max(values)
    if top <= 0:
        return [Decimal('0') for _ in values]
    return [quantize_fraction(max(v, Decimal('0')) / top) for v in values]


# ── Session-level steps ──────────────────────────────────────────────────────

def apply_answer_upgrade(session, company_id, question_id, to_option_id) -> bool:
    """Point the current response's effective option at to_option_id if that scores higher.

    Returns True when the effective option changed.
    """
    response = get_current_response(session, company_id, question_id)
    if response is None:
        logger.info("Company %s has no response to question %s, nothing to upgrade", company_id, question_id)
        return False

    target = session.get(QuestionOption, to_option_id)
    if target is None or target.question_id != question_id:
        logger.warning("Upgrade target option %s does not belong to question %s", to_option_id, question_id)
        return False

    current = response.scoring_option
    if current.score_value >= target.score_value:
        logger.debug(
            "Company %s question %s already at %s >= %s, no upgrade",
            company_id, question_id, current.score_value, target.score_value,
        )
        return False

    response.effective_option_id = target.id
    logger.info(
        "Company %s question %s effective option %s → %s",
        company_id, question_id, current.id, target.id,
    )
    return True


def find_unlock_candidates(session, task) -> List[UnlockCandidate]:
    """Templates whose starting tier is the task question's now-effective option."""
    if not task.linked_question_id or not task.upgrades_to_option_id:
        return []

    response = get_current_response(session, task.company_id, task.linked_question_id)
    from_option_id = task.upgrades_to_option_id
    if response is not None:
        from_option_id = response.effective_option_id or response.selected_option_id

    templates = (
        session.query(TaskTemplate)
        .filter(
            TaskTemplate.question_id == task.linked_question_id,
            TaskTemplate.upgrades_from_option_id == from_option_id,
        )
        .order_by(TaskTemplate.id)
        .all()
    )
    return [
        UnlockCandidate(
            template_id=t.id,
            company_id=task.company_id,
            question_id=t.question_id,
            upgrades_from_option_id=t.upgrades_from_option_id,
            upgrades_to_option_id=t.upgrades_to_option_id,
            title=t.title,
            description=t.description or '',
            bri_category=t.bri_category,
            raw_impact=t.raw_impact,
        )
        for t in templates
    ]


def _renormalize(session, company_id) -> int:
    tasks = (
        session.query(Task)
        .filter(Task.company_id == company_id, Task.status.in_(OPEN_TASK_STATUSES))
        .order_by(Task.id)
        .all()
    )
    for task, value in zip(tasks, normalize_task_values([t.raw_impact for t in tasks])):
        task.normalized_value = value
    return len(tasks)


# ── Public API ───────────────────────────────────────────────────────────────

def materialize_tasks(candidates: Sequence[UnlockCandidate]) -> List[int]:
    """Create tasks for candidates the company does not already have.

    A task counts as existing when the company has any task (any status) for
    the same question and upgrade pair, so repeated calls create nothing new.
    """
    if not candidates:
        return []
    session = get_session()
    try:
        created = []
        for c in candidates:
            exists = (
                session.query(Task.id)
                .filter(
                    Task.company_id == c.company_id,
                    Task.linked_question_id == c.question_id,
                    Task.upgrades_from_option_id == c.upgrades_from_option_id,
                    Task.upgrades_to_option_id == c.upgrades_to_option_id,
                )
                .first()
            )
            if exists:
                continue
            task = Task(
                company_id=c.company_id,
                title=c.title,
                description=c.description,
                bri_category=c.bri_category,
                status='PENDING',
                raw_impact=c.raw_impact,
                normalized_value=Decimal('0'),
                linked_question_id=c.question_id,
                upgrades_from_option_id=c.upgrades_from_option_id,
                upgrades_to_option_id=c.upgrades_to_option_id,
                template_id=c.template_id,
            )
            session.add(task)
            session.flush()
            created.append(task.id)
        session.commit()
        if created:
            logger.info("Unlocked %d next-tier task(s): %s", len(created), created)
        return created
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def renormalize_open_tasks(company_id) -> int:
    """Recompute normalized_value over the company's open tasks. Returns the task count."""
    session = get_session()
    try:
        count = _renormalize(session, company_id)
        session.commit()
        return count
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def handle_task_status_change(task_id, new_status, actor_user_id=None, config=None) -> TaskStatusChange:
    """
    Apply a task status change and its side effects.

    Completion effects run on every COMPLETED call and are individually
    idempotent, so a redelivered completion event is safe.

    Raises:
        ValueError: unknown status or task
    """
    if new_status not in TASK_STATUSES:
        raise ValueError(f"Unknown task status: {new_status}")

    session = get_session()
    try:
        task = session.get(Task, task_id)
        if task is None:
            raise ValueError(f"Task {task_id} not found")

        change = TaskStatusChange(
            task_id=task.id,
            company_id=task.company_id,
            previous_status=task.status,
            status=new_status,
        )
        title = task.title
        task.status = new_status

        if new_status == 'COMPLETED':
            if task.completed_at is None:
                task.completed_at = datetime.now()
            if task.linked_question_id and task.upgrades_to_option_id:
                change.answer_upgraded = apply_answer_upgrade(
                    session, task.company_id, task.linked_question_id, task.upgrades_to_option_id,
                )

        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Task %s: %s → %s", task_id, change.previous_status, new_status)

    if new_status == 'COMPLETED':
        change.recalc = recalc_snapshot_for_company(
            change.company_id, f"Task completed: {title}", actor_user_id, config=config,
        )

        session = get_session()
        try:
            task = session.get(Task, task_id)
            candidates = find_unlock_candidates(session, task)
        finally:
            session.close()
        change.created_task_ids = materialize_tasks(candidates)

    # Open-set membership changed
    if new_status not in OPEN_TASK_STATUSES or change.previous_status not in OPEN_TASK_STATUSES:
        change.renormalized_count = renormalize_open_tasks(change.company_id)

    return change


def delete_task(task_id) -> bool:
    """Delete a task and renormalize the remaining open tasks. False if missing."""
    session = get_session()
    try:
        task = session.get(Task, task_id)
        if task is None:
            return False
        company_id = task.company_id
        session.delete(task)
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    logger.info("Task %s deleted", task_id)
    renormalize_open_tasks(company_id)
    return True

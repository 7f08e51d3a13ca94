"""
State machine for school interview selections.

Kept separate from the application lifecycle: selections are owned by the
school, can coexist with a teacher's own application for the same job, and
can be deleted outright.

    selected_for_interview → interview_scheduled → interview_completed
        → offer_extended → offer_accepted

offer_declined and withdrawn are reachable from any non-terminal status.
Re-submitting the current status is a no-op.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from placement.models.interview_selection import InterviewSelection, InterviewSelectionStatus
from placement.models.job import Job
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.services.errors import (
    DuplicateSelectionError,
    InvalidTransitionError,
    NotFoundError,
    PaymentRequiredError,
)

logger = logging.getLogger(__name__)


SELECTION_ORDER: List[InterviewSelectionStatus] = [
    InterviewSelectionStatus.SELECTED_FOR_INTERVIEW,
    InterviewSelectionStatus.INTERVIEW_SCHEDULED,
    InterviewSelectionStatus.INTERVIEW_COMPLETED,
    InterviewSelectionStatus.OFFER_EXTENDED,
    InterviewSelectionStatus.OFFER_ACCEPTED,
]

_EXITS = [InterviewSelectionStatus.OFFER_DECLINED, InterviewSelectionStatus.WITHDRAWN]

ALLOWED_SELECTION_TRANSITIONS: Dict[InterviewSelectionStatus, List[InterviewSelectionStatus]] = {
    InterviewSelectionStatus.SELECTED_FOR_INTERVIEW: SELECTION_ORDER[1:] + _EXITS,
    InterviewSelectionStatus.INTERVIEW_SCHEDULED: SELECTION_ORDER[2:] + _EXITS,
    InterviewSelectionStatus.INTERVIEW_COMPLETED: SELECTION_ORDER[3:] + _EXITS,
    InterviewSelectionStatus.OFFER_EXTENDED: SELECTION_ORDER[4:] + _EXITS,
    InterviewSelectionStatus.OFFER_ACCEPTED: [],  # Terminal state (success)
    InterviewSelectionStatus.OFFER_DECLINED: [],  # Terminal state
    InterviewSelectionStatus.WITHDRAWN: [],       # Terminal state
}

TERMINAL_SELECTION_STATUSES = {
    InterviewSelectionStatus.OFFER_ACCEPTED,
    InterviewSelectionStatus.OFFER_DECLINED,
    InterviewSelectionStatus.WITHDRAWN,
}


def can_transition_selection(
    from_status: InterviewSelectionStatus,
    to_status: InterviewSelectionStatus,
) -> bool:
    return to_status in ALLOWED_SELECTION_TRANSITIONS.get(from_status, [])


def is_terminal_selection(status: InterviewSelectionStatus) -> bool:
    return status in TERMINAL_SELECTION_STATUSES


def _require_paid(account: SchoolAccount) -> None:
    if not account.has_paid:
        raise PaymentRequiredError("Upgrade your school account to manage interview selections")


async def get_selection_for_account(
    db: AsyncSession,
    account: SchoolAccount,
    selection_id: int,
) -> InterviewSelection:
    """Fetch a selection owned by the account (other schools' selections look missing)."""
    result = await db.execute(
        select(InterviewSelection).where(
            and_(
                InterviewSelection.id == selection_id,
                InterviewSelection.school_account_id == account.id,
            )
        )
    )
    selection = result.scalar_one_or_none()
    if not selection:
        raise NotFoundError(f"Interview selection {selection_id} not found")
    return selection


async def create_selection(
    db: AsyncSession,
    account: SchoolAccount,
    teacher_id: int,
    job_id: int,
    notes: Optional[str] = None,
) -> InterviewSelection:
    """
    Shortlist a teacher for one of the school's own job postings.

    Raises:
        PaymentRequiredError: School has not paid
        NotFoundError: Job not owned by the school, or teacher missing/inactive
        DuplicateSelectionError: Teacher already selected for this job
    """
    _require_paid(account)

    result = await db.execute(
        select(Job).where(and_(Job.id == job_id, Job.school_account_id == account.id))
    )
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError("Job not found")

    result = await db.execute(select(Teacher).where(Teacher.id == teacher_id))
    teacher = result.scalar_one_or_none()
    if not teacher or not teacher.is_active:
        raise NotFoundError("Teacher not found")

    existing = await db.execute(
        select(InterviewSelection).where(
            and_(
                InterviewSelection.teacher_id == teacher_id,
                InterviewSelection.job_id == job_id,
            )
        )
    )
    if existing.scalar_one_or_none():
        raise DuplicateSelectionError("This teacher is already selected for this job")

    now = datetime.utcnow()
    selection = InterviewSelection(
        school_account_id=account.id,
        teacher_id=teacher_id,
        job_id=job_id,
        status=InterviewSelectionStatus.SELECTED_FOR_INTERVIEW.value,
        notes=notes,
        selected_at=now,
        status_updated_at=now,
    )
    db.add(selection)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateSelectionError("This teacher is already selected for this job")
    await db.refresh(selection)

    logger.info(f"School account {account.id} selected teacher {teacher_id} for job {job_id}")
    return selection


async def update_selection(
    db: AsyncSession,
    account: SchoolAccount,
    selection_id: int,
    status: Optional[InterviewSelectionStatus] = None,
    notes: Optional[str] = None,
    notes_set: bool = False,
) -> InterviewSelection:
    """
    Change a selection's status and/or notes.

    Picking the status the selection is already in changes nothing.

    Raises:
        InvalidTransitionError: Backward move or change out of a terminal status
    """
    _require_paid(account)
    selection = await get_selection_for_account(db, account, selection_id)
    current = InterviewSelectionStatus(selection.status)
    changed = False

    if status is not None and status != current:
        if not can_transition_selection(current, status):
            logger.warning(
                f"Rejected selection transition {current.value} → {status.value}",
                extra={"selection_id": selection_id, "school_account_id": account.id},
            )
            if is_terminal_selection(current):
                raise InvalidTransitionError(
                    f"Selection is already {current.value} and can no longer change status"
                )
            raise InvalidTransitionError(
                f"Invalid status change from {current.value} to {status.value}: "
                f"selections can only move forward, be declined or withdrawn"
            )
        selection.status = status.value
        selection.status_updated_at = datetime.utcnow()
        changed = True
        logger.info(
            f"Interview selection transition: {current.value} → {status.value}",
            extra={"selection_id": selection_id, "teacher_id": selection.teacher_id, "job_id": selection.job_id},
        )

    if notes_set and notes != selection.notes:
        selection.notes = notes
        changed = True

    if changed:
        await db.commit()
        await db.refresh(selection)

    return selection


async def delete_selection(db: AsyncSession, account: SchoolAccount, selection_id: int) -> None:
    """Remove a selection entirely (no soft delete)."""
    _require_paid(account)
    selection = await get_selection_for_account(db, account, selection_id)
    await db.delete(selection)
    await db.commit()
    logger.info(f"Deleted interview selection {selection_id} (school account {account.id})")


async def list_selections(
    db: AsyncSession,
    school_account_id: Optional[int] = None,
    status: Optional[InterviewSelectionStatus] = None,
    job_id: Optional[int] = None,
) -> Sequence[InterviewSelection]:
    """Selections newest first. No account filter means all schools (admin view)."""
    query = select(InterviewSelection)
    filters = []
    if school_account_id is not None:
        filters.append(InterviewSelection.school_account_id == school_account_id)
    if status is not None:
        filters.append(InterviewSelection.status == status.value)
    if job_id is not None:
        filters.append(InterviewSelection.job_id == job_id)
    if filters:
        query = query.where(and_(*filters))

    query = query.order_by(InterviewSelection.selected_at.desc(), InterviewSelection.id.desc())
    result = await db.execute(query)
    return result.scalars().all()

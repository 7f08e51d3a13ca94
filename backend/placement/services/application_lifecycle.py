"""
State machine for teacher applications.
ALL application status changes must go through this module.

    pending → document_verification → school_matching | interview_scheduled
            → interview_completed → offer_extended → placed

Progress only moves forward (skipping ahead is allowed). Any non-terminal
status may move to declined. placed and declined are terminal.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from placement.models.application import Application, ApplicationStatus
from placement.models.job import Job
from placement.models.school import School
from placement.models.teacher import Teacher
from placement.services.errors import (
    ConflictError,
    DuplicateApplicationError,
    InvalidTransitionError,
    NotFoundError,
    PaymentRequiredError,
    PermissionDeniedError,
)

# Configure logger
logger = logging.getLogger(__name__)


# Forward order of the non-declined statuses
STATUS_ORDER: List[ApplicationStatus] = [
    ApplicationStatus.PENDING,
    ApplicationStatus.DOCUMENT_VERIFICATION,
    ApplicationStatus.SCHOOL_MATCHING,
    ApplicationStatus.INTERVIEW_SCHEDULED,
    ApplicationStatus.INTERVIEW_COMPLETED,
    ApplicationStatus.OFFER_EXTENDED,
    ApplicationStatus.PLACED,
]

TERMINAL_STATUSES = {ApplicationStatus.PLACED, ApplicationStatus.DECLINED}


def _forward_from(status: ApplicationStatus) -> List[ApplicationStatus]:
    index = STATUS_ORDER.index(status)
    return STATUS_ORDER[index + 1:] + [ApplicationStatus.DECLINED]


# Define allowed status transitions
ALLOWED_TRANSITIONS: Dict[ApplicationStatus, List[ApplicationStatus]] = {
    ApplicationStatus.PENDING: _forward_from(ApplicationStatus.PENDING),
    ApplicationStatus.DOCUMENT_VERIFICATION: _forward_from(ApplicationStatus.DOCUMENT_VERIFICATION),
    ApplicationStatus.SCHOOL_MATCHING: _forward_from(ApplicationStatus.SCHOOL_MATCHING),
    ApplicationStatus.INTERVIEW_SCHEDULED: _forward_from(ApplicationStatus.INTERVIEW_SCHEDULED),
    ApplicationStatus.INTERVIEW_COMPLETED: _forward_from(ApplicationStatus.INTERVIEW_COMPLETED),
    ApplicationStatus.OFFER_EXTENDED: _forward_from(ApplicationStatus.OFFER_EXTENDED),
    ApplicationStatus.PLACED: [],    # Terminal state (success)
    ApplicationStatus.DECLINED: [],  # Terminal state (normal business outcome)
}


# Progress bar shown to teachers: 8 statuses collapse onto 5 stages.
PROGRESS_STAGES = ("Applied", "Verification", "Interview", "Offer", "Placed")

STATUS_TO_STAGE: Dict[ApplicationStatus, int] = {
    ApplicationStatus.PENDING: 0,
    ApplicationStatus.DOCUMENT_VERIFICATION: 1,
    ApplicationStatus.SCHOOL_MATCHING: 2,
    ApplicationStatus.INTERVIEW_SCHEDULED: 2,
    ApplicationStatus.INTERVIEW_COMPLETED: 2,
    ApplicationStatus.OFFER_EXTENDED: 3,
    ApplicationStatus.PLACED: 4,
    ApplicationStatus.DECLINED: -1,
}


def can_transition(from_status: ApplicationStatus, to_status: ApplicationStatus) -> bool:
    """Check if a transition is allowed without touching the database"""
    return to_status in ALLOWED_TRANSITIONS.get(from_status, [])


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES


def progress_stage(status: ApplicationStatus) -> int:
    """Index into PROGRESS_STAGES, or -1 for declined."""
    return STATUS_TO_STAGE[status]


def progress_label(status: ApplicationStatus) -> Optional[str]:
    stage = progress_stage(status)
    return PROGRESS_STAGES[stage] if stage >= 0 else None


_UNSET = object()


async def get_application(db: AsyncSession, application_id: int) -> Application:
    result = await db.execute(
        select(Application).where(Application.id == application_id)
    )
    application = result.scalar_one_or_none()
    if not application:
        raise NotFoundError(f"Application {application_id} not found")
    return application


async def transition_application(
    db: AsyncSession,
    application_id: int,
    to_status: ApplicationStatus,
    notes=_UNSET,
    actor: Optional[str] = None,
) -> Application:
    """
    Move an application to a new status with validation.

    Args:
        db: Database session
        application_id: ID of the application
        to_status: Target status
        notes: New notes; leave unset to keep the current notes, None clears them
        actor: Who made the change (for the log only)

    Returns:
        Updated Application

    Raises:
        NotFoundError: Application does not exist
        InvalidTransitionError: Backward move or change out of a terminal status
    """
    application = await get_application(db, application_id)
    current_status = ApplicationStatus(application.status)

    if to_status == current_status:
        # Re-selecting the current status only touches notes
        if notes is not _UNSET and notes != application.notes:
            application.notes = notes
            application.updated_at = datetime.utcnow()
            await db.commit()
            await db.refresh(application)
        return application

    if not can_transition(current_status, to_status):
        if is_terminal(current_status):
            message = (
                f"Application is already {current_status.value} and can no longer change status"
            )
        else:
            message = (
                f"Invalid status change from {current_status.value} to {to_status.value}: "
                f"applications can only move forward or be declined"
            )
        logger.warning(
            f"Rejected application transition {current_status.value} → {to_status.value}",
            extra={"application_id": application_id, "actor": actor},
        )
        raise InvalidTransitionError(message)

    application.status = to_status.value
    application.updated_at = datetime.utcnow()
    if notes is not _UNSET:
        application.notes = notes

    await db.commit()
    await db.refresh(application)

    log_data = {
        "application_id": application_id,
        "teacher_id": application.teacher_id,
        "from_status": current_status.value,
        "to_status": to_status.value,
        "actor": actor,
    }
    logger.info(f"Application status transition: {current_status.value} → {to_status.value}", extra=log_data)

    return application


async def find_active_application(
    db: AsyncSession,
    teacher_id: int,
    school_id: Optional[int] = None,
    job_id: Optional[int] = None,
) -> Optional[Application]:
    """The teacher's non-declined application for an opportunity, if any."""
    filters = [
        Application.teacher_id == teacher_id,
        Application.status != ApplicationStatus.DECLINED.value,
    ]
    if school_id is not None:
        filters.append(Application.school_id == school_id)
    else:
        filters.append(Application.job_id == job_id)

    result = await db.execute(select(Application).where(and_(*filters)))
    return result.scalars().first()


async def create_application(
    db: AsyncSession,
    teacher: Teacher,
    school_id: Optional[int] = None,
    job_id: Optional[int] = None,
    role_name: Optional[str] = None,
    notes: Optional[str] = None,
    expiry_date: Optional[datetime] = None,
    on_behalf: bool = False,
) -> Application:
    """
    Submit an application to a school or a job posting.

    Rules:
    - Exactly one of school_id / job_id
    - Teacher must be active and, unless an admin applies on their behalf, paid
    - Target must be active; jobs must still be open
    - At most one non-declined application per teacher/opportunity

    Raises:
        PaymentRequiredError, PermissionDeniedError, NotFoundError,
        ConflictError, DuplicateApplicationError
    """
    if (school_id is None) == (job_id is None):
        raise ConflictError("Provide exactly one of school_id or job_id")

    if not teacher.is_active:
        raise PermissionDeniedError("This teacher profile is inactive")

    if not on_behalf and not teacher.has_paid:
        raise PaymentRequiredError("Unlock full access to apply to positions")

    if school_id is not None:
        result = await db.execute(select(School).where(School.id == school_id))
        school = result.scalar_one_or_none()
        if not school or not school.is_active:
            raise NotFoundError("School not found")
    else:
        result = await db.execute(select(Job).where(Job.id == job_id))
        job = result.scalar_one_or_none()
        if not job:
            raise NotFoundError("Job not found")
        if not job.is_open():
            raise ConflictError("This position is no longer accepting applications")
        role_name = role_name or job.title
        expiry_date = expiry_date or job.expiry_date

    existing = await find_active_application(db, teacher.id, school_id=school_id, job_id=job_id)
    if existing:
        raise DuplicateApplicationError("You have already applied to this position")

    now = datetime.utcnow()
    application = Application(
        teacher_id=teacher.id,
        school_id=school_id,
        job_id=job_id,
        status=ApplicationStatus.PENDING.value,
        role_name=role_name,
        notes=notes,
        expiry_date=expiry_date,
        submitted_at=now,
        updated_at=now,
    )
    db.add(application)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent apply for the same pair
        await db.rollback()
        raise DuplicateApplicationError("You have already applied to this position")
    await db.refresh(application)

    logger.info(
        f"Created application {application.id}: teacher {teacher.id} → "
        f"{'school ' + str(school_id) if school_id is not None else 'job ' + str(job_id)}"
        f"{' (on behalf)' if on_behalf else ''}"
    )

    return application


async def list_applications(
    db: AsyncSession,
    teacher_id: Optional[int] = None,
    status: Optional[ApplicationStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> Sequence[Application]:
    """Applications newest first, optionally filtered by teacher and status."""
    query = select(Application)
    filters = []
    if teacher_id is not None:
        filters.append(Application.teacher_id == teacher_id)
    if status is not None:
        filters.append(Application.status == status.value)
    if filters:
        query = query.where(and_(*filters))

    query = query.order_by(Application.submitted_at.desc(), Application.id.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return result.scalars().all()

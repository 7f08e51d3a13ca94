"""
Job postings: the public board, staff-entered jobs and school-owned jobs.

School accounts may only hold `max_jobs` active postings at once. The quota is
checked while holding both a per-account asyncio lock and a row lock on the
account, so two concurrent creates cannot both slip under the limit.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from sqlalchemy import select, delete, and_, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from placement.models.application import Application
from placement.models.interview_selection import InterviewSelection
from placement.models.job import Job, JobSource
from placement.models.match import Match
from placement.models.school_account import SchoolAccount
from placement.schemas.job import SchoolJobStats
from placement.services.errors import (
    ConflictError,
    NotFoundError,
    PaymentRequiredError,
    QuotaExceededError,
    ValidationError,
)
from placement.services.locks import KeyedLock

logger = logging.getLogger(__name__)

account_locks = KeyedLock()

SALARY_FIELDS = ("salary_min", "salary_max")


def format_salary_display(salary_min: Optional[int], salary_max: Optional[int]) -> Optional[str]:
    """Human salary label, e.g. "15,000 - 25,000 RMB/month"."""
    if salary_min is not None and salary_max is not None:
        return f"{salary_min:,} - {salary_max:,} RMB/month"
    if salary_min is not None:
        return f"From {salary_min:,} RMB/month"
    if salary_max is not None:
        return f"Up to {salary_max:,} RMB/month"
    return None


def _apply_fields(job: Job, data: Dict[str, Any]) -> None:
    for field, value in data.items():
        setattr(job, field, value)
    if "salary_display" not in data and any(f in data for f in SALARY_FIELDS):
        job.salary_display = format_salary_display(job.salary_min, job.salary_max)
    if job.salary_min is not None and job.salary_max is not None and job.salary_min > job.salary_max:
        raise ValidationError("salary_min cannot be greater than salary_max")


# ============================================================
# JOB BOARD
# ============================================================

async def list_open_jobs(
    db: AsyncSession,
    city: Optional[str] = None,
    subject: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
) -> Tuple[Sequence[Job], int]:
    """Active, unexpired jobs newest first, with the total for paging."""
    now = datetime.utcnow()
    filters = [
        Job.is_active.is_(True),
        or_(Job.apply_by.is_(None), Job.apply_by >= now),
        or_(Job.expiry_date.is_(None), Job.expiry_date >= now),
    ]
    if city:
        filters.append(func.lower(Job.city) == city.strip().lower())
    if search:
        pattern = f"%{search.strip().lower()}%"
        filters.append(or_(
            func.lower(Job.title).like(pattern),
            func.lower(Job.description).like(pattern),
        ))

    rows = (await db.execute(
        select(Job).where(and_(*filters)).order_by(Job.created_at.desc(), Job.id.desc())
    )).scalars().all()

    # Subjects live in a JSON list; filter in Python so SQLite and Postgres agree
    if subject:
        wanted = subject.strip().lower()
        rows = [job for job in rows if wanted in (s.lower() for s in job.subjects or [])]

    return rows[skip:skip + limit], len(rows)


async def get_job(db: AsyncSession, job_id: int) -> Job:
    result = await db.execute(select(Job).where(Job.id == job_id))
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError(f"Job {job_id} not found")
    return job


# ============================================================
# STAFF JOBS
# ============================================================

async def create_job(db: AsyncSession, data: Dict[str, Any]) -> Job:
    """Create a board posting entered by staff (no quota applies)."""
    job = Job(source=JobSource.ADMIN.value)
    _apply_fields(job, data)
    if isinstance(job.source, JobSource):
        job.source = job.source.value
    if job.salary_display is None:
        job.salary_display = format_salary_display(job.salary_min, job.salary_max)
    db.add(job)
    await db.commit()
    await db.refresh(job)
    logger.info(f"Created job {job.id} ({job.title}) from source {job.source}")
    return job


async def update_job(db: AsyncSession, job: Job, data: Dict[str, Any]) -> Job:
    _apply_fields(job, data)
    await db.commit()
    await db.refresh(job)
    logger.info(f"Updated job {job.id}: {', '.join(sorted(data)) or 'no changes'}")
    return job


async def delete_job(db: AsyncSession, job: Job, force: bool = False) -> None:
    """
    Delete a job and its matches and interview selections.

    Jobs with applications are kept unless force=True, in which case the
    applications go too.
    """
    application_count = (await db.execute(
        select(func.count(Application.id)).where(Application.job_id == job.id)
    )).scalar_one()
    if application_count and not force:
        raise ConflictError(
            f"Job has {application_count} application(s); deactivate it instead or delete with force=true"
        )

    await db.execute(delete(Match).where(Match.job_id == job.id))
    await db.execute(delete(InterviewSelection).where(InterviewSelection.job_id == job.id))
    if application_count:
        await db.execute(delete(Application).where(Application.job_id == job.id))
    await db.delete(job)
    await db.commit()
    logger.info(f"Deleted job {job.id} (removed {application_count} application(s))")


# ============================================================
# SCHOOL JOBS
# ============================================================

def _require_paid(account: SchoolAccount) -> None:
    if not account.has_paid:
        raise PaymentRequiredError("Upgrade your school account to post and manage jobs")


async def _count_active_jobs(db: AsyncSession, account_id: int) -> int:
    result = await db.execute(
        select(func.count(Job.id)).where(
            and_(Job.school_account_id == account_id, Job.is_active.is_(True))
        )
    )
    return result.scalar_one()


async def _check_quota(db: AsyncSession, account: SchoolAccount) -> None:
    # Row lock (no-op on SQLite) so concurrent workers see each other's inserts
    locked = (await db.execute(
        select(SchoolAccount).where(SchoolAccount.id == account.id).with_for_update()
    )).scalar_one()
    active = await _count_active_jobs(db, locked.id)
    if active >= locked.max_jobs:
        logger.info(f"School account {locked.id} hit job quota ({active}/{locked.max_jobs})")
        raise QuotaExceededError(
            f"You've reached the maximum of {locked.max_jobs} active job postings. "
            f"Deactivate an existing job to post a new one."
        )


async def list_school_jobs(db: AsyncSession, account: SchoolAccount) -> Sequence[Job]:
    _require_paid(account)
    result = await db.execute(
        select(Job)
        .where(Job.school_account_id == account.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    return result.scalars().all()


async def get_school_job(db: AsyncSession, account: SchoolAccount, job_id: int) -> Job:
    """A job owned by the account; other schools' jobs look missing."""
    _require_paid(account)
    result = await db.execute(
        select(Job).where(and_(Job.id == job_id, Job.school_account_id == account.id))
    )
    job = result.scalar_one_or_none()
    if not job:
        raise NotFoundError("Job not found")
    return job


async def create_school_job(db: AsyncSession, account: SchoolAccount, data: Dict[str, Any]) -> Job:
    """
    Post a job from a school account.

    Raises:
        PaymentRequiredError: Account has not paid
        QuotaExceededError: Account already has max_jobs active postings
    """
    _require_paid(account)

    async with account_locks.hold(f"school-jobs:{account.id}"):
        if data.get("is_active", True):
            await _check_quota(db, account)

        job = Job(
            school_account_id=account.id,
            source=JobSource.SCHOOL.value,
            company=account.school_name,
        )
        _apply_fields(job, data)
        if job.salary_display is None:
            job.salary_display = format_salary_display(job.salary_min, job.salary_max)
        db.add(job)
        await db.commit()
        await db.refresh(job)

    logger.info(f"School account {account.id} posted job {job.id} ({job.title})")
    return job


async def update_school_job(
    db: AsyncSession,
    account: SchoolAccount,
    job_id: int,
    data: Dict[str, Any],
) -> Job:
    """Partial update; re-activating a job counts against the quota."""
    job = await get_school_job(db, account, job_id)

    if data.get("is_active") and not job.is_active:
        async with account_locks.hold(f"school-jobs:{account.id}"):
            await _check_quota(db, account)
            return await update_job(db, job, data)

    return await update_job(db, job, data)


async def delete_school_job(
    db: AsyncSession,
    account: SchoolAccount,
    job_id: int,
    force: bool = False,
) -> None:
    job = await get_school_job(db, account, job_id)
    await delete_job(db, job, force=force)


async def school_job_stats(db: AsyncSession, account: SchoolAccount) -> SchoolJobStats:
    active = await _count_active_jobs(db, account.id)
    total = (await db.execute(
        select(func.count(Job.id)).where(Job.school_account_id == account.id)
    )).scalar_one()
    return SchoolJobStats(
        active_jobs=active,
        max_jobs=account.max_jobs,
        total_jobs=total,
        can_create=account.has_paid and active < account.max_jobs,
    )

"""
Job board endpoints.

Any signed-in user can browse open jobs. Unpaid viewers see the role,
location, salary and requirements but not the hiring company, its external
link or school details. Staff create, edit and delete postings.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import Principal, get_current_principal, get_optional_admin, require_admin
from placement.api.errors import http_error
from placement.database import get_db
from placement.models.admin_user import AdminUser
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.schemas.common import Page
from placement.schemas.job import JobCreate, JobResponse, JobUpdate
from placement.services.errors import PlacementError
from placement.services.jobs import create_job, delete_job, get_job, list_open_jobs, update_job
from placement.services.visibility import (
    admin_has_full_access,
    redact_opportunity,
    school_has_full_access,
    teacher_has_full_access,
)

logger = logging.getLogger(__name__)
router = APIRouter()


async def viewer_has_full_access(
    db: AsyncSession,
    principal: Principal,
    admin: Optional[AdminUser],
) -> bool:
    """Paid teacher, paid school or active admin, looked up from our own records."""
    if admin_has_full_access(admin):
        return True
    result = await db.execute(select(Teacher).where(Teacher.user_id == principal.user_id))
    if teacher_has_full_access(result.scalar_one_or_none()):
        return True
    result = await db.execute(
        select(SchoolAccount).where(SchoolAccount.user_id == principal.user_id)
    )
    return school_has_full_access(result.scalar_one_or_none())


# Endpoints
@router.get("/", response_model=Page[JobResponse])
async def list_jobs(
    city: Optional[str] = Query(None, description="Filter by city"),
    subject: Optional[str] = Query(None, description="Filter by subject"),
    search: Optional[str] = Query(None, description="Search title and description"),
    skip: int = Query(0, ge=0, description="Number of jobs to skip"),
    limit: int = Query(20, ge=1, le=100, description="Max jobs to return"),
    principal: Principal = Depends(get_current_principal),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    """Open jobs (active, not past apply-by or expiry), newest first."""
    full_access = await viewer_has_full_access(db, principal, admin)
    jobs, total = await list_open_jobs(
        db, city=city, subject=subject, search=search, skip=skip, limit=limit
    )
    items = [redact_opportunity(JobResponse.model_validate(job), full_access) for job in jobs]
    return Page[JobResponse](
        items=items, total=total, skip=skip, limit=limit, has_full_access=full_access
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job_detail(
    job_id: int,
    principal: Principal = Depends(get_current_principal),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        job = await get_job(db, job_id)
    except PlacementError as e:
        raise http_error(e)
    full_access = await viewer_has_full_access(db, principal, admin)
    return redact_opportunity(JobResponse.model_validate(job), full_access)


@router.post("/", response_model=JobResponse, status_code=201)
async def create_job_posting(
    body: JobCreate,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    job = await create_job(db, body.model_dump())
    logger.info(f"Admin {admin.id} created job {job.id}")
    return JobResponse.model_validate(job)


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job_posting(
    job_id: int,
    body: JobUpdate,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        job = await get_job(db, job_id)
        job = await update_job(db, job, body.model_dump(exclude_unset=True))
    except PlacementError as e:
        raise http_error(e)
    return JobResponse.model_validate(job)


@router.delete("/{job_id}", status_code=204)
async def delete_job_posting(
    job_id: int,
    force: bool = Query(False, description="Also delete the job's applications"),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Delete a job posting.

    Returns 409 when teachers have applied, unless force=true.
    """
    try:
        job = await get_job(db, job_id)
        await delete_job(db, job, force=force)
    except PlacementError as e:
        raise http_error(e)
    logger.info(f"Admin {admin.id} deleted job {job_id} (force={force})")

"""
Application API endpoints.

Teachers apply to schools or job postings and follow their progress; admins
see every application and move them through the pipeline. All status changes
go through placement.services.application_lifecycle.
"""
import logging
from typing import Dict, Optional, Sequence

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import get_optional_admin, get_optional_teacher, require_admin
from placement.api.errors import http_error
from placement.database import get_db
from placement.models.admin_user import AdminUser
from placement.models.application import Application, ApplicationStatus
from placement.models.job import Job
from placement.models.school import School
from placement.models.teacher import Teacher
from placement.schemas.application import (
    ApplicationCreate,
    ApplicationResponse,
    ApplicationStatusUpdate,
)
from placement.schemas.opportunity import JobOpportunity, SchoolOpportunity
from placement.services.application_lifecycle import (
    create_application,
    is_terminal,
    list_applications,
    progress_label,
    progress_stage,
    transition_application,
)
from placement.services.errors import PlacementError
from placement.services.teachers import build_teacher_summary, get_teacher
from placement.services.visibility import (
    admin_has_full_access,
    redact_opportunity,
    redact_teacher,
    teacher_has_full_access,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def build_application_response(
    application: Application,
    school: Optional[School] = None,
    job: Optional[Job] = None,
    teacher: Optional[Teacher] = None,
    has_full_access: bool = True,
) -> ApplicationResponse:
    status = ApplicationStatus(application.status)
    opportunity = None
    if school is not None:
        opportunity = redact_opportunity(SchoolOpportunity.from_school(school), has_full_access)
    elif job is not None:
        opportunity = redact_opportunity(JobOpportunity.from_job(job), has_full_access)

    return ApplicationResponse(
        id=application.id,
        teacher_id=application.teacher_id,
        school_id=application.school_id,
        job_id=application.job_id,
        status=status,
        role_name=application.role_name,
        notes=application.notes,
        expiry_date=application.expiry_date,
        submitted_at=application.submitted_at,
        updated_at=application.updated_at,
        is_job_application=application.is_job_application,
        is_terminal=is_terminal(status),
        progress_stage=progress_stage(status),
        progress_label=progress_label(status),
        opportunity=opportunity,
        teacher=redact_teacher(build_teacher_summary(teacher), has_full_access) if teacher else None,
    )


async def build_application_responses(
    db: AsyncSession,
    applications: Sequence[Application],
    has_full_access: bool,
    include_teacher: bool = False,
) -> list[ApplicationResponse]:
    """Batch-load the schools, jobs (and teachers) behind a page of applications."""
    school_ids = {a.school_id for a in applications if a.school_id is not None}
    job_ids = {a.job_id for a in applications if a.job_id is not None}
    teacher_ids = {a.teacher_id for a in applications} if include_teacher else set()

    schools: Dict[int, School] = {}
    if school_ids:
        rows = await db.execute(select(School).where(School.id.in_(school_ids)))
        schools = {s.id: s for s in rows.scalars().all()}
    jobs: Dict[int, Job] = {}
    if job_ids:
        rows = await db.execute(select(Job).where(Job.id.in_(job_ids)))
        jobs = {j.id: j for j in rows.scalars().all()}
    teachers: Dict[int, Teacher] = {}
    if teacher_ids:
        rows = await db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids)))
        teachers = {t.id: t for t in rows.scalars().all()}

    return [
        build_application_response(
            a,
            school=schools.get(a.school_id),
            job=jobs.get(a.job_id),
            teacher=teachers.get(a.teacher_id),
            has_full_access=has_full_access,
        )
        for a in applications
    ]


# Endpoints
@router.get("/", response_model=list[ApplicationResponse])
async def list_my_applications(
    status: Optional[ApplicationStatus] = Query(None, description="Filter by status (admins)"),
    teacher_id: Optional[int] = Query(None, description="Filter by teacher (admins)"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    teacher: Optional[Teacher] = Depends(get_optional_teacher),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Teachers get their own applications; admins get everyone's.

    Newest first.
    """
    if admin is not None:
        applications = await list_applications(
            db, teacher_id=teacher_id, status=status, skip=skip, limit=limit
        )
        return await build_application_responses(db, applications, True, include_teacher=True)

    if teacher is None or not teacher.is_active:
        raise HTTPException(status_code=404, detail="Teacher profile not found")

    applications = await list_applications(
        db, teacher_id=teacher.id, status=status, skip=skip, limit=limit
    )
    return await build_application_responses(db, applications, teacher_has_full_access(teacher))


@router.post("/", response_model=ApplicationResponse, status_code=201)
async def apply(
    body: ApplicationCreate,
    teacher: Optional[Teacher] = Depends(get_optional_teacher),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Apply to a school or job posting.

    Admins may pass teacher_id to apply on a teacher's behalf (no payment
    check). Returns 402 for unpaid teachers, 409 for a duplicate application
    or a closed posting.
    """
    on_behalf = False
    if admin is not None and body.teacher_id is not None:
        try:
            applicant = await get_teacher(db, body.teacher_id)
        except PlacementError as e:
            raise http_error(e)
        on_behalf = True
    elif teacher is not None:
        applicant = teacher
    else:
        raise HTTPException(status_code=404, detail="Teacher profile not found")

    try:
        application = await create_application(
            db,
            applicant,
            school_id=body.school_id,
            job_id=body.job_id,
            role_name=body.role_name,
            notes=body.notes,
            expiry_date=body.expiry_date,
            on_behalf=on_behalf,
        )
    except PlacementError as e:
        raise http_error(e)

    responses = await build_application_responses(
        db, [application], on_behalf or teacher_has_full_access(applicant)
    )
    return responses[0]


@router.get("/teacher/{teacher_id}", response_model=list[ApplicationResponse])
async def list_teacher_applications(
    teacher_id: int,
    teacher: Optional[Teacher] = Depends(get_optional_teacher),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    """A teacher's applications (owner or admin only)."""
    if admin is None and (teacher is None or teacher.id != teacher_id):
        raise HTTPException(status_code=403, detail="You can only view your own applications")

    try:
        target = await get_teacher(db, teacher_id)
    except PlacementError as e:
        raise http_error(e)

    applications = await list_applications(db, teacher_id=target.id)
    full_access = admin_has_full_access(admin) or teacher_has_full_access(target)
    return await build_application_responses(db, applications, full_access)


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: int,
    body: ApplicationStatusUpdate,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Move an application through the pipeline (admin only).

    Forward moves and declined are allowed; backward moves and changes out of
    placed/declined return 400. Re-sending the current status only updates
    notes.
    """
    kwargs = {}
    if "notes" in body.model_fields_set:
        kwargs["notes"] = body.notes

    try:
        application = await transition_application(
            db, application_id, body.status, actor=f"admin:{admin.id}", **kwargs
        )
    except PlacementError as e:
        raise http_error(e)

    responses = await build_application_responses(db, [application], True, include_teacher=True)
    return responses[0]

"""
Admin dashboard endpoints.

Every route requires an active admin record. Admins always see unredacted
data.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import require_admin
from placement.api.errors import http_error
from placement.api.interview_selections import build_selection_responses
from placement.api.matching import candidate_from_score
from placement.database import get_db
from placement.models.admin_user import AdminUser
from placement.models.application import Application, ApplicationStatus
from placement.models.interview_selection import InterviewSelection, InterviewSelectionStatus
from placement.models.job import Job
from placement.models.school import School
from placement.models.teacher import Teacher
from placement.schemas.admin import AdminStatsResponse, AdminTeacherUpdate
from placement.schemas.common import Page
from placement.schemas.interview_selection import InterviewSelectionResponse
from placement.schemas.matching import CandidateMatchResponse
from placement.schemas.school import SchoolCreate, SchoolResponse, SchoolUpdate
from placement.schemas.teacher import TeacherResponse
from placement.services.errors import PlacementError
from placement.services.interview_selections import list_selections
from placement.services.matching import score_school_candidates
from placement.services.teachers import build_teacher_response, get_teacher, search_teachers

logger = logging.getLogger(__name__)
router = APIRouter()


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar_one()


@router.get("/stats", response_model=AdminStatsResponse)
async def get_stats(
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Headline numbers for the admin dashboard."""
    rows = await db.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    by_status = {status.value: 0 for status in ApplicationStatus}
    for status, count in rows.all():
        by_status[status] = count

    return AdminStatsResponse(
        total_teachers=await _count(db, select(func.count(Teacher.id))),
        active_teachers=await _count(db, select(func.count(Teacher.id)).where(Teacher.is_active.is_(True))),
        paid_teachers=await _count(db, select(func.count(Teacher.id)).where(Teacher.has_paid.is_(True))),
        total_schools=await _count(db, select(func.count(School.id)).where(School.is_active.is_(True))),
        active_jobs=await _count(db, select(func.count(Job.id)).where(Job.is_active.is_(True))),
        total_applications=sum(by_status.values()),
        applications_by_status=by_status,
        placements=by_status[ApplicationStatus.PLACED.value],
        interview_selections=await _count(db, select(func.count(InterviewSelection.id))),
    )


# ============================================================
# TEACHERS
# ============================================================

@router.get("/teachers", response_model=Page[TeacherResponse])
async def list_teachers(
    search: Optional[str] = Query(None, description="Match name or email"),
    include_inactive: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    teachers, total = await search_teachers(
        db, search=search, active_only=not include_inactive, skip=skip, limit=limit
    )
    return Page[TeacherResponse](
        items=[build_teacher_response(t) for t in teachers],
        total=total,
        skip=skip,
        limit=limit,
        has_full_access=True,
    )


@router.get("/teachers/{teacher_id}", response_model=TeacherResponse)
async def get_teacher_detail(
    teacher_id: int,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    try:
        teacher = await get_teacher(db, teacher_id)
    except PlacementError as e:
        raise http_error(e)
    return build_teacher_response(teacher)


@router.patch("/teachers/{teacher_id}", response_model=TeacherResponse)
async def update_teacher_flags(
    teacher_id: int,
    body: AdminTeacherUpdate,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Soft delete / reactivate a teacher, or override their paid flag.

    Teachers are never hard-deleted.
    """
    try:
        teacher = await get_teacher(db, teacher_id)
    except PlacementError as e:
        raise http_error(e)

    update_data = body.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be null")
        setattr(teacher, field, value)
    await db.commit()
    await db.refresh(teacher)

    logger.info(
        f"Admin {admin.id} updated teacher {teacher_id}",
        extra={"teacher_id": teacher_id, "changes": update_data},
    )
    return build_teacher_response(teacher)


# ============================================================
# SCHOOLS
# ============================================================

async def _get_school(db: AsyncSession, school_id: int) -> School:
    result = await db.execute(select(School).where(School.id == school_id))
    school = result.scalar_one_or_none()
    if not school:
        raise HTTPException(status_code=404, detail=f"School {school_id} not found")
    return school


@router.get("/schools", response_model=list[SchoolResponse])
async def list_schools(
    include_inactive: bool = Query(False),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    query = select(School)
    if not include_inactive:
        query = query.where(School.is_active.is_(True))
    result = await db.execute(query.order_by(School.name.asc(), School.id.asc()))
    return result.scalars().all()


@router.post("/schools", response_model=SchoolResponse, status_code=201)
async def create_school(
    body: SchoolCreate,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    school = School(**body.model_dump())
    db.add(school)
    await db.commit()
    await db.refresh(school)
    logger.info(f"Admin {admin.id} created school {school.id} ({school.name})")
    return school


@router.patch("/schools/{school_id}", response_model=SchoolResponse)
async def update_school(
    school_id: int,
    body: SchoolUpdate,
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    school = await _get_school(db, school_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        if field == "name" and not value:
            raise HTTPException(status_code=422, detail="name cannot be empty")
        if field in ("subjects", "age_groups") and value is None:
            value = []
        setattr(school, field, value)
    await db.commit()
    await db.refresh(school)
    return school


@router.get("/schools/{school_id}/matches", response_model=list[CandidateMatchResponse])
async def get_school_matches(
    school_id: int,
    limit: int = Query(50, ge=1, le=200),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Best-matching teachers for a school, computed on the fly (nothing stored)."""
    school = await _get_school(db, school_id)
    ranked = await score_school_candidates(db, school, limit=limit)
    return [candidate_from_score(teacher, score) for teacher, score in ranked]


# ============================================================
# INTERVIEW SELECTIONS
# ============================================================

@router.get("/interview-selections", response_model=list[InterviewSelectionResponse])
async def list_all_selections(
    status: Optional[InterviewSelectionStatus] = Query(None),
    job_id: Optional[int] = Query(None),
    school_account_id: Optional[int] = Query(None),
    admin: AdminUser = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Every school's interview selections, newest first."""
    selections = await list_selections(
        db, school_account_id=school_account_id, status=status, job_id=job_id
    )
    return await build_selection_responses(db, selections)

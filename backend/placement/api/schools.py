"""
School account endpoints: the school's own account and the "find talent"
teacher directory.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import Principal, get_current_principal, get_current_school_account
from placement.config import settings
from placement.database import get_db
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.schemas.common import Page
from placement.schemas.school import SchoolAccountCreate, SchoolAccountResponse, SchoolAccountUpdate
from placement.schemas.teacher import TeacherSummary
from placement.services.teachers import build_teacher_summary, search_teachers
from placement.services.visibility import redact_teacher, school_has_full_access

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/account", response_model=SchoolAccountResponse, status_code=201)
async def create_account(
    body: SchoolAccountCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Register the caller as a school. New accounts start unpaid with the default job quota."""
    result = await db.execute(
        select(SchoolAccount).where(SchoolAccount.user_id == principal.user_id)
    )
    if result.scalar_one_or_none():
        raise HTTPException(status_code=409, detail="A school account already exists for this user")

    account = SchoolAccount(
        user_id=principal.user_id,
        max_jobs=settings.default_max_jobs,
        **body.model_dump(),
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)

    logger.info(f"Created school account {account.id} ({account.school_name}) for user {principal.user_id}")
    return account


@router.get("/account", response_model=SchoolAccountResponse)
async def get_account(account: SchoolAccount = Depends(get_current_school_account)):
    return account


@router.patch("/account", response_model=SchoolAccountResponse)
async def update_account(
    body: SchoolAccountUpdate,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    update_data = body.model_dump(exclude_unset=True)
    if "school_name" in update_data and not update_data["school_name"]:
        raise HTTPException(status_code=422, detail="school_name cannot be empty")

    for field, value in update_data.items():
        setattr(account, field, value)
    await db.commit()
    await db.refresh(account)
    return account


@router.get("/teachers", response_model=Page[TeacherSummary])
async def find_talent(
    subject: Optional[str] = Query(None, description="Filter by subject specialty"),
    location: Optional[str] = Query(None, description="Filter by preferred location"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """
    Browse active teachers.

    Unpaid schools see experience, subjects and preferences but not names,
    contact details or documents.
    """
    full_access = school_has_full_access(account)
    teachers, total = await search_teachers(
        db, subject=subject, location=location, skip=skip, limit=limit
    )
    items = [redact_teacher(build_teacher_summary(t), full_access) for t in teachers]
    return Page[TeacherSummary](
        items=items, total=total, skip=skip, limit=limit, has_full_access=full_access
    )


@router.get("/teachers/{teacher_id}", response_model=TeacherSummary)
async def get_talent(
    teacher_id: int,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(Teacher).where(Teacher.id == teacher_id))
    teacher = result.scalar_one_or_none()
    if not teacher or not teacher.is_active:
        raise HTTPException(status_code=404, detail="Teacher not found")
    return redact_teacher(build_teacher_summary(teacher), school_has_full_access(account))

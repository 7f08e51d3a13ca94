"""
Teacher profile endpoints.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import Principal, get_current_principal, get_current_teacher
from placement.api.errors import http_error
from placement.database import get_db
from placement.models.teacher import Teacher
from placement.schemas.teacher import TeacherCreate, TeacherResponse, TeacherUpdate
from placement.services.errors import PlacementError
from placement.services.teachers import (
    build_teacher_response,
    create_teacher,
    update_teacher,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=TeacherResponse, status_code=201)
async def create_profile(
    body: TeacherCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Create the caller's teacher profile.

    Returns:
        201: Profile created
        409: The caller already has a profile
    """
    try:
        teacher = await create_teacher(db, principal.user_id, body.model_dump())
    except PlacementError as e:
        raise http_error(e)
    return build_teacher_response(teacher)


@router.get("/me", response_model=TeacherResponse)
async def get_my_profile(teacher: Teacher = Depends(get_current_teacher)):
    return build_teacher_response(teacher)


@router.patch("/me", response_model=TeacherResponse)
async def update_my_profile(
    body: TeacherUpdate,
    teacher: Teacher = Depends(get_current_teacher),
    db: AsyncSession = Depends(get_db),
):
    """
    Update profile fields.

    Only fields present in the body are changed. List fields take either a
    JSON array or a comma-separated string.
    """
    update_data = body.model_dump(exclude_unset=True)
    for field in ("first_name", "last_name"):
        if field in update_data and update_data[field] is None:
            raise HTTPException(status_code=422, detail=f"{field} cannot be empty")

    teacher_id = teacher.id
    try:
        teacher = await update_teacher(db, teacher, update_data)
    except Exception as e:
        await db.rollback()
        logger.error(f"Error updating teacher {teacher_id}: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update profile. Please try again.")

    logger.info(f"Teacher {teacher.id} updated profile fields: {', '.join(sorted(update_data))}")
    return build_teacher_response(teacher)

"""Teacher profile business logic."""
import logging
import uuid
from datetime import datetime
from typing import Optional, Sequence, Tuple

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from placement.models.teacher import Teacher
from placement.schemas.teacher import TeacherResponse, TeacherSummary
from placement.services.errors import ConflictError, NotFoundError

logger = logging.getLogger(__name__)


# Fields counted towards the profile completeness percentage
COMPLETENESS_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "nationality",
    "years_experience",
    "education",
    "teaching_experience",
    "chinese_level",
    "subject_specialty",
    "preferred_location",
    "preferred_age_group",
    "cv_path",
    "headshot_photo_path",
    "intro_video_path",
)


def profile_completeness(teacher: Teacher) -> int:
    """Percentage of COMPLETENESS_FIELDS that are filled in."""
    filled = 0
    for field in COMPLETENESS_FIELDS:
        value = getattr(teacher, field)
        if isinstance(value, str):
            value = value.strip()
        if value not in (None, "", []):
            filled += 1
    return round(100 * filled / len(COMPLETENESS_FIELDS))


def build_teacher_response(teacher: Teacher) -> TeacherResponse:
    response = TeacherResponse.model_validate(teacher)
    return response.model_copy(update={"profile_completeness": profile_completeness(teacher)})


def build_teacher_summary(teacher: Teacher) -> TeacherSummary:
    return TeacherSummary.model_validate(teacher)


async def get_teacher_by_user(db: AsyncSession, user_id: uuid.UUID) -> Optional[Teacher]:
    result = await db.execute(select(Teacher).where(Teacher.user_id == user_id))
    return result.scalar_one_or_none()


async def get_teacher(db: AsyncSession, teacher_id: int) -> Teacher:
    result = await db.execute(select(Teacher).where(Teacher.id == teacher_id))
    teacher = result.scalar_one_or_none()
    if not teacher:
        raise NotFoundError(f"Teacher {teacher_id} not found")
    return teacher


async def create_teacher(db: AsyncSession, user_id: uuid.UUID, data: dict) -> Teacher:
    """Create the teacher profile owned by a Supabase user (one per user)."""
    if await get_teacher_by_user(db, user_id):
        raise ConflictError("A teacher profile already exists for this account")

    if data.get("chinese_level") is not None:
        data["chinese_level"] = getattr(data["chinese_level"], "value", data["chinese_level"])

    teacher = Teacher(user_id=user_id, **data)
    db.add(teacher)
    await db.commit()
    await db.refresh(teacher)

    logger.info(f"Created teacher profile {teacher.id} for user {user_id}")
    return teacher


async def update_teacher(db: AsyncSession, teacher: Teacher, update_data: dict) -> Teacher:
    """Apply a partial update (only keys present in update_data are written)."""
    for field, value in update_data.items():
        if field == "chinese_level" and value is not None:
            value = getattr(value, "value", value)
        if field in ("subject_specialty", "preferred_location", "preferred_age_group") and value is None:
            value = []
        setattr(teacher, field, value)

    teacher.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(teacher)
    return teacher


async def search_teachers(
    db: AsyncSession,
    search: Optional[str] = None,
    subject: Optional[str] = None,
    location: Optional[str] = None,
    active_only: bool = True,
    skip: int = 0,
    limit: int = 20,
) -> Tuple[Sequence[Teacher], int]:
    """Teachers newest first, with the total for paging."""
    query = select(Teacher)
    if active_only:
        query = query.where(Teacher.is_active.is_(True))
    if search:
        pattern = f"%{search.strip().lower()}%"
        query = query.where(or_(
            func.lower(Teacher.first_name).like(pattern),
            func.lower(Teacher.last_name).like(pattern),
            func.lower(Teacher.email).like(pattern),
        ))

    rows = (await db.execute(
        query.order_by(Teacher.created_at.desc(), Teacher.id.desc())
    )).scalars().all()

    # List columns are JSON; filter in Python so SQLite and Postgres agree
    if subject:
        wanted = subject.strip().lower()
        rows = [t for t in rows if wanted in (s.lower() for s in t.subject_specialty or [])]
    if location:
        wanted = location.strip().lower()
        rows = [t for t in rows if wanted in (s.lower() for s in t.preferred_location or [])]

    return rows[skip:skip + limit], len(rows)

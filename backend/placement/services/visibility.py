"""
Payment-gated redaction.

Unpaid accounts see scores, counts and non-identifying details (city, school
type, salary) but never who the school or teacher is or how to reach them.
Every function here is a pure transform over response schemas; callers decide
access from the database record of the authenticated account, never from
anything the client sends.
"""
from typing import Optional, TypeVar

from pydantic import BaseModel

from placement.models.admin_user import AdminUser
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.schemas.opportunity import JobOpportunity, SchoolOpportunity


REDACTED = "••••••"

TEACHER_IDENTITY_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "wechat_id",
    "linkedin",
    "instagram",
    "cv_path",
    "headshot_photo_path",
    "intro_video_path",
)

SCHOOL_IDENTITY_FIELDS = (
    "name",
    "contact_name",
    "contact_email",
    "contact_phone",
)

JOB_IDENTITY_FIELDS = (
    "company",
    "external_url",
    "school_info",
)

M = TypeVar("M", bound=BaseModel)


def teacher_has_full_access(teacher: Optional[Teacher]) -> bool:
    return bool(teacher is not None and teacher.has_paid)


def school_has_full_access(account: Optional[SchoolAccount]) -> bool:
    return bool(account is not None and account.has_paid)


def admin_has_full_access(admin: Optional[AdminUser]) -> bool:
    return bool(admin is not None and admin.is_active)


def _mask(model: M, fields: tuple) -> M:
    """Replace every populated identity field on the model with REDACTED."""
    updates = {}
    for name in fields:
        if name not in type(model).model_fields:
            continue
        value = getattr(model, name)
        if value is None:
            continue
        updates[name] = REDACTED
    return model.model_copy(update=updates)


def redact_teacher(model: M, has_full_access: bool) -> M:
    """Hide a teacher's name, contact details and document links."""
    if has_full_access:
        return model
    return _mask(model, TEACHER_IDENTITY_FIELDS)


def redact_opportunity(model: M, has_full_access: bool) -> M:
    """Hide the school/company behind an opportunity or job posting."""
    if has_full_access:
        return model
    if isinstance(model, SchoolOpportunity):
        return _mask(model, SCHOOL_IDENTITY_FIELDS)
    if isinstance(model, JobOpportunity):
        return _mask(model, JOB_IDENTITY_FIELDS)
    return _mask(model, SCHOOL_IDENTITY_FIELDS + JOB_IDENTITY_FIELDS)


def redact_match(model: M, has_full_access: bool) -> M:
    """Redact the nested opportunity of a teacher-side match."""
    if has_full_access:
        return model
    return model.model_copy(
        update={"opportunity": redact_opportunity(model.opportunity, False)}
    )


def redact_candidate(model: M, has_full_access: bool) -> M:
    """Redact the nested teacher of a school-side candidate match."""
    if has_full_access:
        return model
    return model.model_copy(
        update={"teacher": redact_teacher(model.teacher, False)}
    )

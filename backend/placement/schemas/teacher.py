"""Teacher-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from placement.database_types import normalize_string_list
from placement.models.teacher import ChineseLevel


LIST_FIELDS = ("subject_specialty", "preferred_location", "preferred_age_group")


class TeacherBase(BaseModel):
    """Fields a teacher can set on their own profile."""
    phone: Optional[str] = None
    country_code: Optional[str] = None
    nationality: Optional[str] = None
    wechat_id: Optional[str] = None
    linkedin: Optional[str] = None
    instagram: Optional[str] = None
    years_experience: Optional[int] = Field(None, ge=0, le=60)
    education: Optional[str] = None
    teaching_experience: Optional[str] = None
    professional_experience: Optional[str] = None
    additional_info: Optional[str] = None
    chinese_level: Optional[ChineseLevel] = None
    # Accept ["Shanghai", "Beijing"] or "Shanghai, Beijing"
    subject_specialty: list[str] = Field(default_factory=list)
    preferred_location: list[str] = Field(default_factory=list)
    preferred_age_group: list[str] = Field(default_factory=list)
    cv_path: Optional[str] = None
    headshot_photo_path: Optional[str] = None
    intro_video_path: Optional[str] = None

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _split_lists(cls, value):
        return normalize_string_list(value)


class TeacherCreate(TeacherBase):
    """Request body for creating the current user's teacher profile."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class TeacherUpdate(BaseModel):
    """Partial update; only fields present in the body are written."""
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    phone: Optional[str] = None
    country_code: Optional[str] = None
    nationality: Optional[str] = None
    wechat_id: Optional[str] = None
    linkedin: Optional[str] = None
    instagram: Optional[str] = None
    years_experience: Optional[int] = Field(None, ge=0, le=60)
    education: Optional[str] = None
    teaching_experience: Optional[str] = None
    professional_experience: Optional[str] = None
    additional_info: Optional[str] = None
    chinese_level: Optional[ChineseLevel] = None
    subject_specialty: Optional[list[str]] = None
    preferred_location: Optional[list[str]] = None
    preferred_age_group: Optional[list[str]] = None
    cv_path: Optional[str] = None
    headshot_photo_path: Optional[str] = None
    intro_video_path: Optional[str] = None

    @field_validator(*LIST_FIELDS, mode="before")
    @classmethod
    def _split_lists(cls, value):
        if value is None:
            return None
        return normalize_string_list(value)


class TeacherResponse(TeacherBase):
    """Full teacher profile (owner, admins, paid schools)."""
    id: int
    first_name: str
    last_name: str
    email: str
    chinese_level: Optional[str] = None
    has_paid: bool
    payment_date: Optional[datetime] = None
    preferred_currency: Optional[str] = None
    is_active: bool
    profile_completeness: int = 0
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TeacherSummary(BaseModel):
    """Compact teacher card used inside match, application and selection payloads."""
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    nationality: Optional[str] = None
    years_experience: Optional[int] = None
    subject_specialty: list[str] = Field(default_factory=list)
    preferred_location: list[str] = Field(default_factory=list)
    preferred_age_group: list[str] = Field(default_factory=list)
    chinese_level: Optional[str] = None
    cv_path: Optional[str] = None
    headshot_photo_path: Optional[str] = None
    intro_video_path: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

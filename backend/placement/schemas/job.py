"""Job-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from placement.database_types import normalize_string_list
from placement.models.job import JobSource


class JobBase(BaseModel):
    """Base schema with common job posting fields."""
    title: str = Field(..., min_length=1, max_length=255)
    role_type: Optional[str] = None  # teacher | head_of_department | coordinator | administrator | counselor
    city: Optional[str] = None
    province: Optional[str] = None
    subjects: list[str] = Field(default_factory=list)
    age_groups: list[str] = Field(default_factory=list)
    experience_required: Optional[int] = Field(None, ge=0, le=40)
    chinese_required: bool = False
    qualification: Optional[str] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_display: Optional[str] = None
    description: Optional[str] = None
    key_responsibilities: Optional[str] = None
    requirements: Optional[str] = None
    benefits: Optional[str] = None
    school_info: Optional[str] = None
    is_active: bool = True
    apply_by: Optional[datetime] = None
    expiry_date: Optional[datetime] = None

    @field_validator("subjects", "age_groups", mode="before")
    @classmethod
    def _split_lists(cls, value):
        return normalize_string_list(value)

    @model_validator(mode="after")
    def _salary_order(self):
        if self.salary_min is not None and self.salary_max is not None and self.salary_min > self.salary_max:
            raise ValueError("salary_min cannot be greater than salary_max")
        return self


class SchoolJobCreate(JobBase):
    """Schema for a school posting a job from its own account."""
    pass


class JobCreate(JobBase):
    """Schema for staff creating a job board posting."""
    company: Optional[str] = None
    external_url: Optional[str] = None
    source: JobSource = JobSource.ADMIN


class JobUpdate(BaseModel):
    """Partial update; only fields present in the body are written."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = None
    external_url: Optional[str] = None
    role_type: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    subjects: Optional[list[str]] = None
    age_groups: Optional[list[str]] = None
    experience_required: Optional[int] = Field(None, ge=0, le=40)
    chinese_required: Optional[bool] = None
    qualification: Optional[str] = None
    salary_min: Optional[int] = Field(None, ge=0)
    salary_max: Optional[int] = Field(None, ge=0)
    salary_display: Optional[str] = None
    description: Optional[str] = None
    key_responsibilities: Optional[str] = None
    requirements: Optional[str] = None
    benefits: Optional[str] = None
    school_info: Optional[str] = None
    is_active: Optional[bool] = None
    apply_by: Optional[datetime] = None
    expiry_date: Optional[datetime] = None

    @field_validator("subjects", "age_groups", mode="before")
    @classmethod
    def _split_lists(cls, value):
        if value is None:
            return None
        return normalize_string_list(value)


class JobResponse(JobBase):
    """Schema for job posting response."""
    id: int
    school_account_id: Optional[int] = None
    source: str
    company: Optional[str] = None
    external_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def _salary_order(self):
        # Stored rows are trusted; skip the create-time check
        return self


class SchoolJobStats(BaseModel):
    active_jobs: int
    max_jobs: int
    total_jobs: int
    can_create: bool

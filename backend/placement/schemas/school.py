"""School and school account Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from placement.database_types import normalize_string_list


class SchoolBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    city: Optional[str] = None
    province: Optional[str] = None
    school_type: Optional[str] = None
    salary_range: Optional[str] = None
    description: Optional[str] = None
    subjects: list[str] = Field(default_factory=list)
    age_groups: list[str] = Field(default_factory=list)
    experience_required: Optional[int] = Field(None, ge=0, le=40)
    chinese_required: bool = False
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    is_active: bool = True

    @field_validator("subjects", "age_groups", mode="before")
    @classmethod
    def _split_lists(cls, value):
        return normalize_string_list(value)


class SchoolCreate(SchoolBase):
    pass


class SchoolUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    city: Optional[str] = None
    province: Optional[str] = None
    school_type: Optional[str] = None
    salary_range: Optional[str] = None
    description: Optional[str] = None
    subjects: Optional[list[str]] = None
    age_groups: Optional[list[str]] = None
    experience_required: Optional[int] = Field(None, ge=0, le=40)
    chinese_required: Optional[bool] = None
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("subjects", "age_groups", mode="before")
    @classmethod
    def _split_lists(cls, value):
        if value is None:
            return None
        return normalize_string_list(value)


class SchoolResponse(SchoolBase):
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class SchoolAccountCreate(BaseModel):
    school_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    school_type: Optional[str] = None


class SchoolAccountUpdate(BaseModel):
    school_name: Optional[str] = Field(None, min_length=1, max_length=255)
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    school_type: Optional[str] = None


class SchoolAccountResponse(BaseModel):
    id: int
    school_name: str
    email: str
    contact_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    school_type: Optional[str] = None
    has_paid: bool
    payment_date: Optional[datetime] = None
    max_jobs: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

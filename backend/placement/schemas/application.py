"""Application-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, model_validator

from placement.models.application import ApplicationStatus
from placement.schemas.opportunity import Opportunity
from placement.schemas.teacher import TeacherSummary


class ApplicationCreate(BaseModel):
    """
    Apply to exactly one opportunity.

    teacher_id is only honoured for admins applying on a teacher's behalf.
    """
    school_id: Optional[int] = None
    job_id: Optional[int] = None
    teacher_id: Optional[int] = None
    role_name: Optional[str] = None
    notes: Optional[str] = None
    expiry_date: Optional[datetime] = None

    @model_validator(mode="after")
    def _exactly_one_target(self):
        if (self.school_id is None) == (self.job_id is None):
            raise ValueError("Provide exactly one of school_id or job_id")
        return self


class ApplicationStatusUpdate(BaseModel):
    """
    Admin status change.

    Omitting `notes` keeps the existing notes; sending null clears them.
    """
    status: ApplicationStatus
    notes: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _submitted_alias(cls, value):
        # The admin console labels the initial state "submitted"
        if value == "submitted":
            return ApplicationStatus.PENDING.value
        return value


class ApplicationResponse(BaseModel):
    id: int
    teacher_id: int
    school_id: Optional[int] = None
    job_id: Optional[int] = None
    status: ApplicationStatus
    role_name: Optional[str] = None
    notes: Optional[str] = None
    expiry_date: Optional[datetime] = None
    submitted_at: datetime
    updated_at: datetime
    is_job_application: bool
    is_terminal: bool
    # Collapsed progress bar position (-1 when declined)
    progress_stage: int
    progress_label: Optional[str] = None
    opportunity: Optional[Opportunity] = None
    teacher: Optional[TeacherSummary] = None

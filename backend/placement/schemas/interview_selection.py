"""Interview selection Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from placement.models.interview_selection import InterviewSelectionStatus
from placement.schemas.teacher import TeacherSummary


class InterviewSelectionCreate(BaseModel):
    teacher_id: int
    job_id: int
    notes: Optional[str] = None


class InterviewSelectionUpdate(BaseModel):
    status: Optional[InterviewSelectionStatus] = None
    notes: Optional[str] = None


class InterviewSelectionResponse(BaseModel):
    id: int
    school_account_id: int
    teacher_id: int
    job_id: int
    job_title: Optional[str] = None
    status: InterviewSelectionStatus
    notes: Optional[str] = None
    is_terminal: bool
    selected_at: datetime
    status_updated_at: datetime
    teacher: Optional[TeacherSummary] = None

"""Admin dashboard Pydantic schemas."""
from typing import Optional
from pydantic import BaseModel


class AdminStatsResponse(BaseModel):
    total_teachers: int
    active_teachers: int
    paid_teachers: int
    total_schools: int
    active_jobs: int
    total_applications: int
    applications_by_status: dict[str, int]
    placements: int
    interview_selections: int


class AdminTeacherUpdate(BaseModel):
    is_active: Optional[bool] = None
    has_paid: Optional[bool] = None

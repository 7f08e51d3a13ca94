"""Matching-related Pydantic schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from placement.schemas.opportunity import Opportunity
from placement.schemas.teacher import TeacherSummary


class ScoreComponentResponse(BaseModel):
    name: str  # location | subject | age_group | experience | chinese
    score: float
    weight: float


class MatchResponse(BaseModel):
    """A scored opportunity for a teacher."""
    id: int
    teacher_id: int
    match_score: int
    match_reasons: list[str] = Field(default_factory=list)
    score_breakdown: list[ScoreComponentResponse] = Field(default_factory=list)
    is_submitted: bool = False
    opportunity: Opportunity
    created_at: datetime


class CandidateMatchResponse(BaseModel):
    """A scored teacher for a school job posting."""
    teacher: TeacherSummary
    match_score: int
    match_reasons: list[str] = Field(default_factory=list)
    score_breakdown: list[ScoreComponentResponse] = Field(default_factory=list)
    is_selected: bool = False
    selection_id: Optional[int] = None


class MatchRunResponse(BaseModel):
    """Result of a matching run."""
    teacher_id: Optional[int] = None
    job_id: Optional[int] = None
    matches_created: int
    top_score: Optional[int] = None
    message: str

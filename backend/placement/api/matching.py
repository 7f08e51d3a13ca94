"""
Matching API endpoints (teacher side).

A teacher (or an admin acting for them) triggers a run, then reads the stored
results. Unpaid teachers see scores, reasons and non-identifying details;
school names, companies and contact details are redacted.
"""
import logging
from typing import Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import get_optional_admin, get_optional_teacher
from placement.database import get_db
from placement.models.admin_user import AdminUser
from placement.models.job import Job
from placement.models.match import Match
from placement.models.school import School
from placement.models.teacher import Teacher
from placement.schemas.common import Page
from placement.schemas.matching import (
    CandidateMatchResponse,
    MatchResponse,
    MatchRunResponse,
    ScoreComponentResponse,
)
from placement.schemas.opportunity import JobOpportunity, SchoolOpportunity
from placement.services.matching import list_teacher_matches, run_teacher_matching
from placement.services.scoring import MatchScore
from placement.services.teachers import build_teacher_summary, get_teacher
from placement.services.errors import NotFoundError
from placement.services.visibility import (
    admin_has_full_access,
    redact_match,
    teacher_has_full_access,
)

logger = logging.getLogger(__name__)
router = APIRouter()


def build_match_response(match: Match, target: Union[School, Job], is_submitted: bool) -> MatchResponse:
    if isinstance(target, School):
        opportunity = SchoolOpportunity.from_school(target)
    else:
        opportunity = JobOpportunity.from_job(target)
    return MatchResponse(
        id=match.id,
        teacher_id=match.teacher_id,
        match_score=match.match_score,
        match_reasons=list(match.match_reasons or []),
        score_breakdown=[ScoreComponentResponse(**c) for c in match.score_breakdown or []],
        is_submitted=is_submitted,
        opportunity=opportunity,
        created_at=match.created_at,
    )


def build_candidate_response(
    teacher: Teacher,
    match_score: int,
    match_reasons: list,
    score_breakdown: list,
    selection_id: Optional[int] = None,
) -> CandidateMatchResponse:
    return CandidateMatchResponse(
        teacher=build_teacher_summary(teacher),
        match_score=match_score,
        match_reasons=list(match_reasons or []),
        score_breakdown=[ScoreComponentResponse(**c) for c in score_breakdown or []],
        is_selected=selection_id is not None,
        selection_id=selection_id,
    )


def candidate_from_score(teacher: Teacher, score: MatchScore) -> CandidateMatchResponse:
    return build_candidate_response(teacher, score.total, score.reasons, score.breakdown())


async def _resolve_teacher(
    db: AsyncSession,
    teacher_id: int,
    caller: Optional[Teacher],
    admin: Optional[AdminUser],
) -> Teacher:
    """Load the target teacher; only the owner or an admin may act on it."""
    if admin is None and (caller is None or caller.id != teacher_id):
        raise HTTPException(status_code=403, detail="You can only view your own matches")
    try:
        teacher = await get_teacher(db, teacher_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    if not teacher.is_active:
        raise HTTPException(status_code=404, detail=f"Teacher {teacher_id} not found")
    return teacher


# Endpoints
@router.post("/run", response_model=MatchRunResponse)
async def run_matching(
    teacher_id: int = Query(..., description="Teacher to match"),
    caller: Optional[Teacher] = Depends(get_optional_teacher),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Score the teacher against every active school and open job.

    Replaces the teacher's previous matches. Concurrent runs for the same
    teacher are coalesced into one.
    """
    teacher = await _resolve_teacher(db, teacher_id, caller, admin)
    result = await run_teacher_matching(db, teacher)

    if result.matches_created:
        message = f"Found {result.matches_created} matching opportunities"
    else:
        message = "No matching opportunities found yet. Try broadening your preferences."
    return MatchRunResponse(
        teacher_id=teacher.id,
        matches_created=result.matches_created,
        top_score=result.top_score,
        message=message,
    )


@router.get("/teacher/{teacher_id}", response_model=Page[MatchResponse])
async def get_teacher_matches(
    teacher_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    caller: Optional[Teacher] = Depends(get_optional_teacher),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    db: AsyncSession = Depends(get_db),
):
    """Stored matches, best first. Redacted unless the teacher has paid."""
    teacher = await _resolve_teacher(db, teacher_id, caller, admin)
    full_access = admin_has_full_access(admin) or teacher_has_full_access(teacher)

    rows, total = await list_teacher_matches(db, teacher.id, skip=skip, limit=limit)
    items = [
        redact_match(build_match_response(match, target, submitted), full_access)
        for match, target, submitted in rows
    ]
    return Page[MatchResponse](
        items=items, total=total, skip=skip, limit=limit, has_full_access=full_access
    )

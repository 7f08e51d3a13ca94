"""
School job postings and candidate matching.

Only paid school accounts can post or manage jobs (402 otherwise), and each
account may hold at most `max_jobs` active postings.
"""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import get_current_school_account
from placement.api.errors import http_error
from placement.api.matching import build_candidate_response
from placement.database import get_db
from placement.models.school_account import SchoolAccount
from placement.schemas.common import Page
from placement.schemas.job import JobResponse, JobUpdate, SchoolJobCreate, SchoolJobStats
from placement.schemas.matching import CandidateMatchResponse, MatchRunResponse
from placement.services.errors import PlacementError
from placement.services.jobs import (
    create_school_job,
    delete_school_job,
    get_school_job,
    list_school_jobs,
    school_job_stats,
    update_school_job,
)
from placement.services.matching import list_job_matches, run_job_matching

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[JobResponse])
async def list_jobs(
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    try:
        jobs = await list_school_jobs(db, account)
    except PlacementError as e:
        raise http_error(e)
    return [JobResponse.model_validate(job) for job in jobs]


@router.get("/stats", response_model=SchoolJobStats)
async def job_stats(
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """Active/total postings against the account's quota."""
    return await school_job_stats(db, account)


@router.post("/", response_model=JobResponse, status_code=201)
async def create_job(
    body: SchoolJobCreate,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """
    Post a new job.

    Returns:
        201: Job created
        402: Account has not paid
        409: Active job quota reached
    """
    try:
        job = await create_school_job(db, account, body.model_dump())
    except PlacementError as e:
        raise http_error(e)
    return JobResponse.model_validate(job)


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    try:
        job = await get_school_job(db, account, job_id)
    except PlacementError as e:
        raise http_error(e)
    return JobResponse.model_validate(job)


@router.patch("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    body: JobUpdate,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """Partial update. Re-activating a job counts against the quota."""
    update_data = body.model_dump(exclude_unset=True)
    # Schools cannot relabel their postings as staff/external ones
    update_data.pop("company", None)
    update_data.pop("external_url", None)
    try:
        job = await update_school_job(db, account, job_id, update_data)
    except PlacementError as e:
        raise http_error(e)
    return JobResponse.model_validate(job)


@router.delete("/{job_id}", status_code=204)
async def delete_job(
    job_id: int,
    force: bool = Query(False, description="Also delete the job's applications"),
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    try:
        await delete_school_job(db, account, job_id, force=force)
    except PlacementError as e:
        raise http_error(e)
    logger.info(f"School account {account.id} deleted job {job_id}")


@router.post("/{job_id}/run-matching", response_model=MatchRunResponse)
async def run_matching(
    job_id: int,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """Score every active teacher against this job and store the ranking."""
    try:
        job = await get_school_job(db, account, job_id)
    except PlacementError as e:
        raise http_error(e)

    result = await run_job_matching(db, job)
    if result.matches_created:
        message = f"Found {result.matches_created} matching teachers"
    else:
        message = "No matching teachers found yet"
    return MatchRunResponse(
        job_id=job.id,
        matches_created=result.matches_created,
        top_score=result.top_score,
        message=message,
    )


@router.get("/{job_id}/matches", response_model=Page[CandidateMatchResponse])
async def get_matches(
    job_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """Stored candidates for the job, best first, with interview selection flags."""
    try:
        job = await get_school_job(db, account, job_id)
    except PlacementError as e:
        raise http_error(e)

    rows, total = await list_job_matches(db, job.id, skip=skip, limit=limit)
    items = [
        build_candidate_response(
            teacher, match.match_score, match.match_reasons, match.score_breakdown, selection_id
        )
        for match, teacher, selection_id in rows
    ]
    # Reaching this point means the account has paid, so nothing is redacted
    return Page[CandidateMatchResponse](
        items=items, total=total, skip=skip, limit=limit, has_full_access=True
    )

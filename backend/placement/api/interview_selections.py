"""
Interview selection endpoints for school accounts.

Schools shortlist teachers for their own job postings and track each
shortlist entry from interview to offer outcome.
"""
import logging
from typing import Dict, Optional, Sequence

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import get_current_school_account
from placement.api.errors import http_error
from placement.database import get_db
from placement.models.interview_selection import InterviewSelection, InterviewSelectionStatus
from placement.models.job import Job
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.schemas.interview_selection import (
    InterviewSelectionCreate,
    InterviewSelectionResponse,
    InterviewSelectionUpdate,
)
from placement.services.errors import PaymentRequiredError, PlacementError
from placement.services.interview_selections import (
    create_selection,
    delete_selection,
    is_terminal_selection,
    list_selections,
    update_selection,
)
from placement.services.teachers import build_teacher_summary

logger = logging.getLogger(__name__)
router = APIRouter()


async def build_selection_responses(
    db: AsyncSession,
    selections: Sequence[InterviewSelection],
) -> list[InterviewSelectionResponse]:
    teacher_ids = {s.teacher_id for s in selections}
    job_ids = {s.job_id for s in selections}

    teachers: Dict[int, Teacher] = {}
    if teacher_ids:
        rows = await db.execute(select(Teacher).where(Teacher.id.in_(teacher_ids)))
        teachers = {t.id: t for t in rows.scalars().all()}
    job_titles: Dict[int, str] = {}
    if job_ids:
        rows = await db.execute(select(Job.id, Job.title).where(Job.id.in_(job_ids)))
        job_titles = {row.id: row.title for row in rows.all()}

    responses = []
    for selection in selections:
        status = InterviewSelectionStatus(selection.status)
        teacher = teachers.get(selection.teacher_id)
        responses.append(InterviewSelectionResponse(
            id=selection.id,
            school_account_id=selection.school_account_id,
            teacher_id=selection.teacher_id,
            job_id=selection.job_id,
            job_title=job_titles.get(selection.job_id),
            status=status,
            notes=selection.notes,
            is_terminal=is_terminal_selection(status),
            selected_at=selection.selected_at,
            status_updated_at=selection.status_updated_at,
            teacher=build_teacher_summary(teacher) if teacher else None,
        ))
    return responses


@router.get("/", response_model=list[InterviewSelectionResponse])
async def list_my_selections(
    status: Optional[InterviewSelectionStatus] = Query(None, description="Filter by status"),
    job_id: Optional[int] = Query(None, description="Filter by job"),
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    if not account.has_paid:
        raise http_error(PaymentRequiredError("Upgrade your school account to manage interview selections"))
    selections = await list_selections(db, school_account_id=account.id, status=status, job_id=job_id)
    return await build_selection_responses(db, selections)


@router.post("/", response_model=InterviewSelectionResponse, status_code=201)
async def select_teacher(
    body: InterviewSelectionCreate,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """
    Shortlist a teacher for one of the school's jobs.

    Returns 409 if the teacher is already selected for that job.
    """
    try:
        selection = await create_selection(db, account, body.teacher_id, body.job_id, body.notes)
    except PlacementError as e:
        raise http_error(e)
    responses = await build_selection_responses(db, [selection])
    return responses[0]


@router.patch("/{selection_id}", response_model=InterviewSelectionResponse)
async def update_my_selection(
    selection_id: int,
    body: InterviewSelectionUpdate,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    """Advance a selection or edit its notes. Same status is a no-op."""
    try:
        selection = await update_selection(
            db,
            account,
            selection_id,
            status=body.status,
            notes=body.notes,
            notes_set="notes" in body.model_fields_set,
        )
    except PlacementError as e:
        raise http_error(e)
    responses = await build_selection_responses(db, [selection])
    return responses[0]


@router.delete("/{selection_id}", status_code=204)
async def remove_selection(
    selection_id: int,
    account: SchoolAccount = Depends(get_current_school_account),
    db: AsyncSession = Depends(get_db),
):
    try:
        await delete_selection(db, account, selection_id)
    except PlacementError as e:
        raise http_error(e)

"""
Matching runs and stored match results.

A run scores one teacher against every open opportunity (or one job against
every active teacher), ranks the results and replaces the previously stored
matches of the same kind for that teacher/job in a single commit. Teacher runs
and job runs keep separate rows, so neither side clears the other's results.
Concurrent runs for the same key are coalesced: a caller that had to wait for
an in-flight run returns that run's fresh results instead of recomputing.
"""
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple, Union

from sqlalchemy import select, delete, and_, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from placement.config import settings
from placement.models.application import Application, ApplicationStatus
from placement.models.interview_selection import InterviewSelection
from placement.models.job import Job
from placement.models.match import Match, MatchRunKind
from placement.models.school import School
from placement.models.teacher import Teacher
from placement.services.locks import KeyedLock
from placement.services.scoring import (
    MatchScore,
    opportunity_from_job,
    opportunity_from_school,
    rank_candidates,
    rank_matches,
    score_match,
    teacher_view,
)

logger = logging.getLogger(__name__)

run_locks = KeyedLock()


@dataclass
class MatchRunResult:
    matches_created: int
    top_score: Optional[int]
    coalesced: bool = False


def teacher_run_key(teacher_id: int) -> str:
    return f"teacher:{teacher_id}"


def job_run_key(job_id: int) -> str:
    return f"job:{job_id}"


async def _stored_summary(db: AsyncSession, column, value, kind: MatchRunKind) -> MatchRunResult:
    result = await db.execute(
        select(func.count(Match.id), func.max(Match.match_score)).where(
            and_(column == value, Match.run_kind == kind.value)
        )
    )
    count, top = result.one()
    return MatchRunResult(matches_created=count or 0, top_score=top, coalesced=True)


# ============================================================
# TEACHER → OPPORTUNITIES
# ============================================================

async def run_teacher_matching(db: AsyncSession, teacher: Teacher) -> MatchRunResult:
    """
    Score a teacher against all active schools and open jobs.

    Replaces the teacher's stored matches with the top
    settings.matching_result_limit results at or above settings.min_match_score.
    """
    async with run_locks.hold(teacher_run_key(teacher.id)) as waited:
        if waited:
            logger.info(f"Matching run for teacher {teacher.id} coalesced with in-flight run")
            return await _stored_summary(db, Match.teacher_id, teacher.id, MatchRunKind.TEACHER)

        schools = (await db.execute(select(School).where(School.is_active.is_(True)))).scalars().all()
        jobs = (await db.execute(select(Job).where(Job.is_active.is_(True)))).scalars().all()

        view = teacher_view(teacher)
        opportunities = [opportunity_from_school(s) for s in schools]
        opportunities += [opportunity_from_job(j) for j in jobs if j.is_open()]

        scored = [(opp, score_match(view, opp)) for opp in opportunities]
        ranked = [
            pair for pair in rank_matches(scored)
            if pair[1].total >= settings.min_match_score
        ][:settings.matching_result_limit]

        await db.execute(delete(Match).where(
            and_(Match.teacher_id == teacher.id, Match.run_kind == MatchRunKind.TEACHER.value)
        ))
        for opportunity, score in ranked:
            db.add(Match(
                teacher_id=teacher.id,
                school_id=opportunity.id if opportunity.kind == "school" else None,
                job_id=opportunity.id if opportunity.kind == "job" else None,
                run_kind=MatchRunKind.TEACHER.value,
                match_score=score.total,
                match_reasons=score.reasons,
                score_breakdown=score.breakdown(),
            ))
        await db.commit()

        top = ranked[0][1].total if ranked else None
        logger.info(
            f"Matching run for teacher {teacher.id}: {len(opportunities)} opportunities scored, "
            f"{len(ranked)} matches stored (top={top})"
        )
        return MatchRunResult(matches_created=len(ranked), top_score=top)


async def list_teacher_matches(
    db: AsyncSession,
    teacher_id: int,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[Tuple[Match, Union[School, Job], bool]], int]:
    """
    Stored matches for a teacher, best first.

    Returns ([(match, school_or_job, is_submitted), ...], total).
    """
    # Rows whose school or job has since been removed are left out of items and total alike
    base = and_(
        Match.teacher_id == teacher_id,
        Match.run_kind == MatchRunKind.TEACHER.value,
        or_(School.id.is_not(None), Job.id.is_not(None)),
    )
    total = (await db.execute(
        select(func.count(Match.id))
        .outerjoin(School, School.id == Match.school_id)
        .outerjoin(Job, Job.id == Match.job_id)
        .where(base)
    )).scalar_one()

    rows = (await db.execute(
        select(Match, School, Job)
        .outerjoin(School, School.id == Match.school_id)
        .outerjoin(Job, Job.id == Match.job_id)
        .where(base)
        .order_by(Match.match_score.desc(), Match.id.asc())
        .offset(skip)
        .limit(limit)
    )).all()

    # Applied-to opportunities (declined applications do not count)
    applied = (await db.execute(
        select(Application.school_id, Application.job_id).where(
            and_(
                Application.teacher_id == teacher_id,
                Application.status != ApplicationStatus.DECLINED.value,
            )
        )
    )).all()
    applied_schools = {row.school_id for row in applied if row.school_id is not None}
    applied_jobs = {row.job_id for row in applied if row.job_id is not None}

    items = []
    for match, school, job in rows:
        if school is not None:
            items.append((match, school, school.id in applied_schools))
        else:
            items.append((match, job, job.id in applied_jobs))

    return items, total


# ============================================================
# JOB → TEACHERS
# ============================================================

async def run_job_matching(db: AsyncSession, job: Job) -> MatchRunResult:
    """Score every active teacher against a job and replace its stored matches."""
    async with run_locks.hold(job_run_key(job.id)) as waited:
        if waited:
            logger.info(f"Matching run for job {job.id} coalesced with in-flight run")
            return await _stored_summary(db, Match.job_id, job.id, MatchRunKind.JOB)

        teachers = (await db.execute(
            select(Teacher).where(Teacher.is_active.is_(True)).order_by(Teacher.id)
        )).scalars().all()

        opportunity = opportunity_from_job(job)
        scored = [(t, score_match(teacher_view(t), opportunity)) for t in teachers]
        ranked = [
            pair for pair in rank_candidates(scored)
            if pair[1].total >= settings.min_match_score
        ][:settings.matching_result_limit]

        await db.execute(delete(Match).where(
            and_(Match.job_id == job.id, Match.run_kind == MatchRunKind.JOB.value)
        ))
        for teacher, score in ranked:
            db.add(Match(
                teacher_id=teacher.id,
                job_id=job.id,
                run_kind=MatchRunKind.JOB.value,
                match_score=score.total,
                match_reasons=score.reasons,
                score_breakdown=score.breakdown(),
            ))
        await db.commit()

        top = ranked[0][1].total if ranked else None
        logger.info(
            f"Matching run for job {job.id}: {len(teachers)} teachers scored, "
            f"{len(ranked)} matches stored (top={top})"
        )
        return MatchRunResult(matches_created=len(ranked), top_score=top)


async def list_job_matches(
    db: AsyncSession,
    job_id: int,
    skip: int = 0,
    limit: int = 50,
) -> Tuple[List[Tuple[Match, Teacher, Optional[int]]], int]:
    """
    Stored candidate matches for a job, best first.

    Returns ([(match, teacher, selection_id_or_None), ...], total).
    """
    base = and_(
        Match.job_id == job_id,
        Match.run_kind == MatchRunKind.JOB.value,
        Teacher.is_active.is_(True),
    )
    total = (await db.execute(
        select(func.count(Match.id)).join(Teacher, Teacher.id == Match.teacher_id).where(base)
    )).scalar_one()

    rows = (await db.execute(
        select(Match, Teacher)
        .join(Teacher, Teacher.id == Match.teacher_id)
        .where(base)
        .order_by(Match.match_score.desc(), Match.id.asc())
        .offset(skip)
        .limit(limit)
    )).all()

    selections = (await db.execute(
        select(InterviewSelection.teacher_id, InterviewSelection.id)
        .where(InterviewSelection.job_id == job_id)
    )).all()
    selected = {row.teacher_id: row.id for row in selections}

    return [(match, teacher, selected.get(teacher.id)) for match, teacher in rows], total


# ============================================================
# SCHOOL → TEACHERS (admin, not stored)
# ============================================================

async def score_school_candidates(
    db: AsyncSession,
    school: School,
    limit: int = 50,
) -> List[Tuple[Teacher, MatchScore]]:
    """Rank active teachers against a school without persisting anything."""
    teachers: Sequence[Teacher] = (await db.execute(
        select(Teacher).where(Teacher.is_active.is_(True)).order_by(Teacher.id)
    )).scalars().all()

    opportunity = opportunity_from_school(school)
    scored = [(t, score_match(teacher_view(t), opportunity)) for t in teachers]
    return rank_candidates(scored)[:limit]

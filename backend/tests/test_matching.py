"""
Tests for matching runs and stored match results.

Validates:
- A run replaces the previous matches of its own kind only (teacher vs job runs)
- Closed jobs and inactive schools are skipped
- Concurrent runs for the same teacher are coalesced
- is_submitted / selection flags
- API redaction for unpaid teachers and access control
"""
import asyncio
import uuid
from datetime import datetime, timedelta

import pytest
from sqlalchemy import delete, select, func

from placement.models.interview_selection import InterviewSelection
from placement.models.job import Job
from placement.models.match import Match, MatchRunKind
from placement.models.teacher import Teacher
from placement.services import matching
from placement.services.application_lifecycle import create_application
from placement.services.matching import (
    list_job_matches,
    list_teacher_matches,
    run_job_matching,
    run_teacher_matching,
    score_school_candidates,
    teacher_run_key,
)
from placement.services.visibility import REDACTED


async def _match_count(db, **filters) -> int:
    query = select(func.count(Match.id))
    for column, value in filters.items():
        query = query.where(getattr(Match, column) == value)
    return (await db.execute(query)).scalar_one()


# ============================================================
# TEACHER RUNS
# ============================================================

@pytest.mark.asyncio
async def test_run_stores_ranked_matches(db, teacher, school, job, make_job):
    await make_job(title="Art Teacher", city="Beijing", subjects=["Art"], age_groups=["High School"])

    result = await run_teacher_matching(db, teacher)

    assert result.matches_created == 3
    assert result.top_score == 100
    assert not result.coalesced

    rows, total = await list_teacher_matches(db, teacher.id)
    assert total == 3
    scores = [m.match_score for m, _, _ in rows]
    assert scores == sorted(scores, reverse=True)
    assert rows[-1][1].title == "Art Teacher"


@pytest.mark.asyncio
async def test_rerun_replaces_previous_matches(db, teacher, school, job):
    await run_teacher_matching(db, teacher)
    assert await _match_count(db, teacher_id=teacher.id) == 2

    job.is_active = False
    await db.commit()

    result = await run_teacher_matching(db, teacher)

    assert result.matches_created == 1
    assert await _match_count(db, teacher_id=teacher.id) == 1


@pytest.mark.asyncio
async def test_run_skips_closed_jobs_and_inactive_schools(db, teacher, school, make_job):
    await make_job(title="Expired", city="Shanghai", expiry_date=datetime.utcnow() - timedelta(days=1))
    school.is_active = False
    await db.commit()

    result = await run_teacher_matching(db, teacher)

    assert result.matches_created == 0
    assert result.top_score is None


@pytest.mark.asyncio
async def test_run_honours_result_limit(db, teacher, make_job, monkeypatch):
    for i in range(5):
        await make_job(title=f"Job {i}", city="Shanghai")
    monkeypatch.setattr(matching.settings, "matching_result_limit", 2)

    result = await run_teacher_matching(db, teacher)

    assert result.matches_created == 2
    assert await _match_count(db, teacher_id=teacher.id) == 2


@pytest.mark.asyncio
async def test_concurrent_run_is_coalesced(db, teacher, school, job):
    first = await run_teacher_matching(db, teacher)

    # Simulate an in-flight run holding the teacher's lock
    async with matching.run_locks.hold(teacher_run_key(teacher.id)) as waited:
        assert waited is False
        task = asyncio.create_task(run_teacher_matching(db, teacher))
        await asyncio.sleep(0)
        assert not task.done()

    second = await task

    assert second.coalesced
    assert second.matches_created == first.matches_created
    assert second.top_score == first.top_score
    assert not matching.run_locks.is_locked(teacher_run_key(teacher.id))


@pytest.mark.asyncio
async def test_is_submitted_reflects_active_applications(db, paid_teacher, school, job):
    await create_application(db, paid_teacher, school_id=school.id)
    await run_teacher_matching(db, paid_teacher)

    rows, _ = await list_teacher_matches(db, paid_teacher.id)

    flags = {type(target).__name__: submitted for _, target, submitted in rows}
    assert flags == {"School": True, "Job": False}


@pytest.mark.asyncio
async def test_total_matches_returned_items_when_opportunity_removed(db, teacher, school, job):
    await run_teacher_matching(db, teacher)
    await db.execute(delete(Job).where(Job.id == job.id))
    await db.commit()

    rows, total = await list_teacher_matches(db, teacher.id)

    assert [type(target).__name__ for _, target, _ in rows] == ["School"]
    assert total == 1


# ============================================================
# JOB RUNS
# ============================================================

@pytest.mark.asyncio
async def test_job_run_scores_active_teachers(db, teacher, job, school_account):
    inactive = Teacher(
        user_id=uuid.uuid4(), first_name="Gone", last_name="Away", email="gone@example.com",
        preferred_location=["Shanghai"], is_active=False,
    )
    db.add(inactive)
    await db.commit()

    result = await run_job_matching(db, job)
    assert result.matches_created == 1

    selection = InterviewSelection(school_account_id=school_account.id, teacher_id=teacher.id, job_id=job.id)
    db.add(selection)
    await db.commit()

    rows, total = await list_job_matches(db, job.id)
    assert total == 1
    match, matched_teacher, selection_id = rows[0]
    assert matched_teacher.id == teacher.id
    assert selection_id == selection.id


@pytest.mark.asyncio
async def test_job_matches_hide_teachers_deactivated_after_run(db, teacher, job):
    await run_job_matching(db, job)
    teacher.is_active = False
    await db.commit()

    rows, total = await list_job_matches(db, job.id)

    assert rows == []
    assert total == 0


@pytest.mark.asyncio
async def test_teacher_run_keeps_job_run_candidates(db, teacher, job, make_job, monkeypatch):
    art_job = await make_job(title="Art Teacher", city="Beijing", subjects=["Art"])
    await run_job_matching(db, art_job)
    monkeypatch.setattr(matching.settings, "matching_result_limit", 1)

    # The teacher's own top match is the Shanghai English job, not the Art job
    result = await run_teacher_matching(db, teacher)
    assert result.matches_created == 1
    rows, _ = await list_teacher_matches(db, teacher.id)
    assert rows[0][1].id == job.id

    rows, total = await list_job_matches(db, art_job.id)
    assert total == 1
    assert rows[0][1].id == teacher.id


@pytest.mark.asyncio
async def test_job_run_keeps_teacher_run_matches(db, teacher, school, job):
    await run_teacher_matching(db, teacher)

    await run_job_matching(db, job)
    await run_job_matching(db, job)

    _, total = await list_teacher_matches(db, teacher.id)
    assert total == 2
    assert await _match_count(db, run_kind=MatchRunKind.JOB.value) == 1
    assert await _match_count(db, run_kind=MatchRunKind.TEACHER.value) == 2


@pytest.mark.asyncio
async def test_school_candidates_are_not_stored(db, teacher, school):
    ranked = await score_school_candidates(db, school)

    assert [t.id for t, _ in ranked] == [teacher.id]
    assert ranked[0][1].total == 100
    assert await _match_count(db) == 0


# ============================================================
# API
# ============================================================

@pytest.mark.asyncio
async def test_unpaid_teacher_sees_redacted_matches(async_client, teacher, teacher_headers, school, job):
    response = await async_client.post(
        f"/api/v1/matching/run?teacher_id={teacher.id}", headers=teacher_headers
    )
    assert response.status_code == 200
    assert response.json()["matches_created"] == 2

    response = await async_client.get(f"/api/v1/matching/teacher/{teacher.id}", headers=teacher_headers)
    assert response.status_code == 200
    data = response.json()

    assert data["total"] == 2
    assert data["has_full_access"] is False
    by_type = {item["opportunity"]["type"]: item["opportunity"] for item in data["items"]}
    assert by_type["school"]["name"] == REDACTED
    assert by_type["school"]["contact_email"] == REDACTED
    assert by_type["school"]["city"] == "Shanghai"
    assert by_type["job"]["company"] == REDACTED
    assert by_type["job"]["title"] == "ESL Teacher"


@pytest.mark.asyncio
async def test_paid_teacher_sees_full_matches(async_client, db, teacher, teacher_headers, school):
    teacher.has_paid = True
    await db.commit()
    await run_teacher_matching(db, teacher)

    response = await async_client.get(f"/api/v1/matching/teacher/{teacher.id}", headers=teacher_headers)

    data = response.json()
    assert data["has_full_access"] is True
    assert data["items"][0]["opportunity"]["name"] == "Shanghai International School"


@pytest.mark.asyncio
async def test_teacher_cannot_read_other_teachers_matches(async_client, teacher, stranger_headers):
    response = await async_client.get(f"/api/v1/matching/teacher/{teacher.id}", headers=stranger_headers)
    assert response.status_code == 403

    response = await async_client.post(f"/api/v1/matching/run?teacher_id={teacher.id}", headers=stranger_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_can_run_for_any_teacher(async_client, teacher, admin_headers, school):
    response = await async_client.post(
        f"/api/v1/matching/run?teacher_id={teacher.id}", headers=admin_headers
    )
    assert response.status_code == 200

    response = await async_client.get(f"/api/v1/matching/teacher/{teacher.id}", headers=admin_headers)
    data = response.json()
    assert data["has_full_access"] is True
    assert data["items"][0]["opportunity"]["name"] == "Shanghai International School"


@pytest.mark.asyncio
async def test_matching_requires_authentication(async_client, teacher):
    response = await async_client.get(f"/api/v1/matching/teacher/{teacher.id}")
    assert response.status_code == 401

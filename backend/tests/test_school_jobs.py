"""
Tests for school-owned job postings.

Validates:
- Only paid school accounts can post (402 otherwise)
- Active job quota (409 once max_jobs active postings exist)
- Deactivated jobs free a slot; re-activation is quota-checked
- Candidate matching for a school's own job
"""
import asyncio

import pytest
from httpx import AsyncClient
from sqlalchemy import select, func

from placement.models.job import Job
from placement.services.errors import QuotaExceededError
from placement.services.jobs import create_school_job


JOB_BODY = {
    "title": "Primary English Teacher",
    "city": "Shanghai",
    "subjects": ["English"],
    "age_groups": ["Primary"],
    "experience_required": 2,
    "salary_min": 18000,
    "salary_max": 24000,
}


async def _post_jobs(client: AsyncClient, headers: dict, count: int) -> list:
    responses = []
    for i in range(count):
        responses.append(await client.post(
            "/api/v1/school/jobs/", json={**JOB_BODY, "title": f"Teacher {i}"}, headers=headers
        ))
    return responses


# ============================================================
# CREATE
# ============================================================

@pytest.mark.asyncio
async def test_paid_school_posts_job(async_client: AsyncClient, paid_school_account, school_headers):
    response = await async_client.post("/api/v1/school/jobs/", json=JOB_BODY, headers=school_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["source"] == "school"
    assert data["company"] == "Pudong Bilingual Academy"
    assert data["school_account_id"] == paid_school_account.id
    assert data["salary_display"] == "18,000 - 24,000 RMB/month"


@pytest.mark.asyncio
async def test_unpaid_school_gets_402(async_client: AsyncClient, school_account, school_headers):
    response = await async_client.post("/api/v1/school/jobs/", json=JOB_BODY, headers=school_headers)
    assert response.status_code == 402

    response = await async_client.get("/api/v1/school/jobs/", headers=school_headers)
    assert response.status_code == 402


@pytest.mark.asyncio
async def test_no_school_account_gets_404(async_client: AsyncClient, teacher_headers):
    response = await async_client.get("/api/v1/school/jobs/", headers=teacher_headers)
    assert response.status_code == 404


# ============================================================
# QUOTA
# ============================================================

@pytest.mark.asyncio
async def test_quota_blocks_sixth_active_job(async_client: AsyncClient, paid_school_account, school_headers):
    responses = await _post_jobs(async_client, school_headers, 5)
    assert [r.status_code for r in responses] == [201] * 5

    response = await async_client.post("/api/v1/school/jobs/", json=JOB_BODY, headers=school_headers)

    assert response.status_code == 409
    assert "maximum of 5 active job postings" in response.json()["detail"]


@pytest.mark.asyncio
async def test_inactive_jobs_do_not_count(async_client: AsyncClient, paid_school_account, school_headers):
    await _post_jobs(async_client, school_headers, 5)

    response = await async_client.post(
        "/api/v1/school/jobs/", json={**JOB_BODY, "is_active": False}, headers=school_headers
    )
    assert response.status_code == 201


@pytest.mark.asyncio
async def test_deactivate_frees_slot_and_reactivate_is_checked(
    async_client: AsyncClient, paid_school_account, school_headers
):
    responses = await _post_jobs(async_client, school_headers, 5)
    first_id = responses[0].json()["id"]

    response = await async_client.patch(
        f"/api/v1/school/jobs/{first_id}", json={"is_active": False}, headers=school_headers
    )
    assert response.status_code == 200

    response = await async_client.post("/api/v1/school/jobs/", json=JOB_BODY, headers=school_headers)
    assert response.status_code == 201

    # All five slots are taken again, so re-activating the first job is refused
    response = await async_client.patch(
        f"/api/v1/school/jobs/{first_id}", json={"is_active": True}, headers=school_headers
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_stats(async_client: AsyncClient, paid_school_account, school_headers):
    await _post_jobs(async_client, school_headers, 2)
    await async_client.post(
        "/api/v1/school/jobs/", json={**JOB_BODY, "is_active": False}, headers=school_headers
    )

    response = await async_client.get("/api/v1/school/jobs/stats", headers=school_headers)

    assert response.json() == {"active_jobs": 2, "max_jobs": 5, "total_jobs": 3, "can_create": True}


@pytest.mark.asyncio
async def test_concurrent_creates_respect_quota(db, paid_school_account):
    paid_school_account.max_jobs = 2
    await db.commit()

    results = await asyncio.gather(
        *(create_school_job(db, paid_school_account, {"title": f"Job {i}"}) for i in range(4)),
        return_exceptions=True,
    )

    created = [r for r in results if isinstance(r, Job)]
    refused = [r for r in results if isinstance(r, QuotaExceededError)]
    assert len(created) == 2
    assert len(refused) == 2

    active = (await db.execute(
        select(func.count(Job.id)).where(Job.school_account_id == paid_school_account.id)
    )).scalar_one()
    assert active == 2


# ============================================================
# OWNERSHIP / UPDATE
# ============================================================

@pytest.mark.asyncio
async def test_school_cannot_touch_staff_jobs(async_client: AsyncClient, paid_school_account, school_headers, job):
    response = await async_client.get(f"/api/v1/school/jobs/{job.id}", headers=school_headers)
    assert response.status_code == 404

    response = await async_client.delete(f"/api/v1/school/jobs/{job.id}", headers=school_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_update_ignores_company_and_external_url(
    async_client: AsyncClient, paid_school_account, school_headers
):
    created = await async_client.post("/api/v1/school/jobs/", json=JOB_BODY, headers=school_headers)
    job_id = created.json()["id"]

    response = await async_client.patch(
        f"/api/v1/school/jobs/{job_id}",
        json={"company": "Someone Else", "external_url": "https://elsewhere.example.com", "city": "Suzhou"},
        headers=school_headers,
    )

    data = response.json()
    assert data["company"] == "Pudong Bilingual Academy"
    assert data["external_url"] is None
    assert data["city"] == "Suzhou"


@pytest.mark.asyncio
async def test_delete_own_job(async_client: AsyncClient, db, paid_school_account, school_headers):
    created = await async_client.post("/api/v1/school/jobs/", json=JOB_BODY, headers=school_headers)
    job_id = created.json()["id"]

    response = await async_client.delete(f"/api/v1/school/jobs/{job_id}", headers=school_headers)

    assert response.status_code == 204
    assert (await db.execute(select(Job).where(Job.id == job_id))).scalar_one_or_none() is None


# ============================================================
# CANDIDATE MATCHING
# ============================================================

@pytest.mark.asyncio
async def test_run_matching_and_list_candidates(
    async_client: AsyncClient, paid_school_account, school_headers, teacher
):
    created = await async_client.post("/api/v1/school/jobs/", json=JOB_BODY, headers=school_headers)
    job_id = created.json()["id"]

    response = await async_client.post(f"/api/v1/school/jobs/{job_id}/run-matching", headers=school_headers)
    assert response.status_code == 200
    assert response.json()["matches_created"] == 1
    assert response.json()["job_id"] == job_id

    response = await async_client.get(f"/api/v1/school/jobs/{job_id}/matches", headers=school_headers)
    data = response.json()
    assert data["total"] == 1
    candidate = data["items"][0]
    assert candidate["teacher"]["first_name"] == "Emma"
    assert candidate["match_score"] == 100
    assert candidate["is_selected"] is False

    response = await async_client.post(
        "/api/v1/school/interview-selections/",
        json={"teacher_id": teacher.id, "job_id": job_id},
        headers=school_headers,
    )
    assert response.status_code == 201
    selection_id = response.json()["id"]

    response = await async_client.get(f"/api/v1/school/jobs/{job_id}/matches", headers=school_headers)
    candidate = response.json()["items"][0]
    assert candidate["is_selected"] is True
    assert candidate["selection_id"] == selection_id

"""
Tests for the job board and staff job management.
"""
from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from placement.models.application import Application
from placement.models.job import Job
from placement.models.match import Match
from placement.services.jobs import format_salary_display
from placement.services.visibility import REDACTED


# ============================================================
# SALARY DISPLAY
# ============================================================

@pytest.mark.parametrize("salary_min,salary_max,expected", [
    (15000, 22000, "15,000 - 22,000 RMB/month"),
    (15000, None, "From 15,000 RMB/month"),
    (None, 22000, "Up to 22,000 RMB/month"),
    (None, None, None),
])
def test_format_salary_display(salary_min, salary_max, expected):
    assert format_salary_display(salary_min, salary_max) == expected


# ============================================================
# BOARD
# ============================================================

@pytest.mark.asyncio
async def test_board_lists_only_open_jobs(async_client: AsyncClient, teacher_headers, job, make_job):
    await make_job(title="Inactive", is_active=False)
    await make_job(title="Expired", expiry_date=datetime.utcnow() - timedelta(days=1))
    await make_job(title="Past deadline", apply_by=datetime.utcnow() - timedelta(days=1))
    await make_job(title="Future deadline", apply_by=datetime.utcnow() + timedelta(days=7))

    response = await async_client.get("/api/v1/jobs/", headers=teacher_headers)

    assert response.status_code == 200
    data = response.json()
    titles = {item["title"] for item in data["items"]}
    assert titles == {"ESL Teacher", "Future deadline"}
    assert data["total"] == 2


@pytest.mark.asyncio
async def test_board_redacts_company_for_unpaid_viewers(async_client: AsyncClient, teacher_headers, job):
    response = await async_client.get("/api/v1/jobs/", headers=teacher_headers)

    data = response.json()
    assert data["has_full_access"] is False
    item = data["items"][0]
    assert item["company"] == REDACTED
    assert item["external_url"] == REDACTED
    assert item["city"] == "Shanghai"
    assert item["salary_display"] == "15,000 - 22,000 RMB/month"


@pytest.mark.asyncio
async def test_board_full_for_paid_school(async_client: AsyncClient, paid_school_account, school_headers, job):
    response = await async_client.get("/api/v1/jobs/", headers=school_headers)

    data = response.json()
    assert data["has_full_access"] is True
    assert data["items"][0]["company"] == "Bright Future Education"


@pytest.mark.asyncio
async def test_board_filters(async_client: AsyncClient, teacher_headers, job, make_job):
    await make_job(title="Maths Teacher", city="Beijing", subjects=["Mathematics"], description="IB maths")

    response = await async_client.get("/api/v1/jobs/?city=beijing", headers=teacher_headers)
    assert [i["title"] for i in response.json()["items"]] == ["Maths Teacher"]

    response = await async_client.get("/api/v1/jobs/?subject=english", headers=teacher_headers)
    assert [i["title"] for i in response.json()["items"]] == ["ESL Teacher"]

    response = await async_client.get("/api/v1/jobs/?search=IB", headers=teacher_headers)
    assert [i["title"] for i in response.json()["items"]] == ["Maths Teacher"]


@pytest.mark.asyncio
async def test_board_pagination(async_client: AsyncClient, teacher_headers, make_job):
    for i in range(5):
        await make_job(title=f"Job {i}")

    response = await async_client.get("/api/v1/jobs/?skip=2&limit=2", headers=teacher_headers)

    data = response.json()
    assert data["total"] == 5
    assert len(data["items"]) == 2
    assert data["skip"] == 2
    assert data["limit"] == 2


@pytest.mark.asyncio
async def test_board_requires_authentication(async_client: AsyncClient, job):
    response = await async_client.get("/api/v1/jobs/")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_get_missing_job(async_client: AsyncClient, teacher_headers):
    response = await async_client.get("/api/v1/jobs/9999", headers=teacher_headers)
    assert response.status_code == 404


# ============================================================
# STAFF MANAGEMENT
# ============================================================

@pytest.mark.asyncio
async def test_admin_creates_job_with_salary_display(async_client: AsyncClient, admin_headers):
    job_data = {
        "title": "Kindergarten Teacher",
        "company": "Little Stars",
        "city": "Hangzhou",
        "subjects": "English, Phonics",
        "salary_min": 14000,
        "salary_max": 18000,
        "source": "external",
        "external_url": "https://example.com/jobs/42",
    }

    response = await async_client.post("/api/v1/jobs/", json=job_data, headers=admin_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["subjects"] == ["English", "Phonics"]
    assert data["salary_display"] == "14,000 - 18,000 RMB/month"
    assert data["source"] == "external"
    assert data["school_account_id"] is None


@pytest.mark.asyncio
async def test_create_rejects_inverted_salary(async_client: AsyncClient, admin_headers):
    response = await async_client.post(
        "/api/v1/jobs/",
        json={"title": "Bad", "salary_min": 20000, "salary_max": 10000},
        headers=admin_headers,
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_recomputes_salary_display(async_client: AsyncClient, admin_headers, job):
    response = await async_client.patch(
        f"/api/v1/jobs/{job.id}", json={"salary_max": 30000}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.json()["salary_display"] == "15,000 - 30,000 RMB/month"


@pytest.mark.asyncio
async def test_update_rejects_salary_below_existing_min(async_client: AsyncClient, admin_headers, job):
    response = await async_client.patch(
        f"/api/v1/jobs/{job.id}", json={"salary_max": 1000}, headers=admin_headers
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_non_admin_cannot_create_jobs(async_client: AsyncClient, teacher_headers):
    response = await async_client.post("/api/v1/jobs/", json={"title": "Sneaky"}, headers=teacher_headers)
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_delete_job_removes_matches(async_client: AsyncClient, db, admin_headers, job, teacher):
    db.add(Match(teacher_id=teacher.id, job_id=job.id, match_score=80))
    await db.commit()

    response = await async_client.delete(f"/api/v1/jobs/{job.id}", headers=admin_headers)

    assert response.status_code == 204
    assert (await db.execute(select(Job).where(Job.id == job.id))).scalar_one_or_none() is None
    assert (await db.execute(select(Match).where(Match.job_id == job.id))).first() is None


@pytest.mark.asyncio
async def test_delete_job_with_applications_needs_force(
    async_client: AsyncClient, db, admin_headers, job, teacher
):
    db.add(Application(teacher_id=teacher.id, job_id=job.id, status="pending"))
    await db.commit()

    response = await async_client.delete(f"/api/v1/jobs/{job.id}", headers=admin_headers)
    assert response.status_code == 409

    response = await async_client.delete(f"/api/v1/jobs/{job.id}?force=true", headers=admin_headers)
    assert response.status_code == 204
    assert (await db.execute(select(Application).where(Application.job_id == job.id))).first() is None

"""
Tests for Applications API endpoints.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from placement.models.application import Application, ApplicationStatus
from placement.models.school import School
from placement.models.teacher import Teacher
from placement.services.visibility import REDACTED


async def _pay(db: AsyncSession, teacher: Teacher) -> None:
    teacher.has_paid = True
    await db.commit()


# ============================================================
# APPLY
# ============================================================

@pytest.mark.asyncio
async def test_apply_to_school(async_client: AsyncClient, db, teacher, teacher_headers, school: School):
    """Paid teacher applies and gets a pending application with full details."""
    await _pay(db, teacher)

    response = await async_client.post(
        "/api/v1/applications/", json={"school_id": school.id}, headers=teacher_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "pending"
    assert data["progress_stage"] == 0
    assert data["progress_label"] == "Applied"
    assert data["is_job_application"] is False
    assert data["is_terminal"] is False
    assert data["opportunity"]["type"] == "school"
    assert data["opportunity"]["name"] == "Shanghai International School"


@pytest.mark.asyncio
async def test_apply_to_job_uses_job_title(async_client: AsyncClient, db, teacher, teacher_headers, job):
    await _pay(db, teacher)

    response = await async_client.post(
        "/api/v1/applications/", json={"job_id": job.id}, headers=teacher_headers
    )

    assert response.status_code == 201
    data = response.json()
    assert data["role_name"] == "ESL Teacher"
    assert data["is_job_application"] is True


@pytest.mark.asyncio
async def test_unpaid_teacher_gets_402(async_client: AsyncClient, teacher_headers, school):
    response = await async_client.post(
        "/api/v1/applications/", json={"school_id": school.id}, headers=teacher_headers
    )
    assert response.status_code == 402


@pytest.mark.asyncio
async def test_duplicate_application_returns_409(async_client: AsyncClient, db, teacher, teacher_headers, school):
    await _pay(db, teacher)
    first = await async_client.post(
        "/api/v1/applications/", json={"school_id": school.id}, headers=teacher_headers
    )
    assert first.status_code == 201

    second = await async_client.post(
        "/api/v1/applications/", json={"school_id": school.id}, headers=teacher_headers
    )

    assert second.status_code == 409
    assert "already applied" in second.json()["detail"]


@pytest.mark.asyncio
async def test_apply_needs_exactly_one_target(async_client: AsyncClient, teacher_headers, school, job):
    response = await async_client.post(
        "/api/v1/applications/",
        json={"school_id": school.id, "job_id": job.id},
        headers=teacher_headers,
    )
    assert response.status_code == 422

    response = await async_client.post("/api/v1/applications/", json={}, headers=teacher_headers)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_apply_without_profile_returns_404(async_client: AsyncClient, stranger_headers, school):
    response = await async_client.post(
        "/api/v1/applications/", json={"school_id": school.id}, headers=stranger_headers
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_admin_applies_on_behalf_of_unpaid_teacher(
    async_client: AsyncClient, teacher, admin_headers, school
):
    response = await async_client.post(
        "/api/v1/applications/",
        json={"school_id": school.id, "teacher_id": teacher.id, "notes": "Referred by recruiter"},
        headers=admin_headers,
    )

    assert response.status_code == 201
    data = response.json()
    assert data["teacher_id"] == teacher.id
    assert data["notes"] == "Referred by recruiter"


# ============================================================
# LIST
# ============================================================

@pytest.mark.asyncio
async def test_teacher_lists_only_own_applications(
    async_client: AsyncClient, teacher, teacher_headers, school, admin_headers
):
    await async_client.post(
        "/api/v1/applications/",
        json={"school_id": school.id, "teacher_id": teacher.id},
        headers=admin_headers,
    )

    response = await async_client.get("/api/v1/applications/", headers=teacher_headers)

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    # Unpaid teacher sees the application but not who the school is
    assert data[0]["opportunity"]["name"] == REDACTED
    assert data[0]["teacher"] is None


@pytest.mark.asyncio
async def test_admin_lists_all_with_teacher_details(
    async_client: AsyncClient, teacher, school, admin_headers
):
    await async_client.post(
        "/api/v1/applications/",
        json={"school_id": school.id, "teacher_id": teacher.id},
        headers=admin_headers,
    )

    response = await async_client.get("/api/v1/applications/?status=pending", headers=admin_headers)

    data = response.json()
    assert len(data) == 1
    assert data[0]["teacher"]["first_name"] == "Emma"
    assert data[0]["opportunity"]["name"] == "Shanghai International School"

    response = await async_client.get("/api/v1/applications/?status=placed", headers=admin_headers)
    assert response.json() == []


@pytest.mark.asyncio
async def test_teacher_cannot_list_another_teachers_applications(
    async_client: AsyncClient, teacher, stranger_headers
):
    response = await async_client.get(
        f"/api/v1/applications/teacher/{teacher.id}", headers=stranger_headers
    )
    assert response.status_code == 403


# ============================================================
# STATUS UPDATES (ADMIN)
# ============================================================

@pytest.fixture
def application_factory(db):
    async def _create(teacher: Teacher, school: School, status=ApplicationStatus.PENDING) -> Application:
        application = Application(teacher_id=teacher.id, school_id=school.id, status=status.value)
        db.add(application)
        await db.commit()
        await db.refresh(application)
        return application
    return _create


@pytest.mark.asyncio
async def test_admin_moves_application_forward(
    async_client: AsyncClient, db, teacher, school, admin_headers, application_factory
):
    application = await application_factory(teacher, school)

    response = await async_client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "interview_scheduled", "notes": "Tuesday 10am"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "interview_scheduled"
    assert data["notes"] == "Tuesday 10am"
    assert data["progress_label"] == "Interview"

    await db.refresh(application)
    assert application.status == "interview_scheduled"


@pytest.mark.asyncio
async def test_backward_move_returns_400(
    async_client: AsyncClient, teacher, school, admin_headers, application_factory
):
    application = await application_factory(teacher, school, ApplicationStatus.OFFER_EXTENDED)

    response = await async_client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "document_verification"},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert "offer_extended" in response.json()["detail"]


@pytest.mark.asyncio
async def test_submitted_is_accepted_as_pending(
    async_client: AsyncClient, teacher, school, admin_headers, application_factory
):
    application = await application_factory(teacher, school)

    response = await async_client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "submitted", "notes": "Waiting on documents"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    assert response.json()["notes"] == "Waiting on documents"


@pytest.mark.asyncio
async def test_omitted_notes_are_kept(
    async_client: AsyncClient, db, teacher, school, admin_headers, application_factory
):
    application = await application_factory(teacher, school)
    application.notes = "Keep me"
    await db.commit()

    response = await async_client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "document_verification"},
        headers=admin_headers,
    )

    assert response.json()["notes"] == "Keep me"


@pytest.mark.asyncio
async def test_status_update_requires_admin(
    async_client: AsyncClient, teacher, teacher_headers, school, application_factory
):
    application = await application_factory(teacher, school)

    response = await async_client.patch(
        f"/api/v1/applications/{application.id}/status",
        json={"status": "placed"},
        headers=teacher_headers,
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_status_update_unknown_application(async_client: AsyncClient, admin_headers):
    response = await async_client.patch(
        "/api/v1/applications/9999/status", json={"status": "placed"}, headers=admin_headers
    )
    assert response.status_code == 404

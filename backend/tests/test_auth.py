"""
Tests for bearer token authentication and the /me endpoint.
"""
import uuid
from datetime import datetime, timedelta

import jwt
import pytest
from httpx import AsyncClient

from placement.models.admin_user import AdminUser


# ============================================================
# TOKEN VALIDATION
# ============================================================

@pytest.mark.asyncio
async def test_missing_token_returns_401(async_client: AsyncClient):
    response = await async_client.get("/api/v1/auth/me")

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_expired_token_returns_401(async_client: AsyncClient, token_factory):
    token = token_factory(uuid.uuid4(), exp=datetime.utcnow() - timedelta(minutes=1))

    response = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401
    assert "expired" in response.json()["detail"].lower()


@pytest.mark.asyncio
async def test_wrong_audience_returns_401(async_client: AsyncClient, token_factory):
    token = token_factory(uuid.uuid4(), aud="some-other-project")

    response = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_bad_signature_returns_401(async_client: AsyncClient):
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "aud": "authenticated", "exp": datetime.utcnow() + timedelta(hours=1)},
        "not-the-real-secret-but-long-enough-for-hs256",
        algorithm="HS256",
    )

    response = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_non_uuid_subject_returns_401(async_client: AsyncClient, token_factory):
    token = token_factory(uuid.uuid4(), sub="not-a-uuid")

    response = await async_client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_role_claim_in_token_is_ignored(async_client: AsyncClient, token_factory):
    """A forged role claim does not make anyone an admin."""
    token = token_factory(uuid.uuid4(), role="service_role", app_metadata={"role": "admin"})

    response = await async_client.get(
        "/api/v1/admin/stats", headers={"Authorization": f"Bearer {token}"}
    )

    assert response.status_code == 403


# ============================================================
# /me
# ============================================================

@pytest.mark.asyncio
async def test_me_for_new_user(async_client: AsyncClient, stranger_headers):
    response = await async_client.get("/api/v1/auth/me", headers=stranger_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "none"
    assert data["email"] == "stranger@example.com"
    assert data["has_paid"] is False


@pytest.mark.asyncio
async def test_me_for_teacher(async_client: AsyncClient, teacher, teacher_headers):
    response = await async_client.get("/api/v1/auth/me", headers=teacher_headers)

    data = response.json()
    assert data["role"] == "teacher"
    assert data["teacher_id"] == teacher.id
    assert data["user_id"] == str(teacher.user_id)
    assert data["has_paid"] is False


@pytest.mark.asyncio
async def test_me_for_paid_school(async_client: AsyncClient, paid_school_account, school_headers):
    response = await async_client.get("/api/v1/auth/me", headers=school_headers)

    data = response.json()
    assert data["role"] == "school"
    assert data["school_account_id"] == paid_school_account.id
    assert data["has_paid"] is True


@pytest.mark.asyncio
async def test_admin_takes_precedence(async_client: AsyncClient, db, teacher, teacher_headers):
    db.add(AdminUser(id=teacher.user_id, full_name="Emma Clarke", role="master_admin"))
    await db.commit()

    response = await async_client.get("/api/v1/auth/me", headers=teacher_headers)

    data = response.json()
    assert data["role"] == "admin"
    assert data["admin_role"] == "master_admin"
    assert data["teacher_id"] == teacher.id


@pytest.mark.asyncio
async def test_inactive_admin_is_not_admin(async_client: AsyncClient, db, admin_user, admin_headers):
    admin_user.is_active = False
    await db.commit()

    response = await async_client.get("/api/v1/auth/me", headers=admin_headers)
    assert response.json()["role"] == "none"

    response = await async_client.get("/api/v1/admin/stats", headers=admin_headers)
    assert response.status_code == 403

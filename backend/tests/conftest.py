"""
Pytest fixtures for testing.
"""
import os

# Settings are read at import time; point them at test values first
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-for-unit-tests-only-0123456789")
os.environ.setdefault("PAYMENT_MODE", "dev")

import uuid
from datetime import datetime, timedelta
from typing import AsyncGenerator, Callable

import jwt
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Import database module BEFORE app to allow override
import placement.database
from placement.config import settings
from placement.database import Base
# Import ALL models so Base.metadata knows about all tables
from placement.models import AdminUser, Job, JobSource, School, SchoolAccount, Teacher

# Now import app (after we can override database)
from placement.main import app as fastapi_app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def make_token(user_id: uuid.UUID, email: str = "user@example.com", **overrides) -> str:
    """Mint a Supabase-style access token signed with the test secret."""
    payload = {
        "sub": str(user_id),
        "email": email,
        "aud": settings.supabase_jwt_audience,
        "role": "authenticated",
        "exp": datetime.utcnow() + timedelta(hours=1),
    }
    payload.update(overrides)
    return jwt.encode(payload, settings.supabase_jwt_secret, algorithm="HS256")


def auth_headers(user_id: uuid.UUID, **overrides) -> dict:
    return {"Authorization": f"Bearer {make_token(user_id, **overrides)}"}


@pytest_asyncio.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database for each test.
    Ensures cleanup happens even if test fails.
    """
    # StaticPool keeps one connection so every session sees the same in-memory DB
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    # Replace the app's engine and sessionmaker so get_db() uses the test DB
    original_engine = placement.database.engine
    original_sessionmaker = placement.database.AsyncSessionLocal

    placement.database.engine = test_engine
    placement.database.AsyncSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )

    session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)()

    try:
        yield session
    finally:
        await session.close()
        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await test_engine.dispose()
        placement.database.engine = original_engine
        placement.database.AsyncSessionLocal = original_sessionmaker


@pytest_asyncio.fixture
async def async_client(db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Unauthenticated HTTP client against the app (test DB already swapped in)."""
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        follow_redirects=True,  # Follow 307 redirects for trailing slashes
    ) as client:
        yield client


# ============================================================
# ACCOUNTS
# ============================================================

@pytest_asyncio.fixture
async def teacher(db: AsyncSession) -> Teacher:
    """Unpaid teacher who wants to teach English in Shanghai."""
    teacher = Teacher(
        user_id=uuid.uuid4(),
        first_name="Emma",
        last_name="Clarke",
        email="emma@example.com",
        phone="+44 7700 900123",
        nationality="British",
        years_experience=3,
        chinese_level="basic",
        subject_specialty=["English"],
        preferred_location=["Shanghai"],
        preferred_age_group=["Primary"],
        cv_path="cvs/emma.pdf",
    )
    db.add(teacher)
    await db.commit()
    await db.refresh(teacher)
    return teacher


@pytest_asyncio.fixture
async def paid_teacher(db: AsyncSession, teacher: Teacher) -> Teacher:
    teacher.has_paid = True
    teacher.payment_date = datetime.utcnow()
    await db.commit()
    await db.refresh(teacher)
    return teacher


@pytest_asyncio.fixture
async def school_account(db: AsyncSession) -> SchoolAccount:
    """Unpaid school account with the default quota."""
    account = SchoolAccount(
        user_id=uuid.uuid4(),
        school_name="Pudong Bilingual Academy",
        contact_name="Li Wei",
        email="hr@pudong-academy.example.com",
        city="Shanghai",
        max_jobs=5,
    )
    db.add(account)
    await db.commit()
    await db.refresh(account)
    return account


@pytest_asyncio.fixture
async def paid_school_account(db: AsyncSession, school_account: SchoolAccount) -> SchoolAccount:
    school_account.has_paid = True
    school_account.payment_date = datetime.utcnow()
    await db.commit()
    await db.refresh(school_account)
    return school_account


@pytest_asyncio.fixture
async def admin_user(db: AsyncSession) -> AdminUser:
    admin = AdminUser(id=uuid.uuid4(), full_name="Site Admin", role="admin")
    db.add(admin)
    await db.commit()
    await db.refresh(admin)
    return admin


# ============================================================
# OPPORTUNITIES
# ============================================================

@pytest_asyncio.fixture
async def school(db: AsyncSession) -> School:
    school = School(
        name="Shanghai International School",
        city="Shanghai",
        province="Shanghai",
        school_type="International School",
        salary_range="18,000 - 25,000 RMB/month",
        subjects=["English"],
        age_groups=["Primary"],
        experience_required=2,
        contact_name="Zhang Min",
        contact_email="zhang.min@sis.example.com",
        contact_phone="+86 21 5555 0000",
    )
    db.add(school)
    await db.commit()
    await db.refresh(school)
    return school


@pytest_asyncio.fixture
async def job(db: AsyncSession) -> Job:
    job = Job(
        title="ESL Teacher",
        company="Bright Future Education",
        source=JobSource.ADMIN.value,
        city="Shanghai",
        subjects=["English"],
        age_groups=["Primary"],
        experience_required=2,
        salary_min=15000,
        salary_max=22000,
        salary_display="15,000 - 22,000 RMB/month",
        external_url="https://jobs.example.com/esl-teacher",
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return job


@pytest_asyncio.fixture
async def make_job(db: AsyncSession) -> Callable:
    """Factory for extra jobs: await make_job(title="...", **columns)."""
    async def _make(**kwargs) -> Job:
        kwargs.setdefault("title", "Teacher")
        kwargs.setdefault("source", JobSource.ADMIN.value)
        job = Job(**kwargs)
        db.add(job)
        await db.commit()
        await db.refresh(job)
        return job
    return _make


# ============================================================
# AUTHENTICATED CLIENTS
# ============================================================

@pytest.fixture
def teacher_headers(teacher: Teacher) -> dict:
    return auth_headers(teacher.user_id, email=teacher.email)


@pytest.fixture
def school_headers(school_account: SchoolAccount) -> dict:
    return auth_headers(school_account.user_id, email=school_account.email)


@pytest.fixture
def admin_headers(admin_user: AdminUser) -> dict:
    return auth_headers(admin_user.id, email="admin@example.com")


@pytest.fixture
def stranger_headers() -> dict:
    """Valid token for a signed-in user with no teacher, school or admin record."""
    return auth_headers(uuid.uuid4(), email="stranger@example.com")


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return make_token

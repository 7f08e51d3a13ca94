"""
Authentication dependencies and the /me endpoint.

Users sign in with Supabase on the frontend; every API call carries the
Supabase access token as a Bearer token. Tokens are HS256 JWTs signed with the
project's JWT secret:
- `sub` is the Supabase user id (UUID)
- `aud` must equal settings.supabase_jwt_audience
- `exp` is enforced

Roles are not taken from the token. Whether a user is a teacher, a school or
an admin (and whether they have paid) is always read from our own tables.
"""
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import jwt
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement.config import settings
from placement.database import get_db
from placement.models.admin_user import AdminUser
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.schemas.auth import MeResponse

logger = logging.getLogger(__name__)
router = APIRouter()

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Principal:
    """The authenticated Supabase user behind a request."""
    user_id: UUID
    email: Optional[str] = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> Principal:
    """
    Verify a Supabase access token and return its principal.

    Raises:
        HTTPException 401: Missing claims, bad signature, wrong audience or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.supabase_jwt_secret,
            algorithms=["HS256"],
            audience=settings.supabase_jwt_audience,
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Session expired. Please sign in again.")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected access token: {type(e).__name__}: {e}")
        raise _unauthorized("Invalid authentication token.")

    try:
        user_id = UUID(str(payload["sub"]))
    except ValueError:
        raise _unauthorized("Invalid authentication token.")

    return Principal(user_id=user_id, email=payload.get("email"))


# Authentication Dependencies
async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Not authenticated.")
    return decode_access_token(credentials.credentials)


async def get_current_teacher(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Teacher:
    """The active teacher profile owned by the caller."""
    result = await db.execute(select(Teacher).where(Teacher.user_id == principal.user_id))
    teacher = result.scalar_one_or_none()
    if not teacher or not teacher.is_active:
        raise HTTPException(status_code=404, detail="Teacher profile not found")
    return teacher


async def get_optional_teacher(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Optional[Teacher]:
    result = await db.execute(select(Teacher).where(Teacher.user_id == principal.user_id))
    return result.scalar_one_or_none()


async def get_current_school_account(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> SchoolAccount:
    """The school account owned by the caller."""
    result = await db.execute(
        select(SchoolAccount).where(SchoolAccount.user_id == principal.user_id)
    )
    account = result.scalar_one_or_none()
    if not account:
        raise HTTPException(status_code=404, detail="School account not found")
    return account


async def get_optional_admin(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
) -> Optional[AdminUser]:
    """The caller's admin record when it exists and is active, else None."""
    result = await db.execute(select(AdminUser).where(AdminUser.id == principal.user_id))
    admin = result.scalar_one_or_none()
    if admin and admin.is_active:
        return admin
    return None


async def require_admin(
    principal: Principal = Depends(get_current_principal),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
) -> AdminUser:
    """
    Dependency to require an active admin.

    Raises:
        HTTPException 403: Caller has no active admin record
    """
    if admin is None:
        logger.warning(f"User {principal.user_id} attempted to access admin endpoint")
        raise HTTPException(
            status_code=403,
            detail="Admin access required. You do not have permission to access this resource.",
        )
    return admin


# Endpoints
@router.get("/me", response_model=MeResponse)
async def me(
    principal: Principal = Depends(get_current_principal),
    admin: Optional[AdminUser] = Depends(get_optional_admin),
    teacher: Optional[Teacher] = Depends(get_optional_teacher),
    db: AsyncSession = Depends(get_db),
):
    """
    Describe the signed-in user.

    role precedence: admin, then school, then teacher; "none" for a fresh
    Supabase user who has not created a profile yet.
    """
    result = await db.execute(
        select(SchoolAccount).where(SchoolAccount.user_id == principal.user_id)
    )
    account = result.scalar_one_or_none()

    if admin:
        role = "admin"
    elif account:
        role = "school"
    elif teacher:
        role = "teacher"
    else:
        role = "none"

    if role == "school":
        has_paid = bool(account.has_paid)
    elif role == "teacher":
        has_paid = bool(teacher.has_paid)
    else:
        has_paid = role == "admin"

    return MeResponse(
        user_id=principal.user_id,
        email=principal.email,
        role=role,
        teacher_id=teacher.id if teacher else None,
        school_account_id=account.id if account else None,
        admin_role=admin.role if admin else None,
        has_paid=has_paid,
    )

"""Authentication-related Pydantic schemas."""
from typing import Optional
from uuid import UUID
from pydantic import BaseModel


class MeResponse(BaseModel):
    """Who the bearer token belongs to and which dashboards they can use."""
    user_id: UUID
    email: Optional[str] = None
    role: str  # teacher | school | admin | none
    teacher_id: Optional[int] = None
    school_account_id: Optional[int] = None
    admin_role: Optional[str] = None
    has_paid: bool = False

from datetime import datetime
import enum

from sqlalchemy import Column, String, DateTime, Boolean

from placement.database import Base
from placement.database_types import GUID


class AdminRole(str, enum.Enum):
    ADMIN = "admin"
    MASTER_ADMIN = "master_admin"


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(GUID, primary_key=True)  # Same id as the Supabase auth user
    full_name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default=AdminRole.ADMIN.value)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

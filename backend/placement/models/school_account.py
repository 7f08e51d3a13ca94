from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, Boolean

from placement.database import Base
from placement.database_types import GUID


class SchoolAccount(Base):
    """A school's own login, billing record and job posting quota."""
    __tablename__ = "school_accounts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(GUID, nullable=False, unique=True, index=True)  # Supabase auth user

    school_name = Column(String(255), nullable=False)
    contact_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=False)
    phone = Column(String(30), nullable=True)
    city = Column(String(100), nullable=True)
    province = Column(String(100), nullable=True)
    school_type = Column(String(100), nullable=True)

    # Billing
    has_paid = Column(Boolean, nullable=False, default=False)
    payment_id = Column(String, nullable=True)
    payment_date = Column(DateTime, nullable=True)
    preferred_currency = Column(String(3), nullable=True)

    # Maximum number of simultaneously active job postings
    max_jobs = Column(Integer, nullable=False, default=5)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

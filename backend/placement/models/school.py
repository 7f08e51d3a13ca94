from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text

from placement.database import Base
from placement.database_types import StringList


class School(Base):
    """A partner school with standing vacancies, managed by admins."""
    __tablename__ = "schools"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)

    # Location
    city = Column(String(100), nullable=True, index=True)
    province = Column(String(100), nullable=True)

    # Profile
    school_type = Column(String(100), nullable=True)  # e.g. "International School", "Training Center"
    salary_range = Column(String(100), nullable=True)  # e.g. "15,000 - 22,000 RMB/month"
    description = Column(Text, nullable=True)

    # Requirements
    subjects = Column(StringList, nullable=False, default=list)
    age_groups = Column(StringList, nullable=False, default=list)
    experience_required = Column(Integer, nullable=True)  # minimum years
    chinese_required = Column(Boolean, nullable=False, default=False)

    # Contact (hidden from unpaid teachers)
    contact_name = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)
    contact_phone = Column(String(30), nullable=True)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

from datetime import datetime
import enum

from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text

from placement.database import Base
from placement.database_types import GUID, StringList


class ChineseLevel(str, enum.Enum):
    """Self-reported Mandarin ability."""
    NONE = "none"
    BASIC = "basic"
    CONVERSATIONAL = "conversational"
    FLUENT = "fluent"
    NATIVE = "native"


class Teacher(Base):
    __tablename__ = "teachers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(GUID, nullable=False, unique=True, index=True)  # Supabase auth user

    # Identity & contact
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String, nullable=False, index=True)
    phone = Column(String(30), nullable=True)
    country_code = Column(String(8), nullable=True)
    nationality = Column(String(100), nullable=True)
    wechat_id = Column(String(100), nullable=True)
    linkedin = Column(String(500), nullable=True)
    instagram = Column(String(500), nullable=True)

    # Background
    years_experience = Column(Integer, nullable=True)
    education = Column(String(255), nullable=True)
    teaching_experience = Column(Text, nullable=True)
    professional_experience = Column(Text, nullable=True)
    additional_info = Column(Text, nullable=True)
    chinese_level = Column(String(20), nullable=True)  # ChineseLevel value

    # Matching preferences
    subject_specialty = Column(StringList, nullable=False, default=list)
    preferred_location = Column(StringList, nullable=False, default=list)
    preferred_age_group = Column(StringList, nullable=False, default=list)

    # Document references (storage paths, uploads happen client-side)
    cv_path = Column(String(500), nullable=True)
    headshot_photo_path = Column(String(500), nullable=True)
    intro_video_path = Column(String(500), nullable=True)

    # Payment
    has_paid = Column(Boolean, nullable=False, default=False)
    payment_id = Column(String, nullable=True)
    payment_date = Column(DateTime, nullable=True)
    detected_country = Column(String(2), nullable=True)
    detected_currency = Column(String(3), nullable=True)
    preferred_currency = Column(String(3), nullable=True)

    # Soft delete: teachers are never removed
    is_active = Column(Boolean, nullable=False, default=True, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

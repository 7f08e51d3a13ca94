from datetime import datetime
import enum

from sqlalchemy import Column, String, Integer, DateTime, Boolean, Text, ForeignKey, Index

from placement.database import Base
from placement.database_types import StringList


class JobSource(str, enum.Enum):
    """Where a job posting came from."""
    SCHOOL = "school"      # Posted by a school account (counts against quota)
    ADMIN = "admin"        # Entered by staff
    EXTERNAL = "external"  # Scraped/partner listing with an external_url


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    school_account_id = Column(Integer, ForeignKey("school_accounts.id", ondelete="CASCADE"), nullable=True, index=True)
    source = Column(String(20), nullable=False, default=JobSource.ADMIN.value)

    # Posting
    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=True)
    role_type = Column(String(50), nullable=True)  # teacher | head_of_department | coordinator | ...
    external_url = Column(String(1000), nullable=True)
    city = Column(String(100), nullable=True, index=True)
    province = Column(String(100), nullable=True)

    # Requirements
    subjects = Column(StringList, nullable=False, default=list)
    age_groups = Column(StringList, nullable=False, default=list)
    experience_required = Column(Integer, nullable=True)  # minimum years
    chinese_required = Column(Boolean, nullable=False, default=False)
    qualification = Column(String(255), nullable=True)

    # Compensation
    salary_min = Column(Integer, nullable=True)
    salary_max = Column(Integer, nullable=True)
    salary_display = Column(String(100), nullable=True)

    # Description
    description = Column(Text, nullable=True)
    key_responsibilities = Column(Text, nullable=True)
    requirements = Column(Text, nullable=True)
    benefits = Column(Text, nullable=True)
    school_info = Column(Text, nullable=True)

    # Lifecycle
    is_active = Column(Boolean, nullable=False, default=True)
    apply_by = Column(DateTime, nullable=True)
    expiry_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_jobs_account_active', 'school_account_id', 'is_active'),
    )

    def is_open(self, now: datetime | None = None) -> bool:
        """Active and neither past its apply-by date nor expired."""
        now = now or datetime.utcnow()
        if not self.is_active:
            return False
        if self.apply_by is not None and self.apply_by < now:
            return False
        if self.expiry_date is not None and self.expiry_date < now:
            return False
        return True

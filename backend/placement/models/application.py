from datetime import datetime
import enum

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Index, text

from placement.database import Base


class ApplicationStatus(str, enum.Enum):
    """Wire-level application statuses (spelling is part of the client contract)."""
    PENDING = "pending"
    DOCUMENT_VERIFICATION = "document_verification"
    SCHOOL_MATCHING = "school_matching"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETED = "interview_completed"
    OFFER_EXTENDED = "offer_extended"
    PLACED = "placed"
    DECLINED = "declined"


class Application(Base):
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id"), nullable=False, index=True)
    school_id = Column(Integer, ForeignKey("schools.id"), nullable=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=True, index=True)

    # State machine
    status = Column(String(32), nullable=False, default=ApplicationStatus.PENDING.value)

    role_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    expiry_date = Column(DateTime, nullable=True)

    # Timestamps
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_applications_teacher_status', 'teacher_id', 'status'),
        # At most one non-declined application per teacher/opportunity pair
        Index(
            'uq_active_school_application', 'teacher_id', 'school_id',
            unique=True,
            postgresql_where=text("status != 'declined' AND school_id IS NOT NULL"),
            sqlite_where=text("status != 'declined' AND school_id IS NOT NULL"),
        ),
        Index(
            'uq_active_job_application', 'teacher_id', 'job_id',
            unique=True,
            postgresql_where=text("status != 'declined' AND job_id IS NOT NULL"),
            sqlite_where=text("status != 'declined' AND job_id IS NOT NULL"),
        ),
    )

    @property
    def is_job_application(self) -> bool:
        return self.job_id is not None

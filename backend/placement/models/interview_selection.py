from datetime import datetime
import enum

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, UniqueConstraint

from placement.database import Base


class InterviewSelectionStatus(str, enum.Enum):
    """Wire-level statuses for a school's interview shortlist."""
    SELECTED_FOR_INTERVIEW = "selected_for_interview"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    INTERVIEW_COMPLETED = "interview_completed"
    OFFER_EXTENDED = "offer_extended"
    OFFER_ACCEPTED = "offer_accepted"
    OFFER_DECLINED = "offer_declined"
    WITHDRAWN = "withdrawn"


class InterviewSelection(Base):
    __tablename__ = "interview_selections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    school_account_id = Column(Integer, ForeignKey("school_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)

    status = Column(String(32), nullable=False, default=InterviewSelectionStatus.SELECTED_FOR_INTERVIEW.value)
    notes = Column(Text, nullable=True)

    selected_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    status_updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint('teacher_id', 'job_id', name='uq_selection_teacher_job'),
    )

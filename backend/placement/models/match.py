from datetime import datetime
import enum

from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Index

from placement.database import Base
from placement.database_types import JSONList


class MatchRunKind(str, enum.Enum):
    """Which side of the market produced a stored match."""
    TEACHER = "teacher"  # teacher run: one teacher against every opportunity
    JOB = "job"          # job run: one school job against every teacher


class Match(Base):
    """
    Stored result of the last matching run for a teacher/opportunity pair.

    Exactly one of school_id / job_id is set. Rows are replaced wholesale on
    every run of the same kind; a teacher run never touches rows written by a
    job run and vice versa.
    """
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    teacher_id = Column(Integer, ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False)
    school_id = Column(Integer, ForeignKey("schools.id", ondelete="CASCADE"), nullable=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=True)
    run_kind = Column(String(16), nullable=False, default=MatchRunKind.TEACHER.value)

    match_score = Column(Integer, nullable=False)
    match_reasons = Column(JSONList, nullable=False, default=list)
    score_breakdown = Column(JSONList, nullable=False, default=list)  # [{"name", "score", "weight"}]

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_matches_teacher', 'teacher_id', 'run_kind', 'match_score'),
        Index('idx_matches_job', 'job_id', 'run_kind', 'match_score'),
    )

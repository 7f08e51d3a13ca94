"""Database models"""
from placement.models.teacher import Teacher, ChineseLevel
from placement.models.school import School
from placement.models.school_account import SchoolAccount
from placement.models.job import Job, JobSource
from placement.models.match import Match, MatchRunKind
from placement.models.application import Application, ApplicationStatus
from placement.models.interview_selection import InterviewSelection, InterviewSelectionStatus
from placement.models.admin_user import AdminUser, AdminRole
from placement.models.payment_session import PaymentSession, PaymentStatus, AccountType

__all__ = [
    "Teacher",
    "ChineseLevel",
    "School",
    "SchoolAccount",
    "Job",
    "JobSource",
    "Match",
    "MatchRunKind",
    "Application",
    "ApplicationStatus",
    "InterviewSelection",
    "InterviewSelectionStatus",
    "AdminUser",
    "AdminRole",
    "PaymentSession",
    "PaymentStatus",
    "AccountType",
]

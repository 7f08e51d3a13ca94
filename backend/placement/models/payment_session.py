from datetime import datetime
import enum

from sqlalchemy import Column, String, Integer, DateTime, Numeric

from placement.database import Base
from placement.database_types import GUID


class AccountType(str, enum.Enum):
    TEACHER = "teacher"
    SCHOOL = "school"


class PaymentStatus(str, enum.Enum):
    OPEN = "open"
    PAID = "paid"
    EXPIRED = "expired"


class PaymentSession(Base):
    """Checkout session issued to a teacher or school account."""
    __tablename__ = "payment_sessions"

    id = Column(String(255), primary_key=True)  # Provider session id
    user_id = Column(GUID, nullable=False, index=True)
    account_type = Column(String(20), nullable=False)
    account_id = Column(Integer, nullable=False)

    currency = Column(String(3), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.OPEN.value)
    provider = Column(String(20), nullable=False, default="dev")

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

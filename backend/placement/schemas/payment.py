"""Payment-related Pydantic schemas."""
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from placement.models.payment_session import AccountType


class CurrencyDetectionResponse(BaseModel):
    detected_country: str
    detected_country_name: str
    detected_currency: str
    preferred_currency: Optional[str] = None
    effective_currency: str
    price_amount: Decimal
    price_formatted: str
    available_currencies: list[str]


class PreferredCurrencyRequest(BaseModel):
    currency: str = Field(..., min_length=3, max_length=3)


class CheckoutRequest(BaseModel):
    account_type: AccountType = AccountType.TEACHER
    currency: Optional[str] = Field(None, min_length=3, max_length=3)


class CheckoutResponse(BaseModel):
    session_id: str
    checkout_url: str
    amount: Decimal
    currency: str


class VerifySessionRequest(BaseModel):
    session_id: str


class VerifySessionResponse(BaseModel):
    session_id: str
    status: str
    has_paid: bool
    account_type: AccountType

"""
Payment endpoints: currency detection, checkout and verification.

Country detection uses the CF-IPCountry header set by Cloudflare (or
X-Country-Code from other proxies). It only picks a display currency; the
user can always override it.
"""
import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from placement.api.auth import Principal, get_current_principal
from placement.api.errors import http_error
from placement.database import get_db
from placement.models.payment_session import AccountType
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.schemas.payment import (
    CheckoutRequest,
    CheckoutResponse,
    CurrencyDetectionResponse,
    PreferredCurrencyRequest,
    VerifySessionRequest,
    VerifySessionResponse,
)
from placement.services.errors import PlacementError
from placement.services.payments import (
    SUPPORTED_CURRENCIES,
    Account,
    country_name,
    create_checkout_session,
    detect_currency,
    effective_currency,
    format_price,
    normalize_currency,
    price_for,
    verify_checkout_session,
)

logger = logging.getLogger(__name__)
router = APIRouter()


async def resolve_account(
    db: AsyncSession,
    principal: Principal,
    account_type: Optional[AccountType] = None,
) -> Tuple[AccountType, Account]:
    """
    The caller's teacher profile or school account.

    Without an explicit account_type the teacher profile wins.
    """
    if account_type in (None, AccountType.TEACHER):
        result = await db.execute(select(Teacher).where(Teacher.user_id == principal.user_id))
        teacher = result.scalar_one_or_none()
        if teacher:
            return AccountType.TEACHER, teacher
        if account_type == AccountType.TEACHER:
            raise HTTPException(status_code=404, detail="Teacher profile not found")

    result = await db.execute(
        select(SchoolAccount).where(SchoolAccount.user_id == principal.user_id)
    )
    account = result.scalar_one_or_none()
    if account:
        return AccountType.SCHOOL, account
    raise HTTPException(status_code=404, detail="No teacher profile or school account found")


def _currency_response(
    account_type: AccountType,
    account: Account,
    country: str,
    detected: str,
) -> CurrencyDetectionResponse:
    effective = effective_currency(detected, account.preferred_currency)
    amount = price_for(account_type, effective)
    return CurrencyDetectionResponse(
        detected_country=country,
        detected_country_name=country_name(country),
        detected_currency=detected,
        preferred_currency=account.preferred_currency,
        effective_currency=effective,
        price_amount=amount,
        price_formatted=format_price(amount, effective),
        available_currencies=list(SUPPORTED_CURRENCIES),
    )


# Endpoints
@router.get("/detect-currency", response_model=CurrencyDetectionResponse)
async def detect_currency_endpoint(
    account_type: Optional[AccountType] = Query(None),
    cf_ipcountry: Optional[str] = Header(None),
    x_country_code: Optional[str] = Header(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Detect the caller's billing currency and price.

    Teachers have the detected country/currency stored on their profile.
    """
    account_type, account = await resolve_account(db, principal, account_type)

    country = (cf_ipcountry or x_country_code or "").strip().upper()
    # Cloudflare sends XX/T1 for unknown and Tor traffic
    if country in ("", "XX", "T1"):
        country = getattr(account, "detected_country", None) or "US"
    detected = detect_currency(country)

    if account_type == AccountType.TEACHER and (
        account.detected_country != country or account.detected_currency != detected
    ):
        account.detected_country = country
        account.detected_currency = detected
        await db.commit()
        await db.refresh(account)

    return _currency_response(account_type, account, country, detected)


@router.put("/preferred-currency", response_model=CurrencyDetectionResponse)
async def set_preferred_currency(
    body: PreferredCurrencyRequest,
    account_type: Optional[AccountType] = Query(None),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    account_type, account = await resolve_account(db, principal, account_type)
    try:
        account.preferred_currency = normalize_currency(body.currency)
    except PlacementError as e:
        raise http_error(e)
    await db.commit()
    await db.refresh(account)

    country = getattr(account, "detected_country", None) or "US"
    detected = getattr(account, "detected_currency", None) or detect_currency(country)
    logger.info(f"{account_type.value} {account.id} set preferred currency {account.preferred_currency}")
    return _currency_response(account_type, account, country, detected)


@router.post("/create-checkout-session", response_model=CheckoutResponse)
async def create_checkout(
    body: CheckoutRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Start checkout for full access.

    Returns:
        200: Session created; redirect the browser to checkout_url
        400: Account already unlocked or unsupported currency
        502: Payment provider error
    """
    account_type, account = await resolve_account(db, principal, body.account_type)
    try:
        record, checkout_url = await create_checkout_session(
            db, principal.user_id, account_type, account, body.currency
        )
    except PlacementError as e:
        raise http_error(e)

    return CheckoutResponse(
        session_id=record.id,
        checkout_url=checkout_url,
        amount=record.amount,
        currency=record.currency,
    )


@router.post("/verify-session", response_model=VerifySessionResponse)
async def verify_session(
    body: VerifySessionRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Confirm payment after the checkout redirect and unlock the account.

    Idempotent. Returns 402 while the provider still reports the session unpaid.
    """
    try:
        record, account = await verify_checkout_session(db, principal.user_id, body.session_id)
    except PlacementError as e:
        raise http_error(e)

    return VerifySessionResponse(
        session_id=record.id,
        status=record.status,
        has_paid=bool(account.has_paid),
        account_type=AccountType(record.account_type),
    )

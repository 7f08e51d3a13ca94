"""
One-off "unlock full access" payments for teachers and school accounts.

Two modes, chosen by settings.payment_mode:
- stripe (default): sessions are created and checked against the Stripe
  Checkout REST API
- dev: checkout sessions are created locally and verify as paid immediately.
  Only honoured while settings.debug is on; otherwise dev sessions are neither
  created nor verified.

Either way the paid flag is only ever set here, after the provider (or the
local dev session) confirms payment.
"""
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

import aiohttp
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from placement.config import settings
from placement.models.payment_session import AccountType, PaymentSession, PaymentStatus
from placement.models.school_account import SchoolAccount
from placement.models.teacher import Teacher
from placement.services.errors import (
    NotFoundError,
    PaymentProviderError,
    PaymentRequiredError,
    ValidationError,
)

logger = logging.getLogger(__name__)


DEFAULT_CURRENCY = "USD"

PRICES: Dict[AccountType, Dict[str, Decimal]] = {
    AccountType.TEACHER: {
        "USD": Decimal("14.99"),
        "GBP": Decimal("10.00"),
        "EUR": Decimal("11.99"),
    },
    AccountType.SCHOOL: {
        "USD": Decimal("99.00"),
        "GBP": Decimal("79.00"),
        "EUR": Decimal("89.00"),
    },
}

SUPPORTED_CURRENCIES = ["USD", "GBP", "EUR"]

CURRENCY_SYMBOLS = {"USD": "$", "GBP": "£", "EUR": "€"}

EURO_COUNTRIES = {
    "AT", "BE", "HR", "CY", "EE", "FI", "FR", "DE", "GR", "IE", "IT",
    "LV", "LT", "LU", "MT", "NL", "PT", "SK", "SI", "ES",
}

COUNTRY_NAMES = {
    "US": "United States",
    "GB": "United Kingdom",
    "IE": "Ireland",
    "FR": "France",
    "DE": "Germany",
    "ES": "Spain",
    "IT": "Italy",
    "NL": "Netherlands",
    "BE": "Belgium",
    "PT": "Portugal",
    "AT": "Austria",
    "FI": "Finland",
    "GR": "Greece",
    "CA": "Canada",
    "AU": "Australia",
    "NZ": "New Zealand",
    "ZA": "South Africa",
    "CN": "China",
}

PRODUCT_NAMES = {
    AccountType.TEACHER: "Teacher full access",
    AccountType.SCHOOL: "School full access",
}


def detect_currency(country: Optional[str]) -> str:
    """ISO 3166 alpha-2 country → billing currency."""
    code = (country or "").strip().upper()
    if code in ("GB", "UK"):
        return "GBP"
    if code in EURO_COUNTRIES:
        return "EUR"
    return DEFAULT_CURRENCY


def country_name(country: Optional[str]) -> str:
    code = (country or "").strip().upper()
    if not code:
        return "Unknown"
    return COUNTRY_NAMES.get(code, code)


def normalize_currency(currency: Optional[str]) -> Optional[str]:
    """Upper-case a currency code, rejecting ones we do not bill in."""
    if currency is None:
        return None
    code = currency.strip().upper()
    if code not in SUPPORTED_CURRENCIES:
        raise ValidationError(
            f"Unsupported currency {currency!r}; choose one of {', '.join(SUPPORTED_CURRENCIES)}"
        )
    return code


def effective_currency(detected: Optional[str], preferred: Optional[str]) -> str:
    if preferred in SUPPORTED_CURRENCIES:
        return preferred
    if detected in SUPPORTED_CURRENCIES:
        return detected
    return DEFAULT_CURRENCY


def price_for(account_type: AccountType, currency: str) -> Decimal:
    table = PRICES[account_type]
    return table.get(currency, table[DEFAULT_CURRENCY])


def format_price(amount: Decimal, currency: str) -> str:
    return f"{CURRENCY_SYMBOLS.get(currency, '')}{amount:.2f}"


def _success_url(account_type: AccountType) -> str:
    path = "/school/payment/success" if account_type == AccountType.SCHOOL else "/payment/success"
    return f"{settings.get_frontend_url()}{path}?session_id={{CHECKOUT_SESSION_ID}}"


def _cancel_url(account_type: AccountType) -> str:
    path = "/school/payment" if account_type == AccountType.SCHOOL else "/payment"
    return f"{settings.get_frontend_url()}{path}?cancelled=true"


# ============================================================
# STRIPE REST
# ============================================================

async def _stripe_request(method: str, path: str, data: Optional[Dict[str, str]] = None) -> dict:
    if not settings.stripe_secret_key:
        raise PaymentProviderError("Payments are not configured")

    url = f"{settings.stripe_api_base.rstrip('/')}/{path.lstrip('/')}"
    headers = {"Authorization": f"Bearer {settings.stripe_secret_key}"}
    timeout = aiohttp.ClientTimeout(total=20)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.request(method, url, data=data, headers=headers) as resp:
                body = await resp.json(content_type=None)
                if resp.status >= 400:
                    message = (body or {}).get("error", {}).get("message", "unknown error")
                    logger.error(f"Stripe {method} {path} failed: status={resp.status} message={message}")
                    raise PaymentProviderError("Payment provider rejected the request")
                return body
    except aiohttp.ClientError as e:
        logger.error(f"Stripe {method} {path} unreachable: {type(e).__name__}: {e}")
        raise PaymentProviderError("Payment provider is unavailable, please try again")


async def _create_stripe_session(
    account_type: AccountType,
    account_id: int,
    currency: str,
    amount: Decimal,
    email: Optional[str],
) -> Tuple[str, str]:
    data = {
        "mode": "payment",
        "success_url": _success_url(account_type),
        "cancel_url": _cancel_url(account_type),
        "client_reference_id": f"{account_type.value}:{account_id}",
        "line_items[0][quantity]": "1",
        "line_items[0][price_data][currency]": currency.lower(),
        "line_items[0][price_data][unit_amount]": str(int(amount * 100)),
        "line_items[0][price_data][product_data][name]": PRODUCT_NAMES[account_type],
        "metadata[account_type]": account_type.value,
        "metadata[account_id]": str(account_id),
    }
    if email:
        data["customer_email"] = email
    body = await _stripe_request("POST", "checkout/sessions", data)
    return body["id"], body["url"]


async def _stripe_session_paid(session_id: str) -> bool:
    body = await _stripe_request("GET", f"checkout/sessions/{session_id}")
    return body.get("payment_status") == "paid"


# ============================================================
# CHECKOUT
# ============================================================

Account = Union[Teacher, SchoolAccount]


def dev_payments_enabled() -> bool:
    return settings.payment_mode == "dev" and settings.debug


def account_currency(account: Account) -> str:
    detected = getattr(account, "detected_currency", None)
    return effective_currency(detected, account.preferred_currency)


async def create_checkout_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    account_type: AccountType,
    account: Account,
    currency: Optional[str] = None,
) -> Tuple[PaymentSession, str]:
    """
    Start a checkout for the account.

    Returns (session record, checkout URL). Already-paid accounts are rejected.
    """
    if account.has_paid:
        raise ValidationError("This account already has full access")

    currency = normalize_currency(currency) or account_currency(account)
    amount = price_for(account_type, currency)

    if settings.payment_mode == "stripe":
        session_id, checkout_url = await _create_stripe_session(
            account_type, account.id, currency, amount, account.email
        )
        provider = "stripe"
    elif dev_payments_enabled():
        session_id = f"dev_{uuid.uuid4().hex}"
        checkout_url = _success_url(account_type).replace("{CHECKOUT_SESSION_ID}", session_id)
        provider = "dev"
    else:
        logger.error(
            f"Checkout refused: payment_mode={settings.payment_mode!r} with debug off has no payment provider"
        )
        raise PaymentProviderError("Payments are not available right now")

    record = PaymentSession(
        id=session_id,
        user_id=user_id,
        account_type=account_type.value,
        account_id=account.id,
        currency=currency,
        amount=amount,
        status=PaymentStatus.OPEN.value,
        provider=provider,
    )
    db.add(record)
    await db.commit()
    await db.refresh(record)

    logger.info(
        f"Created {provider} checkout session for {account_type.value} {account.id}",
        extra={"session_id": session_id, "currency": currency, "amount": str(amount)},
    )
    return record, checkout_url


async def _load_account(db: AsyncSession, record: PaymentSession) -> Account:
    model = SchoolAccount if record.account_type == AccountType.SCHOOL.value else Teacher
    result = await db.execute(select(model).where(model.id == record.account_id))
    account = result.scalar_one_or_none()
    if not account:
        raise NotFoundError("Account for this payment no longer exists")
    return account


async def verify_checkout_session(
    db: AsyncSession,
    user_id: uuid.UUID,
    session_id: str,
) -> Tuple[PaymentSession, Account]:
    """
    Confirm a checkout and unlock the account.

    Safe to call repeatedly: an already-paid session returns as-is.

    Raises:
        NotFoundError: Unknown session, or one started by another user
        PaymentRequiredError: Provider reports the session unpaid
    """
    result = await db.execute(
        select(PaymentSession).where(
            and_(PaymentSession.id == session_id, PaymentSession.user_id == user_id)
        )
    )
    record = result.scalar_one_or_none()
    if not record:
        raise NotFoundError("Payment session not found")

    account = await _load_account(db, record)
    if record.status == PaymentStatus.PAID.value:
        return record, account

    if record.provider == "stripe":
        paid = await _stripe_session_paid(session_id)
    elif dev_payments_enabled():
        paid = True
    else:
        logger.error(
            f"Refused to verify dev payment session {session_id} outside debug mode",
            extra={"session_id": session_id, "account_type": record.account_type},
        )
        raise PaymentRequiredError("Payment has not been confirmed by the payment provider")

    if not paid:
        logger.warning(f"Payment session {session_id} verified before payment completed")
        raise PaymentRequiredError("Payment has not been completed yet")

    now = datetime.utcnow()
    record.status = PaymentStatus.PAID.value
    record.completed_at = now
    account.has_paid = True
    account.payment_id = session_id
    account.payment_date = now
    await db.commit()
    await db.refresh(record)

    logger.info(
        f"Unlocked full access for {record.account_type} {record.account_id}",
        extra={"session_id": session_id, "provider": record.provider},
    )
    return record, account

"""
Payment / subscription API endpoints

The webhook is the only unauthenticated route: it is authenticated by an
HMAC-SHA256 signature of the raw body (X-Signature header) instead of the
session cookie.
"""
import json
import logging
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, Request
from starlette.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError, field_validator
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_account_id, get_current_user, get_now
from app.application.subscriptions import (
    CreatePaymentAttemptUseCase, ApplyGatewayResultUseCase, ReconcilePaymentUseCase,
    RefundPaymentUseCase, CancelSubscriptionUseCase,
    get_active_subscription, get_payment_attempt,
)
from app.config import get_settings
from app.domain.errors import InvalidInputError, UnauthenticatedError
from app.infrastructure.db.models import PaymentAttemptModel, User
from app.infrastructure.eventlog.repository import EventLogRepository
from app.infrastructure.gateway.instasend import verify_webhook_signature

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/payments", tags=["payments"])

LEDGER_EVENT_TYPES = ["payment_completed", "payment_failed", "payment_refunded"]


# === Request/Response models ===

class CreatePaymentRequest(BaseModel):
    amount: Decimal | None = None  # defaults to the premium price
    description: str = "MamaCare Premium subscription"
    phone: str | None = None  # defaults to the account phone

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal | None) -> Decimal | None:
        if v is not None and v <= 0:
            raise ValueError("Amount must be positive")
        return v


class WebhookPayload(BaseModel):
    reference: str
    transaction_id: str | None = None
    status: str  # success/failed/pending
    amount: Decimal | None = None
    phone_number: str | None = None
    timestamp: str | None = None


class PaymentResponse(BaseModel):
    reference: str
    amount: Decimal
    currency: str
    description: str
    status: str
    transaction_id: str | None


class SubscriptionResponse(BaseModel):
    plan_type: str
    status: str
    amount: Decimal
    currency: str
    payment_reference: str | None


def _to_response(p: PaymentAttemptModel) -> PaymentResponse:
    return PaymentResponse(
        reference=p.reference,
        amount=p.amount,
        currency=p.currency,
        description=p.description,
        status=p.status,
        transaction_id=p.transaction_id,
    )


# === Endpoints ===

@router.post("/", response_model=PaymentResponse, status_code=201)
def create_payment(
    req: CreatePaymentRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a pending attempt and start an M-Pesa collection"""
    phone = req.phone or user.phone
    if not phone:
        raise InvalidInputError("Phone number is required for payment")
    payment, _ = CreatePaymentAttemptUseCase(db).execute(
        account_id=user.id,
        amount=req.amount or get_settings().PREMIUM_PRICE,
        description=req.description,
        phone=phone,
    )
    return _to_response(payment)


@router.get("/subscription", response_model=SubscriptionResponse)
def active_subscription(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    sub = get_active_subscription(db, account_id)
    return SubscriptionResponse(
        plan_type=sub.plan_type,
        status=sub.status,
        amount=sub.amount,
        currency=sub.currency,
        payment_reference=sub.payment_reference,
    )


@router.post("/subscription/cancel")
def cancel_subscription(
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    CancelSubscriptionUseCase(db).execute(account_id, now.date())
    return {"success": True}


@router.get("/events")
def ledger_events(
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    """Audit trail of payment status transitions"""
    events = EventLogRepository(db).list_events(account_id, event_types=LEDGER_EVENT_TYPES)
    return [
        {"event_type": e.event_type, "occurred_at": e.occurred_at, "payload": e.payload_json}
        for e in events
    ]


@router.post("/webhook")
async def payment_webhook(
    request: Request,
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Gateway notification: verified, then applied idempotently by reference"""
    body = await request.body()
    signature = request.headers.get("X-Signature")
    if not verify_webhook_signature(body, signature, get_settings().PAYMENT_WEBHOOK_SECRET):
        logger.warning("Rejected payment webhook with missing or invalid signature")
        raise UnauthenticatedError("Invalid webhook signature")

    try:
        payload = WebhookPayload.model_validate(json.loads(body))
    except (ValueError, ValidationError) as e:
        raise InvalidInputError(f"Malformed webhook payload: {e}") from e

    if payload.status == "pending":
        return {"received": True, "reference": payload.reference, "applied": False}

    # sync ledger and SMS calls run in the threadpool
    payment = await run_in_threadpool(
        ApplyGatewayResultUseCase(db).execute,
        payload.reference,
        payload.status,
        transaction_id=payload.transaction_id,
        amount=payload.amount,
        now=now,
    )
    return {"received": True, "reference": payment.reference, "status": payment.status}


@router.get("/{reference}", response_model=PaymentResponse)
def payment_status(
    reference: str,
    account_id: int = Depends(get_current_account_id),
    db: Session = Depends(get_db),
):
    return _to_response(get_payment_attempt(db, account_id, reference))


@router.post("/{reference}/reconcile", response_model=PaymentResponse)
def reconcile_payment(
    reference: str,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    """Ask the gateway for the result of a still-pending attempt"""
    return _to_response(ReconcilePaymentUseCase(db).execute(reference, account_id, now=now))


@router.post("/{reference}/refund", response_model=PaymentResponse)
def refund_payment(
    reference: str,
    account_id: int = Depends(get_current_account_id),
    now: datetime = Depends(get_now),
    db: Session = Depends(get_db),
):
    return _to_response(RefundPaymentUseCase(db).execute(reference, account_id, now=now))

"""
Subscription ledger - payment attempts drive the account's subscription.

Invariants:
  - payments.reference is unique and is the webhook idempotency key:
    a notification for an attempt that is no longer pending is a no-op.
  - at most one subscription with status 'active' per account
    (partial unique index uq_subscriptions_one_active).

Both are enforced with conditional UPDATEs (compare-and-swap on status)
instead of read-then-write. A unique violation on the subscription insert
means a concurrent apply won; the whole apply is retried once.
"""
import logging
import time
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.domain.errors import (
    ConflictError, GatewayError, InvalidInputError, InvalidStateError,
    NotFoundError, NotOwnedError,
)
from app.domain.payment import (
    COMPLETED, PENDING, REFUNDED, generate_reference, is_settled, status_for_outcome,
)
from app.infrastructure.db.models import PaymentAttemptModel, SubscriptionModel
from app.infrastructure.eventlog.repository import EventLogRepository
from app.infrastructure.gateway.instasend import (
    InstasendClient, PaymentRequest, PaymentResponse, call_with_retries,
)
from app.infrastructure.gateway.sms import SmsSender, get_sms_sender

logger = logging.getLogger(__name__)

PREMIUM = "premium"
FREE = "free"
ACTIVE = "active"
CANCELLED = "cancelled"


@dataclass(frozen=True)
class ActiveSubscription:
    plan_type: str
    status: str
    amount: Decimal
    currency: str
    subscription_id: int | None = None
    payment_reference: str | None = None
    start_date: date | None = None

    @property
    def is_premium(self) -> bool:
        return self.plan_type == PREMIUM


def get_active_subscription(db: Session, account_id: int) -> ActiveSubscription:
    """Active subscription, or the free default when the account has none."""
    sub = db.query(SubscriptionModel).filter(
        SubscriptionModel.account_id == account_id,
        SubscriptionModel.status == ACTIVE,
    ).first()
    if sub is None:
        return ActiveSubscription(
            plan_type=FREE,
            status=ACTIVE,
            amount=Decimal("0"),
            currency=get_settings().PAYMENT_CURRENCY,
        )
    return ActiveSubscription(
        plan_type=sub.plan_type,
        status=sub.status,
        amount=sub.amount,
        currency=sub.currency,
        subscription_id=sub.id,
        payment_reference=sub.payment_reference,
        start_date=sub.start_date,
    )


def get_payment_attempt(db: Session, account_id: int, reference: str) -> PaymentAttemptModel:
    payment = db.query(PaymentAttemptModel).filter(
        PaymentAttemptModel.reference == reference,
    ).first()
    if payment is None:
        raise NotFoundError(f"Payment {reference} not found")
    if payment.account_id != account_id:
        raise NotOwnedError(f"Payment {reference} does not belong to this account")
    return payment


def _upsert_active_subscription(db: Session, payment: PaymentAttemptModel, today: date) -> None:
    """Update the active row in place, or insert one (flush may raise IntegrityError)."""
    result = db.execute(
        update(SubscriptionModel)
        .where(
            SubscriptionModel.account_id == payment.account_id,
            SubscriptionModel.status == ACTIVE,
        )
        .values(
            plan_type=PREMIUM,
            amount=payment.amount,
            currency=payment.currency,
            payment_reference=payment.reference,
        )
    )
    if result.rowcount == 0:
        db.add(SubscriptionModel(
            account_id=payment.account_id,
            plan_type=PREMIUM,
            status=ACTIVE,
            amount=payment.amount,
            currency=payment.currency,
            payment_reference=payment.reference,
            start_date=today,
        ))
        db.flush()


def _payment_event_payload(payment: PaymentAttemptModel, status: str) -> dict:
    return {
        "reference": payment.reference,
        "status": status,
        "amount": str(payment.amount),
        "currency": payment.currency,
        "transaction_id": payment.transaction_id,
    }


# ============================================================================
# Step 1: create attempt
# ============================================================================


class CreatePaymentAttemptUseCase:
    """
    Persist a pending attempt, then ask the gateway to collect it.

    The attempt is committed before the gateway call. If the gateway cannot
    be reached after the retry policy, the attempt stays pending without a
    transaction id and GatewayError is raised. The subscription is never
    touched here.
    """

    def __init__(
        self,
        db: Session,
        gateway: InstasendClient | None = None,
        settings: Settings | None = None,
        sleep=time.sleep,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.gateway = gateway or InstasendClient.from_settings(self.settings)
        self.sleep = sleep

    def execute(
        self,
        account_id: int,
        amount: Decimal,
        description: str,
        phone: str,
    ) -> tuple[PaymentAttemptModel, PaymentResponse]:
        amount = Decimal(amount)
        if amount <= 0:
            raise InvalidInputError("Amount must be positive")
        phone = (phone or "").strip()
        if not phone:
            raise InvalidInputError("Phone number is required for payment")

        payment = PaymentAttemptModel(
            account_id=account_id,
            reference=generate_reference(),
            amount=amount,
            currency=self.settings.PAYMENT_CURRENCY,
            description=description.strip(),
            phone=phone,
            status=PENDING,
        )
        self.db.add(payment)
        self.db.flush()
        self.db.commit()

        req = PaymentRequest(
            amount=amount,
            phone_number=phone,
            reference=payment.reference,
            description=payment.description,
            callback_url=self.settings.PAYMENT_CALLBACK_URL,
        )
        try:
            response = call_with_retries(
                lambda: self.gateway.initiate_payment(req),
                max_attempts=self.settings.GATEWAY_MAX_RETRIES,
                backoff_seconds=self.settings.GATEWAY_BACKOFF_SECONDS,
                sleep=self.sleep,
            )
        except GatewayError:
            logger.error("Payment initiation failed, reference=%s left pending", payment.reference)
            raise

        self.db.execute(
            update(PaymentAttemptModel)
            .where(
                PaymentAttemptModel.id == payment.id,
                PaymentAttemptModel.transaction_id == None,  # noqa: E711
            )
            .values(transaction_id=response.transaction_id)
        )
        self.db.commit()
        self.db.refresh(payment)
        logger.info("Payment initiated: reference=%s transaction_id=%s",
                    payment.reference, response.transaction_id)
        return payment, response


# ============================================================================
# Step 2: apply gateway notification
# ============================================================================


class ApplyGatewayResultUseCase:
    def __init__(self, db: Session, sms_sender: SmsSender | None = None):
        self.db = db
        self.sms = sms_sender or get_sms_sender()

    def execute(
        self,
        reference: str,
        outcome: str,
        transaction_id: str | None = None,
        amount: Decimal | None = None,
        now: datetime | None = None,
    ) -> PaymentAttemptModel:
        """
        Apply a gateway outcome ('success' | 'failed') to the attempt.

        Returns the attempt in its current state. Repeated delivery of a
        notification for a settled attempt changes nothing.

        Raises:
            NotFoundError: unknown reference
            ConflictError: subscription upsert lost the race twice
        """
        target = status_for_outcome(outcome)
        now = now or datetime.utcnow()

        for attempt in (1, 2):
            try:
                payment, applied = self._apply(reference, target, transaction_id, amount, now)
                break
            except IntegrityError as e:
                self.db.rollback()
                if attempt == 2:
                    raise ConflictError(
                        f"Concurrent subscription update for payment {reference}"
                    ) from e
                logger.warning("Subscription upsert conflict for reference=%s, retrying", reference)

        if applied and payment.status == COMPLETED and payment.phone:
            self.sms.send_message(
                payment.phone,
                f"MamaCare: payment of {payment.currency} {payment.amount} received. "
                f"Your premium subscription is active.",
            )
        return payment

    def _apply(
        self,
        reference: str,
        target: str,
        transaction_id: str | None,
        amount: Decimal | None,
        now: datetime,
    ) -> tuple[PaymentAttemptModel, bool]:
        payment = self.db.query(PaymentAttemptModel).filter(
            PaymentAttemptModel.reference == reference,
        ).first()
        if payment is None:
            raise NotFoundError(f"Payment {reference} not found")

        if is_settled(payment.status):
            logger.info("Duplicate gateway notification ignored: reference=%s status=%s",
                        reference, payment.status)
            return payment, False

        if amount is not None and Decimal(amount) != payment.amount:
            logger.warning("Gateway amount %s differs from attempt amount %s for reference=%s",
                           amount, payment.amount, reference)

        values = {"status": target}
        if transaction_id:
            values["transaction_id"] = transaction_id
        result = self.db.execute(
            update(PaymentAttemptModel)
            .where(
                PaymentAttemptModel.reference == reference,
                PaymentAttemptModel.status == PENDING,
            )
            .values(**values)
        )
        if result.rowcount == 0:
            # Another delivery settled it between our read and the update
            self.db.rollback()
            self.db.refresh(payment)
            return payment, False

        self.db.refresh(payment)
        EventLogRepository(self.db).append_event(
            account_id=payment.account_id,
            event_type=f"payment_{target}",
            payload=_payment_event_payload(payment, target),
            occurred_at=now,
            idempotency_key=f"payment:{reference}:{target}",
        )
        if target == COMPLETED:
            _upsert_active_subscription(self.db, payment, now.date())

        self.db.commit()
        self.db.refresh(payment)
        logger.info("Payment %s -> %s", reference, target)
        return payment, True


class ReconcilePaymentUseCase:
    """
    Poll the gateway for a still-pending attempt (lost webhook recovery).

    The answer comes from an authenticated call we made ourselves, so a
    'success' or 'failed' status is applied like a verified notification.
    """

    def __init__(
        self,
        db: Session,
        gateway: InstasendClient | None = None,
        sms_sender: SmsSender | None = None,
    ):
        self.db = db
        self.gateway = gateway or InstasendClient.from_settings()
        self.sms_sender = sms_sender

    def execute(self, reference: str, account_id: int, now: datetime | None = None) -> PaymentAttemptModel:
        payment = get_payment_attempt(self.db, account_id, reference)
        if is_settled(payment.status):
            return payment

        data = self.gateway.check_payment_status(reference)
        outcome = data.get("status")
        if outcome not in ("success", "failed"):
            logger.info("Gateway still reports reference=%s as %s", reference, outcome)
            return payment

        return ApplyGatewayResultUseCase(self.db, sms_sender=self.sms_sender).execute(
            reference,
            outcome,
            transaction_id=data.get("transaction_id"),
            amount=data.get("amount"),
            now=now,
        )


# ============================================================================
# Refund / cancel
# ============================================================================


class RefundPaymentUseCase:
    """completed -> refunded; cancels the subscription that payment backs."""

    def __init__(self, db: Session):
        self.db = db

    def execute(self, reference: str, account_id: int, now: datetime | None = None) -> PaymentAttemptModel:
        now = now or datetime.utcnow()
        payment = get_payment_attempt(self.db, account_id, reference)

        result = self.db.execute(
            update(PaymentAttemptModel)
            .where(
                PaymentAttemptModel.reference == reference,
                PaymentAttemptModel.status == COMPLETED,
            )
            .values(status=REFUNDED)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise InvalidStateError("Only completed payments can be refunded")

        self.db.execute(
            update(SubscriptionModel)
            .where(
                SubscriptionModel.account_id == account_id,
                SubscriptionModel.status == ACTIVE,
                SubscriptionModel.payment_reference == reference,
            )
            .values(status=CANCELLED, end_date=now.date())
        )
        self.db.refresh(payment)
        EventLogRepository(self.db).append_event(
            account_id=account_id,
            event_type="payment_refunded",
            payload=_payment_event_payload(payment, REFUNDED),
            occurred_at=now,
            idempotency_key=f"payment:{reference}:{REFUNDED}",
        )
        self.db.commit()
        return payment


class CancelSubscriptionUseCase:
    def __init__(self, db: Session):
        self.db = db

    def execute(self, account_id: int, today: date) -> None:
        result = self.db.execute(
            update(SubscriptionModel)
            .where(
                SubscriptionModel.account_id == account_id,
                SubscriptionModel.status == ACTIVE,
            )
            .values(status=CANCELLED, end_date=today)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFoundError("No active subscription")
        self.db.commit()

"""
SQLAlchemy ORM models
"""
from decimal import Decimal
from datetime import date as date_type, datetime
from sqlalchemy import (
    String, DateTime, Integer, SmallInteger, Text, TIMESTAMP, Date, func, Boolean,
    Numeric, UniqueConstraint, Index, JSON, text,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base


class User(Base):
    """Account owner: every other owner-scoped row points here via account_id"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class EventLog(Base):
    """
    Append-only audit log of payment ledger transitions.

    idempotency_key is unique, so replaying the same transition cannot
    produce a second audit row.
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)

    occurred_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True
    )
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


# ============================================================================
# Pregnancy timeline
# ============================================================================


class PregnancyProfileModel(Base):
    """
    Pregnancy profile. current_week / trimester are derived from the
    reference dates and only ever written together with them.
    """
    __tablename__ = "pregnancy_profiles"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    last_menstrual_period: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    due_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    current_week: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="1")
    trimester: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="1")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")

    height_cm: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    pre_pregnancy_weight: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    current_weight: Mapped[Decimal | None] = mapped_column(Numeric(5, 1), nullable=True)
    previous_pregnancies: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    hospital: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index(
            "uq_pregnancy_profiles_one_active", "account_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )


class ReminderModel(Base):
    """Reminder: seeded from timeline milestones (milestone_key set) or custom"""
    __tablename__ = "reminders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    profile_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    kind: Mapped[str] = mapped_column(String(32), nullable=False)  # clinic_visit/supplement/vaccination/ultrasound/delivery_prep/custom
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    milestone_key: Mapped[str | None] = mapped_column(String(64), nullable=True)

    scheduled_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, server_default="medium")  # low/medium/high

    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    completed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    notification_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    notification_sent_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("profile_id", "milestone_key", name="uq_reminder_profile_milestone"),
    )


class SymptomLogModel(Base):
    __tablename__ = "symptom_logs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    profile_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    symptom: Mapped[str] = mapped_column(String(255), nullable=False)
    severity: Mapped[str] = mapped_column(String(16), nullable=False)  # mild/moderate/severe
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    date: Mapped[date_type] = mapped_column(Date, nullable=False)

    resolved: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class EmergencyContactModel(Base):
    """Emergency contacts; at most one primary per account"""
    __tablename__ = "emergency_contacts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    relationship: Mapped[str] = mapped_column(String(64), nullable=False, server_default="")
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index(
            "uq_emergency_contacts_one_primary", "account_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary = 1"),
        ),
    )


class HealthContentModel(Base):
    """Content library (shared, not owner-scoped)"""
    __tablename__ = "health_content"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_type: Mapped[str] = mapped_column(String(32), nullable=False)  # nutrition/exercise/mental_health/general/emergency
    trimester: Mapped[int] = mapped_column(SmallInteger, nullable=False, index=True)
    week_range_start: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    week_range_end: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_premium: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    video_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Subscription ledger
# ============================================================================


class SubscriptionModel(Base):
    """Subscription plan state; at most one active row per account"""
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    plan_type: Mapped[str] = mapped_column(String(16), nullable=False)  # free/premium
    status: Mapped[str] = mapped_column(String(16), nullable=False)  # active/cancelled/expired
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, server_default="0")
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="KES")
    payment_reference: Mapped[str | None] = mapped_column(String(64), nullable=True)

    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index(
            "uq_subscriptions_one_active", "account_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )


class PaymentAttemptModel(Base):
    """Payment attempt; reference is the webhook idempotency key"""
    __tablename__ = "payments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    reference: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, server_default="KES")
    description: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    phone: Mapped[str | None] = mapped_column(String(32), nullable=True)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False, server_default="instasend")

    status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")  # pending/completed/failed/refunded
    transaction_id: Mapped[str | None] = mapped_column(String(128), nullable=True)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

"""
Dashboard - aggregated home view.

Pure read-layer: no mutations. The data source is resolved once at the
entry point:
  PersistedSource(account_id) - read everything from the store
  LocalSource(setup)          - build from the client's onboarding payload
                                (no store access)

Each persisted sub-fetch is independent: a failure is logged and that block
falls back to its empty default, the rest of the view is still returned.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from sqlalchemy.orm import Session

from app.application.emergency_contacts import list_contacts
from app.application.health_content import list_content
from app.application.pregnancy_profiles import get_active_profile
from app.application.reminders import list_upcoming
from app.application.subscriptions import ActiveSubscription, get_active_subscription
from app.application.symptoms import list_recent_symptoms
from app.config import get_settings
from app.domain.errors import InvalidInputError, NotFoundError
from app.domain.reminder_plan import FIRST_VISIT, plan_reminders
from app.domain.timeline import Timeline, compute_timeline
from app.infrastructure.db.models import (
    User, PregnancyProfileModel, ReminderModel, SymptomLogModel,
    HealthContentModel, EmergencyContactModel,
)

logger = logging.getLogger(__name__)

UPCOMING_LIMIT = 5
SYMPTOM_LIMIT = 5
CONTENT_LIMIT = 3


@dataclass(frozen=True)
class PersistedSource:
    account_id: int


@dataclass(frozen=True)
class LocalSource:
    setup: dict


DashboardSource = PersistedSource | LocalSource


@dataclass
class DashboardView:
    source: str
    profile: dict | None = None
    upcoming_reminders: list[dict] = field(default_factory=list)
    recent_symptoms: list[dict] = field(default_factory=list)
    health_content: list[dict] = field(default_factory=list)
    emergency_contacts: list[dict] = field(default_factory=list)
    subscription: dict | None = None


# ---------------------------------------------------------------------------
# Item builders
# ---------------------------------------------------------------------------

def _timeline_item(timeline: Timeline, **extra) -> dict:
    return {
        "current_week": timeline.current_week,
        "trimester": timeline.trimester,
        "due_date": timeline.due_date,
        "last_menstrual_period": timeline.lmp,
        **extra,
    }


def _profile_item(profile: PregnancyProfileModel, today: date) -> dict:
    try:
        timeline = compute_timeline(profile.last_menstrual_period, profile.due_date, today)
    except InvalidInputError:
        # Stored dates no longer valid for today: show what was stored
        return {
            "id": profile.id,
            "current_week": profile.current_week,
            "trimester": profile.trimester,
            "due_date": profile.due_date,
            "last_menstrual_period": profile.last_menstrual_period,
        }
    return _timeline_item(timeline, id=profile.id)


def _reminder_item(r: ReminderModel) -> dict:
    return {
        "id": r.id,
        "kind": r.kind,
        "title": r.title,
        "description": r.description,
        "scheduled_at": r.scheduled_at,
        "priority": r.priority,
    }


def _symptom_item(s: SymptomLogModel) -> dict:
    return {
        "id": s.id,
        "symptom": s.symptom,
        "severity": s.severity,
        "description": s.description,
        "date": s.date,
        "resolved": s.resolved,
    }


def _content_item(c: HealthContentModel) -> dict:
    return {
        "id": c.id,
        "title": c.title,
        "content": c.content,
        "content_type": c.content_type,
        "tags": list(c.tags or []),
    }


def _contact_item(c: EmergencyContactModel) -> dict:
    return {
        "id": c.id,
        "name": c.name,
        "phone": c.phone,
        "relationship": c.relationship,
        "is_primary": c.is_primary,
    }


def _subscription_item(s: ActiveSubscription) -> dict:
    return {
        "plan_type": s.plan_type,
        "status": s.status,
        "amount": s.amount,
        "currency": s.currency,
    }


def _free_subscription() -> dict:
    return _subscription_item(ActiveSubscription(
        plan_type="free", status="active", amount=Decimal("0"), currency=get_settings().PAYMENT_CURRENCY,
    ))


def _parse_setup_date(value: Any) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        logger.warning("Ignoring malformed setup date: %r", value)
        return None


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class DashboardService:
    def __init__(self, db: Session | None = None):
        self.db = db

    def build_dashboard(self, source: DashboardSource, now: datetime) -> DashboardView:
        if isinstance(source, PersistedSource):
            return self._build_persisted(source.account_id, now)
        if isinstance(source, LocalSource):
            return self._build_local(source.setup, now)
        raise InvalidInputError(f"Unknown dashboard source: {source!r}")

    # --- Persisted ---

    def _fetch(self, block: str, account_id: int, fetch: Callable[[], Any], default: Any) -> Any:
        try:
            return fetch()
        except Exception:
            logger.exception("Dashboard block '%s' failed for account_id=%d", block, account_id)
            self.db.rollback()
            return default

    def _build_persisted(self, account_id: int, now: datetime) -> DashboardView:
        if self.db.get(User, account_id) is None:
            raise NotFoundError(f"Account #{account_id} not found")

        today = now.date()
        profile = self._fetch("profile", account_id, lambda: get_active_profile(self.db, account_id), None)
        profile_view = None
        if profile is not None:
            profile_view = self._fetch("profile", account_id, lambda: _profile_item(profile, today), None)
        trimester = profile_view["trimester"] if profile_view else 1

        reminders = self._fetch("upcoming_reminders", account_id, lambda: [
            _reminder_item(r) for r in list_upcoming(
                self.db, account_id, now,
                profile_id=profile.id if profile is not None else None,
                limit=UPCOMING_LIMIT,
            )
        ], [])
        symptoms = self._fetch("recent_symptoms", account_id, lambda: [
            _symptom_item(s) for s in list_recent_symptoms(self.db, account_id, limit=SYMPTOM_LIMIT)
        ], [])
        content = self._fetch("health_content", account_id, lambda: [
            _content_item(c) for c in list_content(
                self.db, trimester=trimester, is_premium=False, limit=CONTENT_LIMIT,
            )
        ], [])
        contacts = self._fetch("emergency_contacts", account_id, lambda: [
            _contact_item(c) for c in list_contacts(self.db, account_id)
        ], [])
        subscription = self._fetch("subscription", account_id, lambda: _subscription_item(
            get_active_subscription(self.db, account_id)
        ), _free_subscription())

        return DashboardView(
            source="persisted",
            profile=profile_view,
            upcoming_reminders=reminders,
            recent_symptoms=symptoms,
            health_content=content,
            emergency_contacts=contacts,
            subscription=subscription,
        )

    # --- Local ---

    def _build_local(self, setup: dict, now: datetime) -> DashboardView:
        if not isinstance(setup, dict):
            raise InvalidInputError("Local setup payload must be an object")

        lmp = _parse_setup_date(setup.get("lastPeriod"))
        due = _parse_setup_date(setup.get("dueDate"))
        hospital = setup.get("hospital") or "Not set"

        profile_view = None
        reminders: list[dict] = []
        if lmp is not None or due is not None:
            try:
                timeline = compute_timeline(lmp, due, now.date())
            except InvalidInputError:
                logger.info("Local setup dates rejected, building dashboard without profile")
                timeline = None
            if timeline is not None:
                profile_view = _timeline_item(timeline, id=None)
                for p in plan_reminders(timeline, now):
                    if p.scheduled_at < now:
                        continue
                    description = p.description
                    if p.milestone_key == FIRST_VISIT.key:
                        description = f"Preferred hospital: {hospital}"
                    reminders.append({
                        "id": f"local-{p.milestone_key}",
                        "kind": p.kind,
                        "title": p.title,
                        "description": description,
                        "scheduled_at": p.scheduled_at,
                        "priority": p.priority,
                    })
                    if len(reminders) == UPCOMING_LIMIT:
                        break

        return DashboardView(
            source="local",
            profile=profile_view,
            upcoming_reminders=reminders,
            emergency_contacts=self._local_contacts(setup.get("emergencyContacts")),
            subscription=_free_subscription(),
        )

    @staticmethod
    def _local_contacts(raw: Any) -> list[dict]:
        if not isinstance(raw, list):
            return []
        contacts = []
        has_primary = False
        for i, c in enumerate(raw):
            if not isinstance(c, dict) or not c.get("name") or not c.get("phone"):
                continue
            is_primary = bool(c.get("isPrimary")) and not has_primary
            has_primary = has_primary or is_primary
            contacts.append({
                "id": f"local-ec-{i}",
                "name": c["name"],
                "phone": c["phone"],
                "relationship": c.get("relationship", ""),
                "is_primary": is_primary,
            })
        contacts.sort(key=lambda c: not c["is_primary"])
        return contacts

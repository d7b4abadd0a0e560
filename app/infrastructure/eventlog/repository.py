"""
Event Log Repository - append-only audit of ledger transitions
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from app.infrastructure.db.models import EventLog


class EventLogRepository:
    """
    Repository for the event log
    """

    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        account_id: int,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: Optional[datetime] = None,
        actor_user_id: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """
        Append an event to the log (flushed, not committed)

        Args:
            account_id: owner account
            event_type: event name, e.g. "payment_completed"
            payload: event data (stored as JSONB)
            occurred_at: when it happened (default: now)
            actor_user_id: who triggered it (optional)
            idempotency_key: unique key (optional)

        Returns:
            event_id: ID of the stored event

        Raises:
            IntegrityError: if idempotency_key already exists

        Example:
            >>> repo = EventLogRepository(db)
            >>> event_id = repo.append_event(
            ...     account_id=1,
            ...     event_type="payment_completed",
            ...     payload={"reference": "MAMACARE_1_ab", "amount": "500.00"},
            ...     idempotency_key="payment:MAMACARE_1_ab:completed"
            ... )
        """
        if occurred_at is None:
            occurred_at = datetime.utcnow()

        event = EventLog(
            account_id=account_id,
            actor_user_id=actor_user_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
            idempotency_key=idempotency_key,
        )

        self.db.add(event)
        self.db.flush()

        return event.id

    def list_events(
        self,
        account_id: int,
        event_types: Optional[List[str]] = None,
        limit: int = 200,
    ) -> List[EventLog]:
        """
        Events of an account in insertion order

        Args:
            account_id: owner account
            event_types: filter by type (optional)
            limit: max rows (default: 200)
        """
        query = self.db.query(EventLog).filter(EventLog.account_id == account_id)

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        return query.order_by(EventLog.id.asc()).limit(limit).all()

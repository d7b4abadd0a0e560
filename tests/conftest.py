"""
Pytest fixtures for testing
"""
from datetime import datetime
from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base
from app.infrastructure.db.models import User
from app.infrastructure.gateway.sms import SmsResult


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping."""
    # StaticPool: one shared connection, so API requests see the test's data
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite doesn't support JSONB - remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_account_id(db_session):
    """Account id of a persisted test user"""
    user = User(
        email="wanjiru@example.com",
        password_hash="x",
        full_name="Wanjiru Kamau",
        phone="+254712345678",
    )
    db_session.add(user)
    db_session.commit()
    return user.id


@pytest.fixture
def other_account_id(db_session):
    user = User(email="akinyi@example.com", password_hash="x", full_name="Akinyi Otieno")
    db_session.add(user)
    db_session.commit()
    return user.id


@pytest.fixture
def now():
    """Fixed clock: 2024-03-25 10:00 (week 13 for LMP 2024-01-01)"""
    return datetime(2024, 3, 25, 10, 0)


@pytest.fixture
def sms_sender():
    """SMS collaborator that always succeeds"""
    sender = Mock()
    sender.send_message.return_value = SmsResult(True)
    return sender

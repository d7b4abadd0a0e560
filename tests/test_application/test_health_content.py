"""Tests for the content library"""
from datetime import date
from decimal import Decimal

import pytest

from app.application.health_content import list_content, list_visible_content
from app.domain.errors import InvalidInputError
from app.infrastructure.db.models import HealthContentModel, SubscriptionModel


@pytest.fixture
def library(db_session):
    rows = [
        HealthContentModel(title="Iron-rich foods", content="...", content_type="nutrition", trimester=1),
        HealthContentModel(title="Gentle walking", content="...", content_type="exercise", trimester=1),
        HealthContentModel(title="Coping with anxiety", content="...", content_type="mental_health",
                           trimester=1, is_premium=True),
        HealthContentModel(title="Danger signs", content="...", content_type="emergency", trimester=3,
                           tags=["bleeding", "headache"]),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


def test_filter_by_trimester_newest_first(db_session, library):
    titles = [c.title for c in list_content(db_session, trimester=1)]
    assert titles == ["Coping with anxiety", "Gentle walking", "Iron-rich foods"]


def test_filter_by_type_and_premium(db_session, library):
    assert [c.title for c in list_content(db_session, content_type="emergency")] == ["Danger signs"]
    assert len(list_content(db_session, trimester=1, is_premium=False)) == 2


def test_unknown_type(db_session, library):
    with pytest.raises(InvalidInputError):
        list_content(db_session, content_type="astrology")


def test_free_plan_hides_premium(db_session, sample_account_id, library):
    titles = [c.title for c in list_visible_content(db_session, sample_account_id, trimester=1)]
    assert "Coping with anxiety" not in titles
    assert len(titles) == 2


def test_premium_plan_sees_everything(db_session, sample_account_id, library):
    db_session.add(SubscriptionModel(
        account_id=sample_account_id, plan_type="premium", status="active",
        amount=Decimal("500"), currency="KES", start_date=date(2024, 3, 1),
    ))
    db_session.commit()

    titles = [c.title for c in list_visible_content(db_session, sample_account_id, trimester=1)]
    assert len(titles) == 3

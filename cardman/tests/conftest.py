"""Pytest fixtures for Cardman tests."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from cardman.adapters.memory import InMemoryCardStore
from cardman.choices import Membership
from cardman.records import ClientRecord, DiscountCard, GiftCard, PointsCard, VisitRecord
from cardman.service import reset_card_store


@pytest.fixture(autouse=True)
def fresh_card_store():
    """Each test starts with a new configured store instance."""
    reset_card_store()
    yield
    reset_card_store()


@pytest.fixture
def now():
    return timezone.now()


def make_visits(count, start, step=timedelta(days=1)):
    """Build `count` visits starting at `start`, one `step` apart."""
    return tuple(
        VisitRecord(id=f"v{i + 1}", timestamp=start + step * i)
        for i in range(count)
    )


@pytest.fixture(name="make_visits")
def make_visits_fixture():
    return make_visits


@pytest.fixture
def points_record(now):
    """Points card mid-cycle, Gold member."""
    return ClientRecord(
        id="client123",
        card_number="CARD123",
        card=PointsCard(points=7, visit_points=67, membership=Membership.GOLD),
        first_name="John",
        last_name="Doe",
        email="john.doe@techcorp.com",
        phone="+1234567890",
        gender="male",
        company="Tech Corp",
        last_visit=now,
        created_at=now,
        visit_history=make_visits(3, now - timedelta(days=30)),
    )


@pytest.fixture
def discount_record(now):
    """Discount card with a pending bonus."""
    return ClientRecord(
        id="client456",
        card_number="DISC456",
        card=DiscountCard(discount=15, bonus_discount=10),
        first_name="Jane",
        last_name="Smith",
        email="jane.smith@designco.com",
        gender="female",
        company="Design Co",
        last_visit=now,
        created_at=now,
    )


@pytest.fixture
def gift_record(now):
    """Gift card holding EUR 250."""
    return ClientRecord(
        id="client789",
        card_number="GIFT789",
        card=GiftCard(balance=Decimal("250.00")),
        first_name="Alice",
        last_name="Johnson",
        email="alice.j@example.com",
        gender="female",
        company="Fashion Inc",
        last_visit=now,
        created_at=now,
    )


@pytest.fixture
def memory_store(points_record, discount_record, gift_record):
    return InMemoryCardStore([points_record, discount_record, gift_record])

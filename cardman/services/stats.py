"""Stats aggregator - read-only summaries over a CardStore."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.utils import timezone
from django.utils.module_loading import import_string

from cardman.choices import CardType
from cardman.conf import cardman_settings
from cardman.protocols.store import CardStore
from cardman.records import ClientRecord, PointsCard, VisitRecord

ActivityPolicy = Callable[[ClientRecord, datetime], bool]


@dataclass(frozen=True)
class CardStats:
    """Roster summary for the admin dashboard."""

    total_clients: int
    active_clients: int
    total_points: int
    average_points: int


@dataclass(frozen=True)
class MonthlyTrends:
    """Per-month series, oldest month first. Labels are YYYY-MM."""

    labels: list[str]
    registrations: list[int]
    active_clients: list[int]


@dataclass(frozen=True)
class ClientStats:
    """Visit summary for a single client."""

    total_visits: int
    bonus_milestones: int
    average_days_between_visits: int
    visits_by_month: dict[str, list[VisitRecord]] = field(default_factory=dict)


@dataclass(frozen=True)
class VisitFeedEntry:
    """A visit annotated with its client, for the roster-wide history."""

    visit: VisitRecord
    client_id: str
    client_name: str
    card_number: str
    card_type: str


# ======================================================================
# Activity policies
# ======================================================================


def discount_cards(record: ClientRecord, now: datetime) -> bool:
    """
    Reference dashboard behaviour: discount-type cards count as active.

    Kept as the default for compatibility; see recent_visitors for a
    visit-based definition.
    """
    return record.card_type == CardType.DISCOUNT


def recent_visitors(record: ClientRecord, now: datetime) -> bool:
    """Clients whose last visit falls within ACTIVE_WINDOW_DAYS."""
    if record.last_visit is None:
        return False
    window = timedelta(days=cardman_settings.ACTIVE_WINDOW_DAYS)
    return now - record.last_visit <= window


ACTIVITY_POLICIES: dict[str, ActivityPolicy] = {
    "discount_cards": discount_cards,
    "recent_visitors": recent_visitors,
}


def get_activity_policy(name: str | None = None) -> ActivityPolicy:
    """Resolve a policy by registered name or dotted path (ACTIVE_CLIENT_POLICY by default)."""
    name = name or cardman_settings.ACTIVE_CLIENT_POLICY
    if name in ACTIVITY_POLICIES:
        return ACTIVITY_POLICIES[name]
    return import_string(name)


# ======================================================================
# Aggregator
# ======================================================================


class StatsAggregator:
    """
    Read-only projections over the card store.

    Usage:
        stats = StatsAggregator(store).summary()
        trends = StatsAggregator(store).monthly_trends(months=6)
    """

    def __init__(self, store: CardStore, active_policy: ActivityPolicy | None = None):
        self.store = store
        self.active_policy = active_policy or get_activity_policy()

    def summary(self, now: datetime | None = None) -> CardStats:
        """
        Totals for the dashboard.

        active_clients, total_points and average_points all use the subset
        selected by the activity policy.
        """
        now = now or timezone.now()
        records = self.store.list()
        active = [r for r in records if self.active_policy(r, now)]
        total_points = sum(r.card.points for r in active if isinstance(r.card, PointsCard))

        return CardStats(
            total_clients=len(records),
            active_clients=len(active),
            total_points=total_points,
            average_points=_round_half_up(total_points / len(active)) if active else 0,
        )

    def monthly_trends(self, months: int = 12, now: datetime | None = None) -> MonthlyTrends:
        """
        Registrations (by created_at) and active clients (by last_visit)
        per calendar month, ending with the current month. Empty months are 0.
        """
        now = _local(now or timezone.now())
        keys = _month_keys(now.year, now.month, months)
        registrations = dict.fromkeys(keys, 0)
        active = dict.fromkeys(keys, 0)

        for record in self.store.list():
            if record.created_at is not None:
                key = _month_key(record.created_at)
                if key in registrations:
                    registrations[key] += 1
            if record.last_visit is not None:
                key = _month_key(record.last_visit)
                if key in active:
                    active[key] += 1

        return MonthlyTrends(
            labels=keys,
            registrations=[registrations[k] for k in keys],
            active_clients=[active[k] for k in keys],
        )

    def client_stats(self, record: ClientRecord) -> ClientStats:
        """Visit count, milestones reached and visit rhythm for one client."""
        visits = record.sorted_visits()
        total = len(visits)

        average_days = 0
        if total > 1:
            span = visits[-1].timestamp - visits[0].timestamp
            average_days = _round_half_up(span.total_seconds() / 86400 / (total - 1))

        by_month: dict[str, list[VisitRecord]] = {}
        for visit in visits:
            by_month.setdefault(_month_key(visit.timestamp), []).append(visit)

        return ClientStats(
            total_visits=total,
            bonus_milestones=total // cardman_settings.MILESTONE_INTERVAL,
            average_days_between_visits=average_days,
            visits_by_month=by_month,
        )

    def recent_visits(self, limit: int | None = None) -> list[VisitFeedEntry]:
        """All visits across the roster, newest first."""
        entries = [
            VisitFeedEntry(
                visit=visit,
                client_id=record.id,
                client_name=record.name,
                card_number=record.card_number,
                card_type=record.card_type,
            )
            for record in self.store.list()
            for visit in record.visit_history
        ]
        entries.sort(key=lambda e: e.visit.timestamp, reverse=True)
        return entries[:limit] if limit is not None else entries


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _local(dt: datetime) -> datetime:
    return timezone.localtime(dt) if timezone.is_aware(dt) else dt


def _month_key(dt: datetime) -> str:
    dt = _local(dt)
    return f"{dt.year:04d}-{dt.month:02d}"


def _month_keys(year: int, month: int, count: int) -> list[str]:
    """The `count` month keys ending at (year, month), ascending."""
    keys = []
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))

"""
Cardman public API.

KIOSK:
    CardService.lookup(card_number)                  - Identify a client
    CardService.confirm_visit(card_number)           - Record a visit
    CardService.redeem_points(card_number, amount)   - Spend cycle points
    CardService.use_balance(card_number, amount)     - Pay with gift balance
    CardService.consume_bonus_discount(card_number)  - Use milestone bonus
    CardService.send_details(card_number)            - E-mail card summary

ADMIN:
    CardService.register(registration)               - Issue a new card
    CardService.override(card_number, **fields)      - Direct field edit
    CardService.adjust_balance(card_number, delta)   - Gift top-up/deduction
    CardService.delete(client_id)                    - Remove a client
    CardService.stats() / monthly_trends()           - Dashboard figures
"""

import logging
import threading
from decimal import Decimal

from django.core.mail import send_mail
from django.utils.module_loading import import_string

from cardman.conf import cardman_settings
from cardman.exceptions import CardmanError
from cardman.locks import KeyedLock
from cardman.protocols.store import CardStore
from cardman.records import ClientRecord, DiscountCard, GiftCard, PointsCard, VisitRecord
from cardman.services.issuer import ClientRegistration, RegistrationIssuer
from cardman.services.ledger import CardLedger
from cardman.services.stats import (
    CardStats,
    ClientStats,
    MonthlyTrends,
    StatsAggregator,
    VisitFeedEntry,
)

logger = logging.getLogger(__name__)

_store_lock = threading.Lock()
_store: tuple[str, CardStore] | None = None
_locks = KeyedLock()


def get_card_store() -> CardStore:
    """
    Return the configured CardStore (STORE_BACKEND).

    One instance per backend path, shared by every CardService call so
    in-process stores keep their state.
    """
    global _store
    backend_path = cardman_settings.STORE_BACKEND
    with _store_lock:
        if _store is None or _store[0] != backend_path:
            _store = (backend_path, import_string(backend_path)())
        return _store[1]


def reset_card_store() -> None:
    """Drop the cached store instance (tests, settings changes)."""
    global _store
    with _store_lock:
        _store = None


class CardService:
    """
    Cardman public API.

    Uses @classmethod for extensibility. Override the factory methods to
    inject a different store or activity policy.
    """

    # ======================================================================
    # Wiring
    # ======================================================================

    @classmethod
    def store(cls) -> CardStore:
        return get_card_store()

    @classmethod
    def ledger(cls) -> CardLedger:
        return CardLedger(cls.store(), locks=_locks)

    @classmethod
    def issuer(cls) -> RegistrationIssuer:
        return RegistrationIssuer(cls.store(), locks=_locks)

    @classmethod
    def aggregator(cls) -> StatsAggregator:
        return StatsAggregator(cls.store())

    # ======================================================================
    # KIOSK API
    # ======================================================================

    @classmethod
    def get(cls, card_number: str) -> ClientRecord | None:
        """Get client by card number, or None."""
        return cls.ledger().get(card_number)

    @classmethod
    def lookup(cls, card_number: str) -> ClientRecord:
        """Get client by card number or raise CARD_NOT_FOUND."""
        return cls.ledger().lookup(card_number)

    @classmethod
    def confirm_visit(cls, card_number: str) -> tuple[ClientRecord, VisitRecord]:
        return cls.ledger().confirm_visit(card_number)

    @classmethod
    def redeem_points(cls, card_number: str, amount: int) -> ClientRecord:
        return cls.ledger().redeem_points(card_number, amount)

    @classmethod
    def use_balance(cls, card_number: str, amount: Decimal) -> ClientRecord:
        return cls.ledger().use_balance(card_number, amount)

    @classmethod
    def consume_bonus_discount(cls, card_number: str) -> ClientRecord:
        return cls.ledger().consume_bonus_discount(card_number)

    @classmethod
    def send_details(cls, card_number: str) -> None:
        """
        E-mail the client a summary of their card.

        Raises:
            CardmanError: CARD_NOT_FOUND, NO_EMAIL
        """
        record = cls.lookup(card_number)
        if not record.email:
            raise CardmanError("NO_EMAIL", card_number=card_number)

        send_mail(
            subject=f"Your loyalty card {record.card_number}",
            message=card_summary(record),
            from_email=cardman_settings.DETAILS_FROM_EMAIL or None,
            recipient_list=[record.email],
        )
        logger.info("Card details sent for %s", card_number)

    # ======================================================================
    # ADMIN API
    # ======================================================================

    @classmethod
    def register(cls, registration: ClientRegistration) -> ClientRecord:
        return cls.issuer().register(registration)

    @classmethod
    def clients(cls) -> list[ClientRecord]:
        """All clients, by name."""
        return sorted(cls.store().list(), key=lambda r: (r.first_name, r.last_name))

    @classmethod
    def override(cls, card_number: str, **fields) -> ClientRecord:
        return cls.ledger().override(card_number, **fields)

    @classmethod
    def adjust_balance(cls, card_number: str, delta: Decimal) -> ClientRecord:
        return cls.ledger().adjust_balance(card_number, delta)

    @classmethod
    def delete(cls, client_id: str) -> None:
        cls.ledger().delete(client_id)

    @classmethod
    def stats(cls) -> CardStats:
        return cls.aggregator().summary()

    @classmethod
    def monthly_trends(cls, months: int = 12) -> MonthlyTrends:
        return cls.aggregator().monthly_trends(months=months)

    @classmethod
    def client_stats(cls, card_number: str) -> ClientStats:
        return cls.aggregator().client_stats(cls.lookup(card_number))

    @classmethod
    def recent_visits(cls, limit: int | None = 50) -> list[VisitFeedEntry]:
        return cls.aggregator().recent_visits(limit=limit)


def card_summary(record: ClientRecord) -> str:
    """Plain-text card summary used in the details e-mail."""
    card = record.card
    lines = [
        f"Hello {record.name},",
        "",
        f"Card number: {record.card_number}",
        f"Card type: {record.card_type}",
        f"Membership: {record.membership}",
    ]
    if isinstance(card, PointsCard):
        lines.append(f"Points: {card.points}")
        lines.append(f"Visit points: {card.visit_points}")
    elif isinstance(card, DiscountCard):
        lines.append(f"Discount: {card.discount}%")
    elif isinstance(card, GiftCard):
        lines.append(f"Balance: EUR {card.balance}")
    if record.bonus_discount:
        lines.append(f"Bonus discount available: {record.bonus_discount}%")
    lines.append(f"Visits: {record.visit_count}")
    return "\n".join(lines)

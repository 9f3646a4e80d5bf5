"""
Card ledger - pure state transitions for loyalty cards.

Every function takes a ClientRecord snapshot and either returns the next
snapshot or raises CardmanError. Nothing here touches storage, so a
rejected intent can never leave a partial write behind.

Rules:
    confirm_visit          - any card; cycle points, milestone bonus
    redeem_points          - points cards
    use_balance            - gift cards
    adjust_balance         - gift cards, signed admin delta
    consume_bonus_discount - points and discount cards
    admin_override         - any card; bypasses amount/sign validation
"""

import uuid
from dataclasses import fields, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.utils import timezone

from cardman.choices import CardType, Membership
from cardman.conf import cardman_settings
from cardman.exceptions import CardmanError
from cardman.records import (
    BONUS_CARD_TYPES,
    CARD_CLASSES,
    ClientRecord,
    DiscountCard,
    GiftCard,
    PointsCard,
    VisitRecord,
    to_money,
)


# ======================================================================
# Visits
# ======================================================================


def confirm_visit(
    record: ClientRecord,
    now: datetime | None = None,
    visit_id: str | None = None,
) -> tuple[ClientRecord, VisitRecord]:
    """
    Register a visit on the client's card.

    Points cards gain one cycle point (resetting to 0 once the cycle limit
    was already reached) and one lifetime visit point. Every tenth visit
    across the full history grants the milestone bonus discount on points
    and discount cards.

    Returns:
        Tuple of (updated record, new VisitRecord)
    """
    now = now or timezone.now()
    visit = VisitRecord(id=visit_id or str(uuid.uuid4()), timestamp=now)
    card = record.card

    if isinstance(card, PointsCard):
        limit = cardman_settings.POINTS_CYCLE_LIMIT
        next_points = 0 if card.points >= limit else card.points + 1
        visit_points = card.visit_points + 1
        card = replace(
            card,
            points=next_points,
            visit_points=visit_points,
            membership=_membership_after_visit(card.membership, visit_points),
        )
        visit = replace(visit, points_earned=1, total_points=next_points)

    history = record.visit_history + (visit,)

    if is_milestone(len(history)) and record.card_type in BONUS_CARD_TYPES:
        card = replace(card, bonus_discount=cardman_settings.MILESTONE_BONUS_DISCOUNT)

    updated = replace(record, card=card, visit_history=history, last_visit=now)
    return updated, visit


def is_milestone(visit_number: int) -> bool:
    """Whether the Nth visit (1-indexed) earns the milestone bonus."""
    interval = cardman_settings.MILESTONE_INTERVAL
    return visit_number > 0 and visit_number % interval == 0


def _membership_after_visit(current: str, visit_points: int) -> str:
    """Standard cards upgrade to Gold at the lifetime threshold. Never downgrade."""
    if current == Membership.STANDARD and visit_points >= cardman_settings.GOLD_MEMBERSHIP_THRESHOLD:
        return Membership.GOLD
    return current


# ======================================================================
# Redemptions
# ======================================================================


def redeem_points(record: ClientRecord, amount) -> ClientRecord:
    """
    Spend cycle points. Redemption is not a visit.

    Raises:
        CardmanError: WRONG_CARD_TYPE, INVALID_AMOUNT or INSUFFICIENT_FUNDS,
            checked in that order
    """
    card = _require_card(record, PointsCard)

    if not is_count(amount) or amount <= 0:
        raise CardmanError(
            "INVALID_AMOUNT",
            message="Points to redeem must be a positive integer",
            amount=amount,
        )

    if amount > card.points:
        raise CardmanError(
            "INSUFFICIENT_FUNDS",
            message="Insufficient points for redemption",
            available=card.points,
            requested=amount,
        )

    return replace(record, card=replace(card, points=card.points - amount))


def use_balance(record: ClientRecord, amount) -> ClientRecord:
    """
    Pay with the gift card balance.

    Raises:
        CardmanError: WRONG_CARD_TYPE, INVALID_AMOUNT or INSUFFICIENT_FUNDS
    """
    card = _require_card(record, GiftCard)
    amount = parse_money(amount)

    if amount <= 0:
        raise CardmanError("INVALID_AMOUNT", message="Amount must be positive", amount=str(amount))

    return replace(record, card=_debit(card, amount))


def adjust_balance(record: ClientRecord, delta) -> ClientRecord:
    """
    Apply a signed balance change (top-up or deduction).

    The balance must stay non-negative regardless of the sign.
    """
    card = _require_card(record, GiftCard)
    delta = parse_money(delta)

    if delta == 0:
        raise CardmanError("INVALID_AMOUNT", message="Adjustment must be non-zero", amount="0.00")

    return replace(record, card=_debit(card, -delta))


def _debit(card: GiftCard, amount: Decimal) -> GiftCard:
    new_balance = to_money(card.balance - amount)
    if new_balance < 0:
        raise CardmanError(
            "INSUFFICIENT_FUNDS",
            available=str(card.balance),
            requested=str(amount),
        )
    return replace(card, balance=new_balance)


def parse_money(value) -> Decimal:
    """
    Coerce a currency amount to a two-decimal Decimal.

    Amounts finer than a cent are rejected rather than rounded.

    Raises:
        CardmanError: INVALID_AMOUNT
    """
    if isinstance(value, bool) or value is None:
        raise CardmanError("INVALID_AMOUNT", amount=value)
    try:
        amount = Decimal(str(value) if isinstance(value, float) else value)
        if not amount.is_finite():
            raise CardmanError("INVALID_AMOUNT", amount=str(value))
        money = to_money(amount)
    except (InvalidOperation, TypeError, ValueError):
        raise CardmanError("INVALID_AMOUNT", amount=str(value))
    if money != amount:
        raise CardmanError(
            "INVALID_AMOUNT",
            message="Amounts are limited to two decimal places",
            amount=str(value),
        )
    return money


def is_count(value) -> bool:
    """Whole number, booleans excluded."""
    return isinstance(value, int) and not isinstance(value, bool)


def consume_bonus_discount(record: ClientRecord) -> ClientRecord:
    """
    Use the milestone bonus. Not idempotent: a second call fails.

    Raises:
        CardmanError: WRONG_CARD_TYPE or NO_BONUS_AVAILABLE
    """
    card = _require_card(record, (PointsCard, DiscountCard))

    if not card.bonus_discount:
        raise CardmanError("NO_BONUS_AVAILABLE", card_number=record.card_number)

    return replace(record, card=replace(card, bonus_discount=None))


def _require_card(record: ClientRecord, expected):
    if not isinstance(record.card, expected):
        allowed = expected if isinstance(expected, tuple) else (expected,)
        raise CardmanError(
            "WRONG_CARD_TYPE",
            card_number=record.card_number,
            card_type=record.card_type,
            allowed=[cls.card_type.value for cls in allowed],
        )
    return record.card


# ======================================================================
# Administrative override
# ======================================================================

# Client fields an administrator may edit directly
PERSONAL_FIELDS = {
    "first_name",
    "last_name",
    "email",
    "phone",
    "gender",
    "date_of_birth",
    "company",
}

CARD_FIELDS = {
    "card_type",
    "points",
    "visit_points",
    "discount",
    "bonus_discount",
    "balance",
    "membership",
}


def admin_override(record: ClientRecord, **changes) -> ClientRecord:
    """
    Apply an administrator's direct edit.

    Bypasses amount and sign validation on purpose. Switching card_type
    rebuilds the card variant, keeping values the new variant shares with
    the old one and defaulting the rest. Card number, id, last visit and
    visit history are never touched here.

    Raises:
        CardmanError: INVALID_FIELD for fields outside the editable set
    """
    unknown = set(changes) - PERSONAL_FIELDS - CARD_FIELDS
    if unknown:
        raise CardmanError("INVALID_FIELD", fields=sorted(unknown))

    personal = {k: v for k, v in changes.items() if k in PERSONAL_FIELDS}
    card_changes = {k: v for k, v in changes.items() if k in CARD_FIELDS}

    card_type = parse_card_type(card_changes.pop("card_type", record.card_type))
    card = _rebuild_card(record.card, card_type, card_changes)

    return replace(record, card=card, **personal)


def _rebuild_card(current, card_type: CardType, changes: dict):
    card_class = CARD_CLASSES[card_type]
    names = {f.name for f in fields(card_class)}

    if card_class is type(current):
        values = {}
    else:
        # Carry over what the new variant shares with the old one
        values = {f.name: getattr(current, f.name) for f in fields(type(current)) if f.name in names}
        if card_class is not GiftCard and "membership" not in values:
            values["membership"] = current.membership

    values.update({k: v for k, v in changes.items() if k in names})

    if "balance" in values and values["balance"] is not None:
        values["balance"] = to_money(values["balance"])
    for key in ("points", "visit_points", "discount"):
        if key in values and values[key] is None:
            values[key] = 0

    if card_class is type(current):
        return replace(current, **values)
    return card_class(**values)


def parse_card_type(value) -> CardType:
    """
    Coerce a card type name.

    Raises:
        CardmanError: WRONG_CARD_TYPE for values outside points/discount/gift
    """
    try:
        return CardType(value)
    except ValueError:
        raise CardmanError("WRONG_CARD_TYPE", message="Unknown card type", card_type=value)

"""
Card records - immutable snapshots exchanged between the ledger and stores.

A client's card is a tagged union keyed by card type:

    PointsCard   - cycle points, lifetime visit points, membership, bonus
    DiscountCard - flat discount percentage, membership, bonus
    GiftCard     - stored EUR balance (membership is always Standard)

Each variant only carries the fields that are legal for it, so "absent"
and "zero" never get confused.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar, Union

from cardman.choices import CardType, Gender, Membership

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a currency value to two decimals."""
    return Decimal(value).quantize(CENTS)


@dataclass(frozen=True)
class VisitRecord:
    """One confirmed visit. Points fields are set for points cards only."""

    id: str
    timestamp: datetime
    points_earned: int | None = None
    total_points: int | None = None


@dataclass(frozen=True)
class PointsCard:
    card_type: ClassVar[str] = CardType.POINTS

    points: int = 0
    visit_points: int = 0
    membership: str = Membership.STANDARD
    bonus_discount: int | None = None


@dataclass(frozen=True)
class DiscountCard:
    card_type: ClassVar[str] = CardType.DISCOUNT

    discount: int = 0
    membership: str = Membership.STANDARD
    bonus_discount: int | None = None


@dataclass(frozen=True)
class GiftCard:
    card_type: ClassVar[str] = CardType.GIFT

    balance: Decimal = Decimal("0.00")

    @property
    def membership(self) -> str:
        return Membership.STANDARD


Card = Union[PointsCard, DiscountCard, GiftCard]

CARD_CLASSES: dict[str, type] = {
    CardType.POINTS: PointsCard,
    CardType.DISCOUNT: DiscountCard,
    CardType.GIFT: GiftCard,
}

# Variants that can hold a milestone bonus discount
BONUS_CARD_TYPES = (CardType.POINTS, CardType.DISCOUNT)


@dataclass(frozen=True)
class ClientRecord:
    """
    Client with its loyalty card.

    ``id`` is opaque and immutable. ``card_number`` is the natural key used
    by the kiosk. ``visit_history`` is append-only and its length is the
    definitive visit count.
    """

    id: str
    card_number: str
    card: Card
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    gender: str = Gender.UNDISCLOSED
    date_of_birth: date | None = None
    company: str = ""
    last_visit: datetime | None = None
    created_at: datetime | None = None
    visit_history: tuple[VisitRecord, ...] = field(default_factory=tuple)

    @property
    def card_type(self) -> str:
        return self.card.card_type

    @property
    def name(self) -> str:
        """Full name (first + last)."""
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def membership(self) -> str:
        return self.card.membership

    @property
    def bonus_discount(self) -> int | None:
        return getattr(self.card, "bonus_discount", None)

    @property
    def visit_count(self) -> int:
        return len(self.visit_history)

    def sorted_visits(self, newest_first: bool = False) -> list[VisitRecord]:
        """Visit history ordered by timestamp."""
        return sorted(self.visit_history, key=lambda v: v.timestamp, reverse=newest_first)

"""Registration issuer - card number allocation and initial records."""

import logging
import random
import uuid
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from django.utils import timezone

from cardman.choices import CardType, Gender, Membership
from cardman.conf import cardman_settings
from cardman.exceptions import CardmanError
from cardman.ledger import is_count, parse_card_type, parse_money
from cardman.locks import KeyedLock
from cardman.protocols.store import CardStore
from cardman.records import ClientRecord, DiscountCard, GiftCard, PointsCard
from cardman.signals import client_registered

logger = logging.getLogger(__name__)


@dataclass
class ClientRegistration:
    """Input for a new client. Card-type fields not matching card_type are ignored."""

    first_name: str
    card_type: str = CardType.POINTS
    last_name: str = ""
    email: str = ""
    phone: str = ""
    gender: str = Gender.UNDISCLOSED
    date_of_birth: date | None = None
    company: str = ""
    initial_points: int | None = None
    initial_balance: Decimal | None = None
    discount: int | None = None
    bonus_discount: int | None = None
    membership: str | None = None
    card_number: str | None = None


class RegistrationIssuer:
    """
    Issues new cards.

    Caller-supplied card numbers must be unused. Generated numbers
    (prefix + zero-padded digits) are checked against the store and
    redrawn up to CARD_NUMBER_MAX_ATTEMPTS times.
    """

    def __init__(
        self,
        store: CardStore,
        locks: KeyedLock | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.locks = locks or KeyedLock()
        self.rng = rng or random.Random()

    def register(self, data: ClientRegistration) -> ClientRecord:
        """
        Create and persist a new client record.

        Raises:
            CardmanError: DUPLICATE_CARD_NUMBER, WRONG_CARD_TYPE, INVALID_AMOUNT,
                INVALID_FIELD
        """
        card = self.build_card(data)

        if data.card_number:
            card_number = data.card_number
            if self.store.exists_by_card_number(card_number):
                raise CardmanError("DUPLICATE_CARD_NUMBER", card_number=card_number)
        else:
            card_number = self.generate_card_number()

        now = timezone.now()
        record = ClientRecord(
            id=str(uuid.uuid4()),
            card_number=card_number,
            card=card,
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            phone=data.phone,
            gender=data.gender,
            date_of_birth=data.date_of_birth,
            company=data.company,
            last_visit=now,
            created_at=now,
        )

        with self.locks.hold(card_number):
            # Re-check under the lock: another registration may have won
            if self.store.exists_by_card_number(card_number):
                raise CardmanError("DUPLICATE_CARD_NUMBER", card_number=card_number)
            self.store.put(record)

        logger.info("Registered %s card %s for %s", record.card_type, card_number, record.name)
        client_registered.send(sender=self.__class__, record=record)
        return record

    def generate_card_number(self) -> str:
        """Draw an unused card number, e.g. CARD0042."""
        prefix = cardman_settings.CARD_NUMBER_PREFIX
        digits = cardman_settings.CARD_NUMBER_DIGITS
        attempts = cardman_settings.CARD_NUMBER_MAX_ATTEMPTS

        for _ in range(max(1, attempts)):
            candidate = f"{prefix}{self.rng.randrange(10**digits):0{digits}d}"
            if not self.store.exists_by_card_number(candidate):
                return candidate
            logger.debug("Generated card number %s already issued, redrawing", candidate)

        raise CardmanError(
            "DUPLICATE_CARD_NUMBER",
            message="Could not allocate a free card number",
            attempts=attempts,
        )

    def build_card(self, data: ClientRegistration):
        """
        Validate the card-type fields and build the initial card.

        Raises:
            CardmanError: WRONG_CARD_TYPE, INVALID_AMOUNT, INVALID_FIELD
        """
        card_type = parse_card_type(data.card_type)

        if card_type == CardType.GIFT:
            balance = parse_money(data.initial_balance or 0)
            if balance < 0:
                raise CardmanError("INVALID_AMOUNT", message="Initial balance cannot be negative")
            return GiftCard(balance=balance)

        membership = data.membership or Membership.STANDARD
        if membership not in Membership.values:
            raise CardmanError(
                "INVALID_FIELD",
                message="Unknown membership level",
                fields=["membership"],
                membership=membership,
            )
        bonus_discount = _percentage(data.bonus_discount, "Bonus discount") or None

        if card_type == CardType.POINTS:
            points = data.initial_points or 0
            if not is_count(points) or points < 0:
                raise CardmanError(
                    "INVALID_AMOUNT",
                    message="Initial points must be a non-negative integer",
                    amount=points,
                )
            return PointsCard(points=points, membership=membership, bonus_discount=bonus_discount)

        return DiscountCard(
            discount=_percentage(data.discount, "Discount"),
            membership=membership,
            bonus_discount=bonus_discount,
        )


def _percentage(value, label: str) -> int:
    value = value or 0
    if not is_count(value) or not 0 <= value <= 100:
        raise CardmanError(
            "INVALID_AMOUNT",
            message=f"{label} must be an integer between 0 and 100",
            amount=value,
        )
    return value

"""Django ORM CardStore adapter."""

import uuid
from contextlib import contextmanager

from django.db import IntegrityError, transaction

from cardman.choices import CardType, Membership
from cardman.exceptions import CardmanError
from cardman.models import Client, Visit
from cardman.records import (
    ClientRecord,
    DiscountCard,
    GiftCard,
    PointsCard,
    VisitRecord,
    to_money,
)


class DjangoCardStore:
    """
    CardStore backed by the Client and Visit models.

    Writes run inside transaction.atomic(): the client row and any new
    visits are saved together or not at all. ``for_update`` holds a row
    lock (SELECT ... FOR UPDATE) for the whole read-modify-write, so
    mutations of one card are serialized across worker processes too.

    Client and visit ids must be UUIDs.

    Configuration in settings.py:
        CARDMAN = {
            "STORE_BACKEND": "cardman.adapters.orm.DjangoCardStore",
        }
    """

    def get(self, card_number: str) -> ClientRecord | None:
        client = (
            Client.objects.prefetch_related("visits")
            .filter(card_number=card_number)
            .first()
        )
        return to_record(client) if client else None

    def get_by_id(self, client_id: str) -> ClientRecord | None:
        pk = _as_uuid(client_id)
        if pk is None:
            return None
        client = Client.objects.prefetch_related("visits").filter(pk=pk).first()
        return to_record(client) if client else None

    @contextmanager
    def for_update(self, card_number: str):
        """
        Lock the card row and yield its record (None if unknown).

        MUST be the outermost read of a mutation: ``put`` inside the block
        joins the same transaction.
        """
        with transaction.atomic():
            client = (
                Client.objects.select_for_update()
                .prefetch_related("visits")
                .filter(card_number=card_number)
                .first()
            )
            yield to_record(client) if client else None

    def put(self, record: ClientRecord) -> None:
        """
        Raises:
            CardmanError: INVALID_FIELD for non-UUID ids,
                DUPLICATE_CARD_NUMBER when another row holds the card number
        """
        pk = _as_uuid(record.id)
        bad_visits = [v.id for v in record.visit_history if _as_uuid(v.id) is None]
        if pk is None or bad_visits:
            raise CardmanError(
                "INVALID_FIELD",
                message="Client and visit ids must be UUIDs",
                fields=["id"] if pk is None else ["visit_history"],
                client_id=record.id,
                visit_ids=bad_visits,
            )

        try:
            with transaction.atomic():
                client, _ = Client.objects.update_or_create(
                    id=pk,
                    defaults=to_columns(record),
                )
                known = {str(v) for v in client.visits.values_list("id", flat=True)}
                Visit.objects.bulk_create(
                    [
                        Visit(
                            id=visit.id,
                            client=client,
                            timestamp=visit.timestamp,
                            points_earned=visit.points_earned,
                            total_points=visit.total_points,
                        )
                        for visit in record.visit_history
                        if str(_as_uuid(visit.id)) not in known
                    ]
                )
        except IntegrityError:
            if Client.objects.filter(card_number=record.card_number).exclude(pk=pk).exists():
                raise CardmanError("DUPLICATE_CARD_NUMBER", card_number=record.card_number)
            raise

    def list(self) -> list[ClientRecord]:
        return [to_record(c) for c in Client.objects.prefetch_related("visits")]

    def delete(self, client_id: str) -> None:
        pk = _as_uuid(client_id)
        if pk is not None:
            Client.objects.filter(pk=pk).delete()

    def exists_by_card_number(self, card_number: str) -> bool:
        return Client.objects.filter(card_number=card_number).exists()


def _as_uuid(value) -> uuid.UUID | None:
    try:
        return value if isinstance(value, uuid.UUID) else uuid.UUID(str(value))
    except ValueError:
        return None


def to_record(client: Client) -> ClientRecord:
    """Map a Client row (with prefetched visits) to a ClientRecord."""
    if client.card_type == CardType.POINTS:
        card = PointsCard(
            points=client.points or 0,
            visit_points=client.visit_points or 0,
            membership=client.membership,
            bonus_discount=client.bonus_discount,
        )
    elif client.card_type == CardType.DISCOUNT:
        card = DiscountCard(
            discount=client.discount or 0,
            membership=client.membership,
            bonus_discount=client.bonus_discount,
        )
    else:
        card = GiftCard(balance=to_money(client.balance or 0))

    visits = tuple(
        VisitRecord(
            id=str(v.id),
            timestamp=v.timestamp,
            points_earned=v.points_earned,
            total_points=v.total_points,
        )
        for v in client.visits.all()
    )

    return ClientRecord(
        id=str(client.id),
        card_number=client.card_number,
        card=card,
        first_name=client.first_name,
        last_name=client.last_name,
        email=client.email,
        phone=client.phone,
        gender=client.gender,
        date_of_birth=client.date_of_birth,
        company=client.company,
        last_visit=client.last_visit,
        created_at=client.created_at,
        visit_history=visits,
    )


def to_columns(record: ClientRecord) -> dict:
    """Map a ClientRecord to Client column values. Unused variant columns are NULL."""
    card = record.card
    columns = {
        "card_number": record.card_number,
        "first_name": record.first_name,
        "last_name": record.last_name,
        "email": record.email,
        "phone": record.phone,
        "gender": record.gender,
        "date_of_birth": record.date_of_birth,
        "company": record.company,
        "card_type": record.card_type,
        "membership": card.membership,
        "points": None,
        "visit_points": None,
        "discount": None,
        "bonus_discount": None,
        "balance": None,
        "last_visit": record.last_visit,
    }
    if record.created_at is not None:
        columns["created_at"] = record.created_at

    if isinstance(card, PointsCard):
        columns.update(
            points=card.points,
            visit_points=card.visit_points,
            bonus_discount=card.bonus_discount,
        )
    elif isinstance(card, DiscountCard):
        columns.update(discount=card.discount, bonus_discount=card.bonus_discount)
    else:
        columns.update(balance=card.balance, membership=Membership.STANDARD)
    return columns

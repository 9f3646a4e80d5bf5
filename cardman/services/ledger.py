"""Ledger service - guarded card operations over a CardStore.

Each operation is a read-modify-write on one card number:
load the snapshot, apply the pure ledger rule, persist. A per-key lock
keeps at most one mutation in flight per card number within a process,
and the store's for_update() read locks the card for other processes.
Different cards proceed in parallel.
"""

import logging
from contextlib import contextmanager
from decimal import Decimal

from cardman import ledger
from cardman.exceptions import CardmanError
from cardman.locks import KeyedLock
from cardman.protocols.store import CardStore
from cardman.records import ClientRecord, VisitRecord
from cardman.signals import bonus_granted, client_deleted, client_updated, visit_confirmed

logger = logging.getLogger(__name__)


class CardLedger:
    """
    Card ledger bound to a store.

    Usage:
        card_ledger = CardLedger(InMemoryCardStore())
        record, visit = card_ledger.confirm_visit("CARD0042")
    """

    def __init__(self, store: CardStore, locks: KeyedLock | None = None):
        self.store = store
        self.locks = locks or KeyedLock()

    # ======================================================================
    # Reads
    # ======================================================================

    def get(self, card_number: str) -> ClientRecord | None:
        return self.store.get(card_number)

    def lookup(self, card_number: str) -> ClientRecord:
        """
        Get a record or raise.

        Raises:
            CardmanError: CARD_NOT_FOUND
        """
        record = self.store.get(card_number)
        if record is None:
            raise CardmanError("CARD_NOT_FOUND", card_number=card_number)
        return record

    @contextmanager
    def _locked(self, card_number: str):
        """Hold the card for a read-modify-write and yield its record."""
        with self.locks.hold(card_number), self.store.for_update(card_number) as record:
            if record is None:
                raise CardmanError("CARD_NOT_FOUND", card_number=card_number)
            yield record

    # ======================================================================
    # Ledger intents
    # ======================================================================

    def confirm_visit(self, card_number: str) -> tuple[ClientRecord, VisitRecord]:
        """Confirm a visit. The only path that grows visit history."""
        with self._locked(card_number) as record:
            updated, visit = ledger.confirm_visit(record)
            self.store.put(updated)

        logger.info(
            "Visit %s confirmed for %s (visit #%d)",
            visit.id,
            card_number,
            updated.visit_count,
        )
        visit_confirmed.send(sender=self.__class__, record=updated, visit=visit)

        if updated.bonus_discount and ledger.is_milestone(updated.visit_count):
            logger.info("Milestone bonus %s%% granted to %s", updated.bonus_discount, card_number)
            bonus_granted.send(
                sender=self.__class__,
                record=updated,
                bonus_discount=updated.bonus_discount,
            )

        return updated, visit

    def redeem_points(self, card_number: str, amount: int) -> ClientRecord:
        return self._apply(card_number, "redeem_points", ledger.redeem_points, amount)

    def use_balance(self, card_number: str, amount: Decimal) -> ClientRecord:
        return self._apply(card_number, "use_balance", ledger.use_balance, amount)

    def adjust_balance(self, card_number: str, delta: Decimal) -> ClientRecord:
        return self._apply(card_number, "adjust_balance", ledger.adjust_balance, delta)

    def consume_bonus_discount(self, card_number: str) -> ClientRecord:
        return self._apply(card_number, "consume_bonus_discount", ledger.consume_bonus_discount)

    def _apply(self, card_number: str, action: str, rule, *args) -> ClientRecord:
        with self._locked(card_number) as record:
            try:
                updated = rule(record, *args)
            except CardmanError as e:
                logger.warning("%s rejected for %s: %s", action, card_number, e.code)
                raise
            self.store.put(updated)

        logger.info("%s applied to %s", action, card_number)
        client_updated.send(sender=self.__class__, record=updated, action=action)
        return updated

    # ======================================================================
    # Administration
    # ======================================================================

    def override(self, card_number: str, **changes) -> ClientRecord:
        """
        Administrative override: direct field edit, no amount/sign checks.

        Switching card type resets the type-specific fields.
        """
        with self._locked(card_number) as record:
            updated = ledger.admin_override(record, **changes)
            self.store.put(updated)

        logger.info("Admin override on %s: %s", card_number, sorted(changes))
        client_updated.send(sender=self.__class__, record=updated, action="override")
        return updated

    def delete(self, client_id: str) -> None:
        """
        Delete a client. No ledger rules apply.

        Raises:
            CardmanError: CARD_NOT_FOUND if no client has this id
        """
        record = self.store.get_by_id(client_id)
        if record is None:
            raise CardmanError("CARD_NOT_FOUND", client_id=client_id)

        with self.locks.hold(record.card_number):
            self.store.delete(client_id)

        logger.info("Client %s (%s) deleted", client_id, record.card_number)
        client_deleted.send(sender=self.__class__, client_id=client_id)

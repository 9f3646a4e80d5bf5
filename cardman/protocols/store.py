"""Card store protocol."""

from contextlib import AbstractContextManager
from typing import Protocol, runtime_checkable

from cardman.records import ClientRecord


@runtime_checkable
class CardStore(Protocol):
    """
    Protocol for keyed storage of client records.

    The ledger computes each next state from a snapshot read through
    ``for_update`` and writes it back through ``put`` before leaving the
    block. Stores shared between processes lock the card there; the
    ledger also serializes mutations per card number within a process.

    Configuration in settings.py:
        CARDMAN = {
            "STORE_BACKEND": "cardman.adapters.orm.DjangoCardStore",
        }
    """

    def get(self, card_number: str) -> ClientRecord | None:
        """Return the record for a card number, or None."""
        ...

    def get_by_id(self, client_id: str) -> ClientRecord | None:
        """Return the record with this internal id, or None."""
        ...

    def for_update(self, card_number: str) -> AbstractContextManager[ClientRecord | None]:
        """
        Read a record for a read-modify-write.

        The card stays locked against other writers until the block exits;
        ``put`` calls made inside it commit or roll back together.
        """
        ...

    def put(self, record: ClientRecord) -> None:
        """
        Insert or replace a record. Visit history is append-only.

        Stores may restrict id formats (the ORM store requires UUIDs) and
        raise CardmanError INVALID_FIELD for ids they cannot hold.
        """
        ...

    def list(self) -> list[ClientRecord]:
        """Return every stored record."""
        ...

    def delete(self, client_id: str) -> None:
        """Remove a record by its internal id."""
        ...

    def exists_by_card_number(self, card_number: str) -> bool:
        """Whether a card number is already issued."""
        ...

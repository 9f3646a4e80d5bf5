"""In-process CardStore adapter."""

import threading
from contextlib import contextmanager

from cardman.records import ClientRecord


class InMemoryCardStore:
    """
    CardStore backed by a dict keyed by card number.

    Lifecycle is that of the instance: create one per application or test.

    Configuration in settings.py:
        CARDMAN = {
            "STORE_BACKEND": "cardman.adapters.memory.InMemoryCardStore",
        }
    """

    def __init__(self, records: list[ClientRecord] | None = None):
        self._records: dict[str, ClientRecord] = {}
        self._mutex = threading.Lock()
        for record in records or []:
            self.put(record)

    def get(self, card_number: str) -> ClientRecord | None:
        return self._records.get(card_number)

    def get_by_id(self, client_id: str) -> ClientRecord | None:
        return next((r for r in self._records.values() if r.id == client_id), None)

    @contextmanager
    def for_update(self, card_number: str):
        # Single process: CardLedger's KeyedLock already serializes the card
        yield self.get(card_number)

    def put(self, record: ClientRecord) -> None:
        with self._mutex:
            # Card number is immutable, but drop a stale key if an id moved
            for key, existing in list(self._records.items()):
                if existing.id == record.id and key != record.card_number:
                    del self._records[key]
            self._records[record.card_number] = record

    def list(self) -> list[ClientRecord]:
        return list(self._records.values())

    def delete(self, client_id: str) -> None:
        with self._mutex:
            for key, record in list(self._records.items()):
                if record.id == client_id:
                    del self._records[key]

    def exists_by_card_number(self, card_number: str) -> bool:
        return card_number in self._records

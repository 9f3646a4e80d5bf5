"""
Cardman configuration.

Usage in settings.py:
    CARDMAN = {
        "STORE_BACKEND": "cardman.adapters.memory.InMemoryCardStore",
        "ACTIVE_CLIENT_POLICY": "recent_visitors",
        "ACTIVE_WINDOW_DAYS": 30,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class CardmanSettings:
    """Cardman configuration settings."""

    # Card store implementation (dotted path to a CardStore class)
    STORE_BACKEND: str = "cardman.adapters.orm.DjangoCardStore"

    # Stats: which clients count as "active"
    ACTIVE_CLIENT_POLICY: str = "discount_cards"
    ACTIVE_WINDOW_DAYS: int = 30

    # Card number allocation
    CARD_NUMBER_PREFIX: str = "CARD"
    CARD_NUMBER_DIGITS: int = 4
    CARD_NUMBER_MAX_ATTEMPTS: int = 10

    # Ledger rules
    POINTS_CYCLE_LIMIT: int = 10
    MILESTONE_INTERVAL: int = 10
    MILESTONE_BONUS_DISCOUNT: int = 10
    GOLD_MEMBERSHIP_THRESHOLD: int = 1000

    # Sender for "send card details" e-mails (empty = DEFAULT_FROM_EMAIL)
    DETAILS_FROM_EMAIL: str = ""


def get_cardman_settings() -> CardmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "CARDMAN", {})
    return CardmanSettings(**user_settings)


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_cardman_settings(), name)


cardman_settings = _LazySettings()

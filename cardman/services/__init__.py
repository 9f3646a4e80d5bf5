"""Cardman services.

- cardman.services.ledger: CardLedger (visits, redemptions, overrides)
- cardman.services.issuer: RegistrationIssuer, ClientRegistration
- cardman.services.stats: StatsAggregator, activity policies
"""

from cardman.services.issuer import ClientRegistration, RegistrationIssuer
from cardman.services.ledger import CardLedger
from cardman.services.stats import StatsAggregator

__all__ = ["CardLedger", "ClientRegistration", "RegistrationIssuer", "StatsAggregator"]

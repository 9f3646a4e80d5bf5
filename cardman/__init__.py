"""
Django Cardman - Loyalty card kiosk.

Usage:
    from cardman import CardService, CardmanError

    record, visit = CardService.confirm_visit("CARD0042")
    CardService.redeem_points("CARD0042", 5)
    CardService.use_balance("GIFT789", Decimal("12.50"))
    CardService.consume_bonus_discount("DISC456")

    client = CardService.register(ClientRegistration(first_name="Ana", card_type="gift"))
    stats = CardService.stats()
"""


def __getattr__(name):
    if name == "CardService":
        from cardman.service import CardService

        return CardService
    if name == "CardmanError":
        from cardman.exceptions import CardmanError

        return CardmanError
    if name == "ClientRegistration":
        from cardman.services.issuer import ClientRegistration

        return ClientRegistration
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["CardService", "CardmanError", "ClientRegistration"]
__version__ = "0.1.0"

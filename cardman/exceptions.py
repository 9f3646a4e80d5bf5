"""Cardman exceptions."""


class BaseError(Exception):
    """
    Structured error with a machine-readable code and context data.

    Subclasses declare ``_default_messages`` keyed by code.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __str__(self):
        return f"[{self.code}] {self.message}"

    def as_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "data": self.data}


class CardmanError(BaseError):
    """
    Structured exception for card ledger operations.

    Every rejected intent surfaces as a CardmanError; the stored record is
    left untouched.

    Usage:
        try:
            CardService.redeem_points("CARD0042", 5)
        except CardmanError as e:
            if e.code == "INSUFFICIENT_FUNDS":
                show_balance(e.data["available"])
    """

    _default_messages = {
        "CARD_NOT_FOUND": "Client not found. Please check the card number and try again.",
        "WRONG_CARD_TYPE": "This operation is not available for this card type",
        "INVALID_AMOUNT": "Invalid amount",
        "INSUFFICIENT_FUNDS": "Insufficient balance",
        "NO_BONUS_AVAILABLE": "No bonus discount available",
        "DUPLICATE_CARD_NUMBER": "Card number already in use",
        "INVALID_FIELD": "Unknown client field",
        "NO_EMAIL": "Client has no e-mail address",
    }

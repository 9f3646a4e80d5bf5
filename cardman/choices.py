"""Card choices shared by records, models and services."""

from django.db import models
from django.utils.translation import gettext_lazy as _


class CardType(models.TextChoices):
    POINTS = "points", _("Points Card")
    DISCOUNT = "discount", _("Discount Card")
    GIFT = "gift", _("Gift Card")


class Membership(models.TextChoices):
    STANDARD = "Standard", _("Standard")
    GOLD = "Gold", _("Gold")
    PLATINUM = "Platinum", _("Platinum")


class Gender(models.TextChoices):
    MALE = "male", _("Male")
    FEMALE = "female", _("Female")
    OTHER = "other", _("Other")
    UNDISCLOSED = "prefer-not-to-say", _("Prefer not to say")

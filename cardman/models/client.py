"""Client model - persistence for the ORM card store.

Data architecture:
    Client
        One row per issued card. Type-specific columns are nullable: a
        points card fills points/visit_points, a discount card fills
        discount, a gift card fills balance. The store maps rows to the
        ClientRecord tagged union and back, so ledger code never sees the
        unused columns.

    Visit
        Append-only visit history. Its row count per client is the visit
        count used for milestone detection.
"""

import uuid as uuid_lib

from django.db import models
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from cardman.choices import CardType, Gender, Membership


class Client(models.Model):
    """Loyalty card holder."""

    id = models.UUIDField(primary_key=True, default=uuid_lib.uuid4, editable=False)
    card_number = models.CharField(
        _("card number"),
        max_length=50,
        unique=True,
        blank=True,
        help_text=_("Number printed on the card (ex: CARD0042). Generated when left blank."),
    )

    # Personal data (not touched by the ledger)
    first_name = models.CharField(_("first name"), max_length=100)
    last_name = models.CharField(_("last name"), max_length=100, blank=True)
    email = models.EmailField(_("email"), blank=True)
    phone = models.CharField(_("phone"), max_length=30, blank=True)
    gender = models.CharField(
        _("gender"),
        max_length=20,
        choices=Gender.choices,
        default=Gender.UNDISCLOSED,
    )
    date_of_birth = models.DateField(_("date of birth"), null=True, blank=True)
    company = models.CharField(_("company"), max_length=200, blank=True)

    # Card
    card_type = models.CharField(
        _("card type"),
        max_length=20,
        choices=CardType.choices,
        db_index=True,
    )
    membership = models.CharField(
        _("membership"),
        max_length=20,
        choices=Membership.choices,
        default=Membership.STANDARD,
    )
    points = models.IntegerField(
        _("points"),
        null=True,
        blank=True,
        help_text=_("Points in the current cycle (points cards)"),
    )
    visit_points = models.IntegerField(
        _("visit points"),
        null=True,
        blank=True,
        help_text=_("Lifetime visit points, never decreases (points cards)"),
    )
    discount = models.IntegerField(
        _("discount"),
        null=True,
        blank=True,
        help_text=_("Flat discount percentage (discount cards)"),
    )
    bonus_discount = models.IntegerField(
        _("bonus discount"),
        null=True,
        blank=True,
        help_text=_("One-time percentage granted at milestone visits"),
    )
    balance = models.DecimalField(
        _("balance"),
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        help_text=_("Gift card balance in EUR"),
    )

    last_visit = models.DateTimeField(_("last visit"), null=True, blank=True)

    # Audit
    created_at = models.DateTimeField(_("created at"), default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(_("updated at"), auto_now=True)

    class Meta:
        verbose_name = _("client")
        verbose_name_plural = _("clients")
        ordering = ["first_name", "last_name"]

    def __str__(self):
        return f"{self.name} ({self.card_number})"

    @property
    def name(self) -> str:
        """Full name (first + last)."""
        return f"{self.first_name} {self.last_name}".strip()

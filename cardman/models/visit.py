"""Visit model."""

import uuid as uuid_lib

from django.db import models
from django.utils.translation import gettext_lazy as _


class Visit(models.Model):
    """
    Immutable record of a confirmed visit.

    Visits are append-only: never modified or deleted (except with the client).
    """

    id = models.UUIDField(primary_key=True, default=uuid_lib.uuid4, editable=False)
    client = models.ForeignKey(
        "cardman.Client",
        on_delete=models.CASCADE,
        related_name="visits",
        verbose_name=_("client"),
    )
    timestamp = models.DateTimeField(_("timestamp"), db_index=True)
    points_earned = models.IntegerField(_("points earned"), null=True, blank=True)
    total_points = models.IntegerField(
        _("total points"),
        null=True,
        blank=True,
        help_text=_("Cycle points after this visit"),
    )

    class Meta:
        verbose_name = _("visit")
        verbose_name_plural = _("visits")
        ordering = ["timestamp"]
        indexes = [
            models.Index(fields=["client", "timestamp"], name="cardman_visit_client_ts_idx"),
        ]

    def __str__(self):
        return f"{self.client_id} @ {self.timestamp:%Y-%m-%d %H:%M}"

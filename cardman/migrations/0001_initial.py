# Generated migration for Client and Visit

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Client",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "card_number",
                    models.CharField(
                        blank=True,
                        help_text="Number printed on the card (ex: CARD0042). Generated when left blank.",
                        max_length=50,
                        unique=True,
                        verbose_name="card number",
                    ),
                ),
                ("first_name", models.CharField(max_length=100, verbose_name="first name")),
                ("last_name", models.CharField(blank=True, max_length=100, verbose_name="last name")),
                ("email", models.EmailField(blank=True, max_length=254, verbose_name="email")),
                ("phone", models.CharField(blank=True, max_length=30, verbose_name="phone")),
                (
                    "gender",
                    models.CharField(
                        choices=[
                            ("male", "Male"),
                            ("female", "Female"),
                            ("other", "Other"),
                            ("prefer-not-to-say", "Prefer not to say"),
                        ],
                        default="prefer-not-to-say",
                        max_length=20,
                        verbose_name="gender",
                    ),
                ),
                ("date_of_birth", models.DateField(blank=True, null=True, verbose_name="date of birth")),
                ("company", models.CharField(blank=True, max_length=200, verbose_name="company")),
                (
                    "card_type",
                    models.CharField(
                        choices=[
                            ("points", "Points Card"),
                            ("discount", "Discount Card"),
                            ("gift", "Gift Card"),
                        ],
                        db_index=True,
                        max_length=20,
                        verbose_name="card type",
                    ),
                ),
                (
                    "membership",
                    models.CharField(
                        choices=[
                            ("Standard", "Standard"),
                            ("Gold", "Gold"),
                            ("Platinum", "Platinum"),
                        ],
                        default="Standard",
                        max_length=20,
                        verbose_name="membership",
                    ),
                ),
                (
                    "points",
                    models.IntegerField(
                        blank=True,
                        help_text="Points in the current cycle (points cards)",
                        null=True,
                        verbose_name="points",
                    ),
                ),
                (
                    "visit_points",
                    models.IntegerField(
                        blank=True,
                        help_text="Lifetime visit points, never decreases (points cards)",
                        null=True,
                        verbose_name="visit points",
                    ),
                ),
                (
                    "discount",
                    models.IntegerField(
                        blank=True,
                        help_text="Flat discount percentage (discount cards)",
                        null=True,
                        verbose_name="discount",
                    ),
                ),
                (
                    "bonus_discount",
                    models.IntegerField(
                        blank=True,
                        help_text="One-time percentage granted at milestone visits",
                        null=True,
                        verbose_name="bonus discount",
                    ),
                ),
                (
                    "balance",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Gift card balance in EUR",
                        max_digits=10,
                        null=True,
                        verbose_name="balance",
                    ),
                ),
                ("last_visit", models.DateTimeField(blank=True, null=True, verbose_name="last visit")),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True,
                        default=django.utils.timezone.now,
                        verbose_name="created at",
                    ),
                ),
                ("updated_at", models.DateTimeField(auto_now=True, verbose_name="updated at")),
            ],
            options={
                "verbose_name": "client",
                "verbose_name_plural": "clients",
                "ordering": ["first_name", "last_name"],
            },
        ),
        migrations.CreateModel(
            name="Visit",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("timestamp", models.DateTimeField(db_index=True, verbose_name="timestamp")),
                ("points_earned", models.IntegerField(blank=True, null=True, verbose_name="points earned")),
                (
                    "total_points",
                    models.IntegerField(
                        blank=True,
                        help_text="Cycle points after this visit",
                        null=True,
                        verbose_name="total points",
                    ),
                ),
                (
                    "client",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="visits",
                        to="cardman.client",
                        verbose_name="client",
                    ),
                ),
            ],
            options={
                "verbose_name": "visit",
                "verbose_name_plural": "visits",
                "ordering": ["timestamp"],
                "indexes": [
                    models.Index(fields=["client", "timestamp"], name="cardman_visit_client_ts_idx"),
                ],
            },
        ),
    ]

from django.apps import AppConfig


class CardmanConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "cardman"
    verbose_name = "Cardman - Loyalty Cards"

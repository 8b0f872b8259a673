"""Django app configuration for Depotman."""

from django.apps import AppConfig
from django.utils.translation import gettext_lazy as _


class DepotmanConfig(AppConfig):
    """Configuration for Depotman app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "depotman"
    verbose_name = _("Inventory & Transfers")

"""Django app configuration for the Inventory app."""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    """AppConfig for products, the movement log and low-stock alerts."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"

"""Django app configuration for the Logistics app."""

from django.apps import AppConfig


class LogisticsConfig(AppConfig):
    """AppConfig for deliveries that draw down product stock."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "logistics"

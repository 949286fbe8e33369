"""
Rates app configuration.
"""

from django.apps import AppConfig


class RatesConfig(AppConfig):
    """Configuration for the rates application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "rates"
    verbose_name = "Rates"

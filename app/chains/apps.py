"""
Chains app configuration.
"""

from django.apps import AppConfig


class ChainsConfig(AppConfig):
    """Configuration for the chains application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chains"
    verbose_name = "Chains"

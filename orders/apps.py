"""Django app configuration for orders."""

from django.apps import AppConfig


class OrdersConfig(AppConfig):
    """Orders, their line snapshots and stock reconciliation."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"

"""
Settlement app configuration.

This app turns processor events into order payments and keeps each
store's seller ledger:
- Stripe webhook intake and handlers
- Order payment state machine
- Seller ledger, balances and payouts
"""

from django.apps import AppConfig


class SettlementConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "settlement"
    verbose_name = "Settlement"

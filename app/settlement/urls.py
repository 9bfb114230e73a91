"""
URL configuration for the settlement app.

Routes:
    - POST webhooks/stripe/                      - Stripe webhook endpoint
    - GET  stores/<store_id>/balance/            - Balance summary
    - GET  stores/<store_id>/transactions/       - Ledger entries
    - POST stores/<store_id>/payouts/            - Request a payout

All routes are prefixed with /api/v1/settlement/ when included in the main URLconf.
"""

from django.urls import path

from settlement.views import StoreBalanceView, StorePayoutView, StoreTransactionListView
from settlement.webhooks.views import stripe_webhook

app_name = "settlement"

urlpatterns = [
    # Webhook endpoints
    path("webhooks/stripe/", stripe_webhook, name="stripe_webhook"),
    # Store balance and payouts
    path("stores/<str:store_id>/balance/", StoreBalanceView.as_view(), name="store_balance"),
    path(
        "stores/<str:store_id>/transactions/",
        StoreTransactionListView.as_view(),
        name="store_transactions",
    ),
    path("stores/<str:store_id>/payouts/", StorePayoutView.as_view(), name="store_payouts"),
]

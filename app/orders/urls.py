"""
URL configuration for the orders app.

All routes are prefixed with /api/v1/orders/ when included in the main URLconf.
"""

from django.urls import path

from orders.views import DraftOrderCompleteView, OrderDetailView, OrderFulfillmentView

app_name = "orders"

urlpatterns = [
    path(
        "drafts/<str:draft_id>/complete/",
        DraftOrderCompleteView.as_view(),
        name="draft_complete",
    ),
    path("<str:order_id>/", OrderDetailView.as_view(), name="order_detail"),
    path(
        "<str:order_id>/fulfillment/",
        OrderFulfillmentView.as_view(),
        name="order_fulfillment",
    ),
]

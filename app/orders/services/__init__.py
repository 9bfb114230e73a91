"""
Order services.

- DraftOrderService: Draft to order conversion
- OrderStatusService: Payment/fulfillment aggregation and completion
- InvoiceService: Invoice number assignment
"""

from orders.services.drafts import DraftConversion, DraftOrderService, next_order_number
from orders.services.events import record_order_event
from orders.services.invoices import InvoiceResult, InvoiceService
from orders.services.status import OrderStatusService

__all__ = [
    "DraftConversion",
    "DraftOrderService",
    "InvoiceResult",
    "InvoiceService",
    "OrderStatusService",
    "next_order_number",
    "record_order_event",
]

"""
Orders app: stores, orders, draft orders and the order timeline.

Payment state on an order is derived from its settlement payments and only
changes through orders.services.OrderStatusService.
"""

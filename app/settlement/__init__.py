"""
Settlement app: Stripe events to order payments and seller ledgers.

This app handles:
- Stripe webhook intake (verification, dedup, dispatch)
- Checkout settlement for single and multi-store checkouts
- Order payment capture, void and refund reconciliation
- Seller ledger balances and payouts

Related apps:
    - orders: Orders, drafts, stores and the order timeline

Usage:
    from settlement.services import CheckoutSettlementService

    result = CheckoutSettlementService.settle_checkout_session("cs_123")
"""

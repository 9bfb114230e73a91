"""
Settlement services.

- PaymentStateService: OrderPayment capture / void with ledger entries
- CheckoutSettlementService: Completed checkout sessions to order payments
- RefundReconciler: Stripe refunds to ledger debits and payment states
- SellerPayoutService: Payouts from the connected balance
"""

from settlement.services.checkout import CheckoutSettlementService, SettlementOutcome
from settlement.services.payments import PaymentStateService
from settlement.services.payouts import SellerPayoutService
from settlement.services.refunds import RefundReconciler, RefundReconciliation

__all__ = [
    "CheckoutSettlementService",
    "PaymentStateService",
    "RefundReconciler",
    "RefundReconciliation",
    "SellerPayoutService",
    "SettlementOutcome",
]

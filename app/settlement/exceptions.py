"""
Settlement exceptions.

Exception Hierarchy:
    SettlementError (base)
    ├── PaymentNotFoundError - No payment record for an order / intent
    ├── InvalidPaymentMetadataError - Checkout metadata cannot be resolved
    └── StripeError - Base for all processor errors (stripe_code, is_retryable)
        ├── StripeInvalidRequestError - Bad parameters, bad signature (permanent)
        ├── StripeInvalidAccountError - Connected account unusable (permanent)
        ├── StripeInsufficientFundsError - Connected balance too low (permanent)
        ├── StripeRateLimitError - Rate limited (transient)
        ├── StripeAPIUnavailableError - Network / 5xx (transient)
        └── StripeTimeoutError - Request timed out (transient)
    InvalidStateTransitionError - FSM transition not allowed (ConflictError)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import BaseApplicationError, ConflictError, ExternalServiceError

if TYPE_CHECKING:
    from typing import Any


class SettlementError(BaseApplicationError):
    default_error_code: str = "SETTLEMENT_ERROR"


class PaymentNotFoundError(SettlementError):
    """
    Raised when payment records for an order or intent are missing.

    Fatal for a webhook event: redelivery would find the same nothing.
    """

    default_error_code: str = "PAYMENT_NOT_FOUND"


class InvalidPaymentMetadataError(SettlementError):
    """
    Raised when checkout metadata names neither a draft, an order nor a
    multi-store breakdown, or when the breakdown cannot be parsed.
    """

    default_error_code: str = "INVALID_PAYMENT_METADATA"


# =============================================================================
# Stripe errors
# =============================================================================


class StripeError(SettlementError, ExternalServiceError):
    """
    Base exception for processor errors raised through StripeAdapter.

    is_retryable tells callers whether the same request may succeed later.
    """

    default_error_code: str = "STRIPE_ERROR"
    is_retryable: bool = False

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        stripe_code: str | None = None,
        decline_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if stripe_code:
            details["stripe_code"] = stripe_code
        if decline_code:
            details["decline_code"] = decline_code
        super().__init__(message, error_code=error_code, details=details)
        self.stripe_code = stripe_code
        self.decline_code = decline_code


class StripeInvalidRequestError(StripeError):
    """Malformed request, missing object, or failed webhook signature."""

    default_error_code: str = "INVALID_STRIPE_REQUEST"


class StripeInvalidAccountError(StripeError):
    """The connected account is missing, restricted or not onboarded."""

    default_error_code: str = "INVALID_STRIPE_ACCOUNT"


class StripeInsufficientFundsError(StripeError):
    """The connected account's Stripe balance cannot cover a payout."""

    default_error_code: str = "INSUFFICIENT_FUNDS"


class StripeRateLimitError(StripeError):
    default_error_code: str = "STRIPE_RATE_LIMITED"
    is_retryable: bool = True


class StripeAPIUnavailableError(StripeError):
    default_error_code: str = "STRIPE_UNAVAILABLE"
    is_retryable: bool = True


class StripeTimeoutError(StripeError):
    """
    The request was sent but no response arrived in time.

    The operation may have succeeded on Stripe's side; retry with the same
    idempotency key.
    """

    default_error_code: str = "STRIPE_TIMEOUT"
    is_retryable: bool = True


# =============================================================================
# State errors
# =============================================================================


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a payment or payout transition is not allowed.

    Wraps django_fsm.TransitionNotAllowed with the current and attempted
    states in details.
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"

"""
Stripe API adapter for settlement operations.

All Stripe calls made by the settlement engine go through StripeAdapter
so that timeouts, error translation and logging are consistent.

Features:
- Configurable timeouts and network retries on all API calls
- Automatic error translation to settlement.exceptions.StripeError
- Structured logging with timing metrics
- Idempotency keys for calls that move money

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- STRIPE_WEBHOOK_SECRET: Webhook signing secret
- STRIPE_API_TIMEOUT_SECONDS: API call timeout (default: 10)
- STRIPE_MAX_RETRIES: Network retries made by the SDK (default: 3)

Usage:
    from settlement.adapters import StripeAdapter

    session = StripeAdapter.retrieve_checkout_session("cs_test_123")
    intent = StripeAdapter.retrieve_payment_intent(session.payment_intent_id)
    refunds = StripeAdapter.list_refunds(intent.id)
"""

from __future__ import annotations

import hashlib
import logging
import time
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import stripe
from django.conf import settings

from settlement.exceptions import (
    StripeAPIUnavailableError,
    StripeInsufficientFundsError,
    StripeInvalidAccountError,
    StripeInvalidRequestError,
    StripeRateLimitError,
    StripeTimeoutError,
)

# =============================================================================
# Data Types
# =============================================================================


@dataclass
class CheckoutSessionResult:
    """
    Result from retrieving a Checkout Session.

    Attributes:
        id: Session ID (cs_xxx)
        payment_intent_id: The session's PaymentIntent, None for unpaid sessions
        amount_total: Total in minor units
        currency: Currency code
        payment_status: paid / unpaid / no_payment_required
        metadata: Session metadata (draftId, orderId, multiStore, ...)
    """

    id: str
    payment_intent_id: str | None
    amount_total: int | None
    currency: str | None
    payment_status: str | None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class PaymentIntentResult:
    id: str
    status: str
    amount: int
    currency: str
    latest_charge_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)
    raw_response: dict[str, Any] = field(default_factory=dict)


@dataclass
class RefundResult:
    """
    A Stripe refund.

    Attributes:
        id: Refund ID (re_xxx)
        amount: Refunded amount in minor units
        status: pending / succeeded / failed / canceled
        metadata: Refund metadata; orderId attributes it to one order
    """

    id: str
    amount: int
    currency: str
    status: str
    payment_intent_id: str | None
    reason: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class BalanceAmount:
    amount: int
    currency: str


@dataclass
class BalanceResult:
    """A connected account's Stripe balance, per currency, in minor units."""

    available: list[BalanceAmount] = field(default_factory=list)
    pending: list[BalanceAmount] = field(default_factory=list)


@dataclass
class PayoutResult:
    id: str
    amount: int
    currency: str
    status: str
    arrival_date: int | None = None
    raw_response: dict[str, Any] = field(default_factory=dict)


# =============================================================================
# Idempotency Key Generator
# =============================================================================


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for Stripe API calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    Example:
        key = IdempotencyKeyGenerator.generate("payout", seller_payout.id)
        # "payout:550e8400-e29b-41d4-a716-446655440000:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]
        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


def _as_id(value: Any) -> str | None:
    """Stripe returns either an id or an expanded object for relations."""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return value.get("id")
    return getattr(value, "id", None)


# =============================================================================
# Stripe Adapter
# =============================================================================


class StripeAdapter:
    """
    Adapter for Stripe API operations.

    All methods are class methods with no instance state, safe to call from
    request handlers and Celery workers alike.
    """

    # =========================================================================
    # Configuration
    # =========================================================================

    @staticmethod
    def _configure_stripe() -> None:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.max_network_retries = getattr(settings, "STRIPE_MAX_RETRIES", 3)
        timeout = getattr(settings, "STRIPE_API_TIMEOUT_SECONDS", 10)
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    # =========================================================================
    # Retrieval
    # =========================================================================

    @classmethod
    def retrieve_checkout_session(cls, session_id: str) -> CheckoutSessionResult:
        """
        Retrieve a Checkout Session by ID.

        Webhook payloads can be trimmed, so the session is always re-read
        before it is settled.

        Raises:
            StripeInvalidRequestError: Session not found
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "retrieve_checkout_session",
            "checkout_session_id": session_id,
        }

        start_time = time.time()
        logger.debug("Starting Stripe operation", extra=log_context)

        try:
            session = stripe.checkout.Session.retrieve(session_id)

            duration_ms = (time.time() - start_time) * 1000
            logger.debug(
                "Stripe operation completed",
                extra={**log_context, "duration_ms": duration_ms},
            )

            return CheckoutSessionResult(
                id=session.id,
                payment_intent_id=_as_id(session.get("payment_intent")),
                amount_total=session.get("amount_total"),
                currency=session.get("currency"),
                payment_status=session.get("payment_status"),
                metadata=dict(session.get("metadata") or {}),
                raw_response=session.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def retrieve_payment_intent(cls, payment_intent_id: str) -> PaymentIntentResult:
        """
        Retrieve a PaymentIntent by ID.

        Raises:
            StripeInvalidRequestError: PaymentIntent not found
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "retrieve_payment_intent",
            "payment_intent_id": payment_intent_id,
        }

        start_time = time.time()
        logger.debug("Starting Stripe operation", extra=log_context)

        try:
            intent = stripe.PaymentIntent.retrieve(payment_intent_id)

            duration_ms = (time.time() - start_time) * 1000
            logger.debug(
                "Stripe operation completed",
                extra={**log_context, "status": intent.status, "duration_ms": duration_ms},
            )

            return PaymentIntentResult(
                id=intent.id,
                status=intent.status,
                amount=intent.amount,
                currency=intent.currency,
                latest_charge_id=_as_id(intent.get("latest_charge")),
                metadata=dict(intent.get("metadata") or {}),
                raw_response=intent.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def list_refunds(cls, payment_intent_id: str) -> list[RefundResult]:
        """
        List every refund for a PaymentIntent, across all pages.

        Refund webhooks only describe one refund; reconciliation works from
        the complete list so that events can arrive in any order.
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "list_refunds",
            "payment_intent_id": payment_intent_id,
        }

        start_time = time.time()
        logger.debug("Starting Stripe operation", extra=log_context)

        try:
            refunds = stripe.Refund.list(payment_intent=payment_intent_id, limit=100)
            results = [
                RefundResult(
                    id=refund.id,
                    amount=refund.amount,
                    currency=refund.currency,
                    status=refund.status,
                    payment_intent_id=_as_id(refund.get("payment_intent")),
                    reason=refund.get("reason"),
                    metadata=dict(refund.get("metadata") or {}),
                )
                for refund in refunds.auto_paging_iter()
            ]

            duration_ms = (time.time() - start_time) * 1000
            logger.debug(
                "Stripe operation completed",
                extra={**log_context, "count": len(results), "duration_ms": duration_ms},
            )
            return results

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    @classmethod
    def retrieve_balance(cls, stripe_account: str) -> BalanceResult:
        """Retrieve the Stripe balance of a connected account."""
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "retrieve_balance",
            "stripe_account_id": stripe_account,
        }

        start_time = time.time()
        logger.debug("Starting Stripe operation", extra=log_context)

        try:
            balance = stripe.Balance.retrieve(stripe_account=stripe_account)

            duration_ms = (time.time() - start_time) * 1000
            logger.debug(
                "Stripe operation completed",
                extra={**log_context, "duration_ms": duration_ms},
            )

            return BalanceResult(
                available=[
                    BalanceAmount(amount=b.amount, currency=b.currency)
                    for b in balance.get("available") or []
                ],
                pending=[
                    BalanceAmount(amount=b.amount, currency=b.currency)
                    for b in balance.get("pending") or []
                ],
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Payouts
    # =========================================================================

    @classmethod
    def create_payout(
        cls,
        stripe_account: str,
        amount: int,
        currency: str,
        idempotency_key: str,
        metadata: dict[str, str] | None = None,
    ) -> PayoutResult:
        """
        Pay out from a connected account's Stripe balance to its bank.

        Args:
            stripe_account: Connected account ID (acct_xxx)
            amount: Amount in minor units
            currency: Currency code
            idempotency_key: Key for safe retries

        Raises:
            StripeInsufficientFundsError: Connected balance too low
            StripeInvalidAccountError: Account cannot receive payouts
        """
        cls._configure_stripe()
        logger = cls.get_logger()

        log_context = {
            "operation": "create_payout",
            "stripe_account_id": stripe_account,
            "amount": amount,
            "currency": currency,
            "idempotency_key": idempotency_key,
        }

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            payout = stripe.Payout.create(
                amount=amount,
                currency=currency,
                metadata=metadata or {},
                stripe_account=stripe_account,
                idempotency_key=idempotency_key,
            )

            duration_ms = (time.time() - start_time) * 1000
            logger.info(
                "Stripe operation completed",
                extra={
                    **log_context,
                    "payout_id": payout.id,
                    "status": payout.status,
                    "duration_ms": duration_ms,
                },
            )

            return PayoutResult(
                id=payout.id,
                amount=payout.amount,
                currency=payout.currency,
                status=payout.status,
                arrival_date=payout.get("arrival_date"),
                raw_response=payout.to_dict(),
            )

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            cls._handle_stripe_error(e, log_context, duration_ms)
            raise

    # =========================================================================
    # Webhook Verification
    # =========================================================================

    @classmethod
    def verify_webhook_signature(cls, payload: bytes, signature: str) -> dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Returns:
            Parsed event data dict

        Raises:
            StripeInvalidRequestError: Invalid signature
        """
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET,
            )
            return event.to_dict()
        except stripe.SignatureVerificationError as e:
            raise StripeInvalidRequestError(
                "Invalid webhook signature",
                stripe_code="signature_verification_failed",
                details={"error": str(e)},
            )

    # =========================================================================
    # Error Handling
    # =========================================================================

    @classmethod
    def _handle_stripe_error(
        cls,
        error: Exception,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> None:
        """
        Translate Stripe SDK exceptions to settlement exceptions.

        Raises:
            StripeInsufficientFundsError: Balance too low for a payout
            StripeInvalidAccountError: Invalid Connect account
            StripeInvalidRequestError: Invalid request or authentication
            StripeRateLimitError: Rate limited
            StripeTimeoutError: Request timed out
            StripeAPIUnavailableError: API unavailable or unknown error
        """
        logger = cls.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}

        if isinstance(error, stripe.InvalidRequestError):
            logger.error(
                "Invalid request to Stripe",
                extra={**log_context, "stripe_code": error.code},
            )

            if error.code in ("balance_insufficient", "insufficient_funds"):
                raise StripeInsufficientFundsError(str(error), stripe_code=error.code)

            if error.code == "account_invalid" or "account" in str(error).lower():
                raise StripeInvalidAccountError(str(error), stripe_code=error.code)

            raise StripeInvalidRequestError(str(error), stripe_code=error.code)

        elif isinstance(error, stripe.CardError):
            logger.warning(
                "Card error from Stripe",
                extra={**log_context, "decline_code": getattr(error, "decline_code", None)},
            )
            raise StripeInvalidRequestError(
                str(error.user_message or error),
                stripe_code=error.code,
                decline_code=getattr(error, "decline_code", None),
            )

        elif isinstance(error, stripe.RateLimitError):
            logger.warning("Rate limited by Stripe", extra=log_context)
            raise StripeRateLimitError(
                "Stripe rate limit exceeded. Please retry.",
                stripe_code="rate_limit",
            )

        elif isinstance(error, stripe.APIConnectionError):
            logger.error("Connection error to Stripe", extra=log_context, exc_info=True)
            if "timed out" in str(error).lower():
                raise StripeTimeoutError(
                    "Stripe request timed out. Please retry.",
                    stripe_code="timeout",
                )
            raise StripeAPIUnavailableError(
                "Could not connect to Stripe. Please retry.",
                stripe_code="api_connection_error",
            )

        elif isinstance(error, stripe.APIError):
            logger.error("Stripe API error", extra=log_context, exc_info=True)
            raise StripeAPIUnavailableError(
                "Stripe service error. Please retry.",
                stripe_code="api_error",
            )

        elif isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            raise StripeInvalidRequestError(
                "Stripe authentication failed",
                stripe_code="authentication_error",
            )

        else:
            logger.error(
                f"Unexpected error from Stripe: {type(error).__name__}",
                extra=log_context,
                exc_info=True,
            )
            raise StripeAPIUnavailableError(
                f"Unexpected Stripe error: {error}",
                stripe_code="unknown_error",
            )

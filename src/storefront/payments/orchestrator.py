"""Payment orchestrator: the checkout's view of the payment gateway.

Arguments are checked locally before the gateway is called. Any failure
coming back from the gateway is logged in full and re-raised as a
``GatewayError`` whose public message reveals nothing about the gateway.
Only an ``AUTHORIZED`` commit counts as a successful payment.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import structlog
from protean.exceptions import ValidationError

from storefront.errors import GatewayError
from storefront.ordering.order import AUTHORIZED, PaymentStatus
from storefront.payments.gateway.port import (
    PaymentGateway,
    RefundReceipt,
    TransactionCreated,
    TransactionState,
)
from storefront.settings import Settings
from storefront.utils.logging import mask_token

logger = structlog.get_logger(__name__)

RETURN_PATH = "/payment/return"

T = TypeVar("T")


@dataclass(frozen=True)
class Confirmation:
    status: str | None
    authorization_code: str | None
    amount: float | None
    payment_status: str

    @property
    def authorized(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value


def payment_status_for(gateway_status: str | None) -> str:
    """Map a gateway status to the internal payment status."""
    if gateway_status == AUTHORIZED:
        return PaymentStatus.PAID.value
    return PaymentStatus.FAILED.value


def _is_positive_number(value) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool) and value > 0


def _is_filled(value) -> bool:
    return isinstance(value, str) and bool(value.strip())


class PaymentOrchestrator:
    def __init__(self, gateway: PaymentGateway, settings: Settings) -> None:
        self.gateway = gateway
        self.settings = settings

    # -------------------------------------------------------------------
    # Identifiers
    # -------------------------------------------------------------------
    def session_id_for(self, user_id) -> str:
        """One session id per checkout attempt."""
        return f"session_{user_id}_{int(time.time() * 1000)}"

    def return_url(self) -> str:
        """Where the gateway sends the customer back. Needs FRONTEND_URL."""
        return self.settings.require_frontend_url() + RETURN_PATH

    # -------------------------------------------------------------------
    # Gateway calls
    # -------------------------------------------------------------------
    def _call(self, operation: str, fn: Callable[[], T], **context) -> T:
        try:
            return fn()
        except Exception as exc:
            logger.error(
                "Payment gateway call failed",
                operation=operation,
                error=str(exc),
                error_type=type(exc).__name__,
                **context,
            )
            raise GatewayError(operation, str(exc)) from exc

    def create_transaction(self, amount, order_number, session_id, return_url) -> TransactionCreated:
        errors = {}
        if not _is_positive_number(amount):
            errors["amount"] = ["Amount must be a positive number"]
        for name, value in (("order_number", order_number), ("session_id", session_id), ("return_url", return_url)):
            if not _is_filled(value):
                errors[name] = [f"{name} must be a non-empty string"]
        if errors:
            raise ValidationError(errors)

        created = self._call(
            "create",
            lambda: self.gateway.create(amount, order_number, session_id, return_url),
            order_number=order_number,
            amount=amount,
        )
        if not created.token or not created.url:
            logger.error("Gateway response is missing token or url", order_number=order_number)
            raise GatewayError("create", "response is missing token or url")

        logger.info(
            "Gateway transaction created",
            order_number=order_number,
            amount=amount,
            token=mask_token(created.token),
        )
        return created

    def confirm_transaction(self, token) -> Confirmation:
        if not _is_filled(token):
            raise ValidationError({"token": ["Token is required"]})

        result = self._call("commit", lambda: self.gateway.commit(token), token=mask_token(token))
        confirmation = Confirmation(
            status=result.status,
            authorization_code=result.authorization_code,
            amount=result.amount,
            payment_status=payment_status_for(result.status),
        )

        logger.info(
            "Gateway transaction committed",
            token=mask_token(token),
            status=result.status,
            payment_status=confirmation.payment_status,
        )
        return confirmation

    def transaction_status(self, token) -> TransactionState:
        if not _is_filled(token):
            raise ValidationError({"token": ["Token is required"]})
        return self._call("status", lambda: self.gateway.status(token), token=mask_token(token))

    def refund(self, token, amount) -> RefundReceipt:
        if not _is_filled(token):
            raise ValidationError({"token": ["Token is required"]})
        if not _is_positive_number(amount):
            raise ValidationError({"amount": ["Amount must be a positive number"]})

        receipt = self._call(
            "refund",
            lambda: self.gateway.refund(token, amount),
            token=mask_token(token),
            amount=amount,
        )
        logger.info(
            "Gateway refund processed",
            token=mask_token(token),
            amount=amount,
            refund_type=receipt.type,
        )
        return receipt

"""Payment gateway port (abstract interface).

A redirect-style gateway: ``create`` opens a transaction and returns a
token plus the URL the customer is sent to, ``commit`` settles it after
the customer comes back, ``status`` reads it and ``refund`` reverses it.
Adapters raise on transport or protocol failures. The orchestrator turns
those into ``GatewayError``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TransactionCreated:
    token: str | None
    url: str | None


@dataclass(frozen=True)
class TransactionCommit:
    status: str | None
    authorization_code: str | None = None
    amount: float | None = None
    buy_order: str | None = None
    response_code: int | None = None


@dataclass(frozen=True)
class TransactionState:
    status: str | None
    amount: float | None = None


@dataclass(frozen=True)
class RefundReceipt:
    type: str | None
    authorization_code: str | None = None
    nullified_amount: float | None = None
    balance: float | None = None


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def create(self, amount: float, buy_order: str, session_id: str, return_url: str) -> TransactionCreated:
        """Open a transaction and return its token and redirect URL."""
        ...

    @abstractmethod
    def commit(self, token: str) -> TransactionCommit:
        """Settle the transaction after the customer returns from the gateway."""
        ...

    @abstractmethod
    def status(self, token: str) -> TransactionState:
        """Read the current state of a transaction."""
        ...

    @abstractmethod
    def refund(self, token: str, amount: float) -> RefundReceipt:
        """Reverse all or part of an authorized transaction."""
        ...

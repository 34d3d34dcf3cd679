"""Configurable fake payment gateway for development and testing.

No external calls are made. Outcomes are set with ``configure`` and every
call is appended to ``calls`` for assertions.
"""

from uuid import uuid4

from storefront.payments.gateway.port import (
    PaymentGateway,
    RefundReceipt,
    TransactionCommit,
    TransactionCreated,
    TransactionState,
)


class FakeGatewayFailure(RuntimeError):
    """Simulated transport failure."""


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self, redirect_url: str = "https://gateway.test/webpay/init") -> None:
        self.redirect_url = redirect_url
        self.commit_status: str = "AUTHORIZED"
        self.should_fail: bool = False
        self.failure_reason: str = "Gateway unavailable"
        self.omit_token: bool = False
        self.calls: list[dict] = []
        self._amounts: dict[str, float] = {}
        self._states: dict[str, str] = {}

    def configure(
        self,
        commit_status: str = "AUTHORIZED",
        should_fail: bool = False,
        failure_reason: str = "Gateway unavailable",
        omit_token: bool = False,
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.commit_status = commit_status
        self.should_fail = should_fail
        self.failure_reason = failure_reason
        self.omit_token = omit_token

    def calls_to(self, method: str) -> list[dict]:
        return [c for c in self.calls if c["method"] == method]

    def _fail_if_configured(self) -> None:
        if self.should_fail:
            raise FakeGatewayFailure(self.failure_reason)

    def create(self, amount: float, buy_order: str, session_id: str, return_url: str) -> TransactionCreated:
        self.calls.append(
            {
                "method": "create",
                "amount": amount,
                "buy_order": buy_order,
                "session_id": session_id,
                "return_url": return_url,
            }
        )
        self._fail_if_configured()

        if self.omit_token:
            return TransactionCreated(token=None, url=None)

        token = f"fake_tok_{uuid4().hex}"
        self._amounts[token] = amount
        self._states[token] = "INITIALIZED"
        return TransactionCreated(token=token, url=self.redirect_url)

    def commit(self, token: str) -> TransactionCommit:
        self.calls.append({"method": "commit", "token": token})
        self._fail_if_configured()

        self._states[token] = self.commit_status
        authorized = self.commit_status == "AUTHORIZED"
        return TransactionCommit(
            status=self.commit_status,
            authorization_code=f"{uuid4().int % 1_000_000:06d}" if authorized else None,
            amount=self._amounts.get(token),
            response_code=0 if authorized else -1,
        )

    def status(self, token: str) -> TransactionState:
        self.calls.append({"method": "status", "token": token})
        self._fail_if_configured()
        return TransactionState(status=self._states.get(token, "INITIALIZED"), amount=self._amounts.get(token))

    def refund(self, token: str, amount: float) -> RefundReceipt:
        self.calls.append({"method": "refund", "token": token, "amount": amount})
        self._fail_if_configured()

        self._states[token] = "REVERSED"
        original = self._amounts.get(token, amount)
        return RefundReceipt(
            type="REVERSED" if amount >= original else "NULLIFIED",
            authorization_code=f"{uuid4().int % 1_000_000:06d}",
            nullified_amount=amount,
            balance=max(original - amount, 0),
        )

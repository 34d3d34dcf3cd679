"""Transbank Webpay Plus adapter over its REST API.

Endpoints (API v1.2), relative to the environment host:
    POST /transactions                    open a transaction
    PUT  /transactions/{token}            commit after the customer returns
    GET  /transactions/{token}            read its state
    POST /transactions/{token}/refunds    reverse or nullify

Requests are authenticated with the commerce code and API key headers.
Non-2xx answers raise ``WebpayRequestError`` carrying Transbank's
``error_message``.
"""

import httpx

from storefront.payments.gateway.port import (
    PaymentGateway,
    RefundReceipt,
    TransactionCommit,
    TransactionCreated,
    TransactionState,
)

WEBPAY_HOSTS = {
    "integration": "https://webpay3gint.transbank.cl",
    "production": "https://webpay3g.transbank.cl",
}

TRANSACTIONS_PATH = "/rswebpaytransaction/api/webpay/v1.2/transactions"


class WebpayRequestError(RuntimeError):
    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"Webpay answered {status_code}: {message}")


class WebpayGateway(PaymentGateway):
    def __init__(
        self,
        commerce_code: str,
        api_key: str,
        environment: str = "integration",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if environment not in WEBPAY_HOSTS:
            raise ValueError(f"Unknown Webpay environment: {environment}")

        self.environment = environment
        self._client = client or httpx.Client(timeout=timeout)
        self._base_url = WEBPAY_HOSTS[environment] + TRANSACTIONS_PATH
        self._headers = {
            "Tbk-Api-Key-Id": commerce_code,
            "Tbk-Api-Key-Secret": api_key,
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str = "", payload: dict | None = None) -> dict:
        response = self._client.request(method, self._base_url + path, headers=self._headers, json=payload)
        if response.is_error:
            try:
                message = response.json().get("error_message", response.text)
            except ValueError:
                message = response.text
            raise WebpayRequestError(response.status_code, message)
        return response.json() if response.content else {}

    def create(self, amount: float, buy_order: str, session_id: str, return_url: str) -> TransactionCreated:
        data = self._request(
            "POST",
            payload={
                "buy_order": buy_order,
                "session_id": session_id,
                "amount": amount,
                "return_url": return_url,
            },
        )
        return TransactionCreated(token=data.get("token"), url=data.get("url"))

    def commit(self, token: str) -> TransactionCommit:
        data = self._request("PUT", f"/{token}")
        return TransactionCommit(
            status=data.get("status"),
            authorization_code=data.get("authorization_code"),
            amount=data.get("amount"),
            buy_order=data.get("buy_order"),
            response_code=data.get("response_code"),
        )

    def status(self, token: str) -> TransactionState:
        data = self._request("GET", f"/{token}")
        return TransactionState(status=data.get("status"), amount=data.get("amount"))

    def refund(self, token: str, amount: float) -> RefundReceipt:
        data = self._request("POST", f"/{token}/refunds", payload={"amount": amount})
        return RefundReceipt(
            type=data.get("type"),
            authorization_code=data.get("authorization_code"),
            nullified_amount=data.get("nullified_amount"),
            balance=data.get("balance"),
        )

    def close(self) -> None:
        self._client.close()

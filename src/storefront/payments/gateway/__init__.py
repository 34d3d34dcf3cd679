"""Payment gateway factory.

``build_gateway`` picks the adapter named by the settings:
- FakeGateway for development and testing
- WebpayGateway for Transbank Webpay Plus

The result is handed to the payment orchestrator when the application is
assembled.
"""

from storefront.errors import ConfigurationError
from storefront.payments.gateway.fake_adapter import FakeGateway
from storefront.payments.gateway.port import PaymentGateway
from storefront.payments.gateway.webpay_adapter import WebpayGateway
from storefront.settings import Settings


def build_gateway(settings: Settings) -> PaymentGateway:
    if settings.gateway_adapter == "fake":
        return FakeGateway()
    if settings.gateway_adapter == "webpay":
        if not settings.webpay_commerce_code or not settings.webpay_api_key:
            raise ConfigurationError("WEBPAY_COMMERCE_CODE/WEBPAY_API_KEY")
        return WebpayGateway(
            commerce_code=settings.webpay_commerce_code,
            api_key=settings.webpay_api_key,
            environment=settings.webpay_environment,
            timeout=settings.webpay_timeout,
        )
    raise ConfigurationError(f"GATEWAY_ADAPTER={settings.gateway_adapter}")

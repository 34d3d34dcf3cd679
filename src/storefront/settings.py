"""Runtime settings read from environment variables.

``PROTEAN_ENV`` still selects the Protean configuration overlay. Everything
the checkout coordinator needs from the outside world lives here.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from storefront.errors import ConfigurationError

# Webpay Plus integration credentials published by Transbank for sandbox use.
WEBPAY_INTEGRATION_COMMERCE_CODE = "597055555532"
WEBPAY_INTEGRATION_API_KEY = "579B532A7440BB0C9079DED94D31EA1615BACEB56610332264630D42D0A36B1C"


@dataclass(frozen=True)
class Settings:
    frontend_url: str | None = None
    operator_email: str | None = None
    brand_name: str = "Storefront"

    gateway_adapter: str = "fake"
    webpay_environment: str = "integration"
    webpay_commerce_code: str = WEBPAY_INTEGRATION_COMMERCE_CODE
    webpay_api_key: str = WEBPAY_INTEGRATION_API_KEY
    webpay_timeout: float = 10.0

    email_adapter: str = "fake"
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from_email: str = "no-reply@storefront.local"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ

        return cls(
            frontend_url=env.get("FRONTEND_URL") or None,
            operator_email=env.get("OPERATOR_EMAIL") or None,
            brand_name=env.get("BRAND_NAME", cls.brand_name),
            gateway_adapter=env.get("GATEWAY_ADAPTER", cls.gateway_adapter).lower(),
            webpay_environment=env.get("WEBPAY_ENVIRONMENT", cls.webpay_environment).lower(),
            webpay_commerce_code=env.get("WEBPAY_COMMERCE_CODE", cls.webpay_commerce_code),
            webpay_api_key=env.get("WEBPAY_API_KEY", cls.webpay_api_key),
            webpay_timeout=float(env.get("WEBPAY_TIMEOUT", cls.webpay_timeout)),
            email_adapter=env.get("EMAIL_ADAPTER", cls.email_adapter).lower(),
            smtp_host=env.get("SMTP_HOST", cls.smtp_host),
            smtp_port=int(env.get("SMTP_PORT", cls.smtp_port)),
            smtp_user=env.get("SMTP_USER") or None,
            smtp_password=env.get("SMTP_PASSWORD") or None,
            smtp_from_email=env.get("SMTP_FROM_EMAIL", cls.smtp_from_email),
        )

    def require_frontend_url(self) -> str:
        """Return the storefront base URL, without a trailing slash."""
        if not self.frontend_url or not self.frontend_url.strip():
            raise ConfigurationError("FRONTEND_URL")
        return self.frontend_url.strip().rstrip("/")

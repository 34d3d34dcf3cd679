"""Error taxonomy for the checkout coordinator.

Validation problems and missing records reuse Protean's own exceptions
(``ValidationError`` and ``ObjectNotFoundError``). The classes here cover
the outcomes Protean has no name for.
"""

from protean.exceptions import ValidationError


class StorefrontError(Exception):
    """Base exception for storefront failures outside of validation."""


class InsufficientStockError(ValidationError):
    """Raised when a product cannot cover the requested quantity."""

    def __init__(self, product_id: str, available: int, requested: int):
        self.product_id = str(product_id)
        self.available = available
        self.requested = requested
        super().__init__(
            {
                "stock": [
                    f"Insufficient stock for product {self.product_id}: "
                    f"available {available}, requested {requested}"
                ]
            }
        )


class GatewayError(StorefrontError):
    """Raised when the payment gateway fails or answers with an unusable response.

    ``public_message`` is safe to show to a customer. The gateway detail in
    ``detail`` goes to the logs only.
    """

    public_message = "The payment provider could not process the request"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Gateway {operation} failed: {detail}")


class ConfigurationError(StorefrontError):
    """Raised when a required setting is missing."""

    def __init__(self, setting: str):
        self.setting = setting
        super().__init__(f"Missing required configuration: {setting}")


class PermissionDeniedError(StorefrontError):
    """Raised when the caller is neither the owner nor an admin."""

    def __init__(self, message: str = "You are not allowed to perform this action"):
        self.message = message
        super().__init__(message)


class NotificationError(StorefrontError):
    """Raised when an email channel reports a failed delivery."""

    def __init__(self, notification_type: str, recipient: str, reason: str | None):
        self.notification_type = notification_type
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"{notification_type} to {recipient} failed: {reason}")

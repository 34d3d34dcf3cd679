"""Pydantic request/response schemas for the storefront API.

These are external contracts, kept separate from the domain aggregates.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Shared sub-models
# ---------------------------------------------------------------------------
class AddressSchema(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    country: str | None = None


class OrderItemSchema(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    price: float
    subtotal: float


class PaginationSchema(BaseModel):
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_previous_page: bool


# ---------------------------------------------------------------------------
# Cart
# ---------------------------------------------------------------------------
class AddToCartRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class UpdateCartItemRequest(BaseModel):
    quantity: int = Field(ge=1)


class CartLineSchema(BaseModel):
    product_id: str
    product_name: str
    quantity: int
    price: float
    subtotal: float


class CartResponse(BaseModel):
    cart_id: str | None = None
    items: list[CartLineSchema]
    total: float


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class CreateOrderRequest(BaseModel):
    shipping_address: AddressSchema
    notes: str | None = None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "shipping_address": {
                        "street": "Av. Providencia 1234",
                        "city": "Santiago",
                        "state": "RM",
                        "zip_code": "7500000",
                        "country": "Chile",
                    },
                    "notes": "Leave at the front desk",
                }
            ]
        }
    }


class CancelOrderRequest(BaseModel):
    reason: str | None = None


class UpdateStatusRequest(BaseModel):
    status: str
    notes: str | None = None


class OrderResponse(BaseModel):
    id: str
    order_number: str
    user_id: str
    status: str
    payment_status: str
    payment_method: str
    total_amount: float
    shipping_address: AddressSchema | None = None
    items: list[OrderItemSchema]
    notes: str | None = None
    cancellation_reason: str | None = None
    authorization_code: str | None = None
    gateway_status: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderListResponse(BaseModel):
    orders: list[OrderResponse]
    pagination: PaginationSchema


class CancellationResponse(BaseModel):
    order: OrderResponse
    refunded: bool
    stock_released: bool


class OrderStatsResponse(BaseModel):
    period: str
    start: datetime | None = None
    end: datetime
    total_orders: int
    total_revenue: float
    average_order_value: float
    conversion_rate: float
    orders_by_status: dict[str, int]
    orders_by_payment_status: dict[str, int]


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------
class InitiatePaymentRequest(CreateOrderRequest):
    pass


class InitiatePaymentResponse(BaseModel):
    order_id: str
    order_number: str
    token: str
    url: str
    amount: float


class ConfirmPaymentRequest(BaseModel):
    token_ws: str


class ConfirmPaymentResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    gateway_status: str | None = None
    authorization_code: str | None = None
    already_processed: bool = False


class PaymentStatusResponse(BaseModel):
    order_id: str
    order_number: str
    status: str
    payment_status: str
    total_amount: float
    gateway_status: str | None = None
    gateway_amount: float | None = None


class RefundRequest(BaseModel):
    amount: float | None = Field(default=None, gt=0)


class RefundResponse(BaseModel):
    order_id: str
    amount: float
    payment_status: str
    refund_type: str | None = None
    balance: float | None = None

"""FastAPI routes for the storefront: carts, orders and payments.

Handlers that reach the payment gateway or send email are plain functions,
so FastAPI runs them in its threadpool instead of on the event loop.
"""

from fastapi import APIRouter, Depends, Query
from protean.utils.globals import current_domain

from storefront.api.dependencies import get_lifecycle, get_principal
from storefront.api.schemas import (
    AddressSchema,
    AddToCartRequest,
    CancellationResponse,
    CancelOrderRequest,
    CartLineSchema,
    CartResponse,
    ConfirmPaymentRequest,
    ConfirmPaymentResponse,
    CreateOrderRequest,
    InitiatePaymentRequest,
    InitiatePaymentResponse,
    OrderItemSchema,
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    PaginationSchema,
    PaymentStatusResponse,
    RefundRequest,
    RefundResponse,
    UpdateCartItemRequest,
    UpdateStatusRequest,
)
from storefront.cart.items import AddToCart, ClearCart, RemoveFromCart, UpdateCartItem
from storefront.ordering.lifecycle import OrderLifecycleManager
from storefront.ordering.order import Order
from storefront.ordering.queries import Page
from storefront.principal import Principal


def _order_response(order: Order) -> OrderResponse:
    address = order.shipping_address
    return OrderResponse(
        id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        status=order.status,
        payment_status=order.payment_status,
        payment_method=order.payment_method,
        total_amount=order.total_amount,
        shipping_address=AddressSchema(**address.to_dict()) if address else None,
        items=[
            OrderItemSchema(
                product_id=str(item.product_id),
                product_name=item.product_name or "",
                quantity=item.quantity,
                price=item.price,
                subtotal=item.subtotal,
            )
            for item in order.items
        ],
        notes=order.notes,
        cancellation_reason=order.cancellation_reason,
        authorization_code=order.authorization_code,
        gateway_status=order.gateway_status,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


def _order_list(page: Page) -> OrderListResponse:
    return OrderListResponse(
        orders=[_order_response(o) for o in page.items],
        pagination=PaginationSchema(
            current_page=page.current_page,
            total_pages=page.total_pages,
            total_items=page.total_items,
            items_per_page=page.items_per_page,
            has_next_page=page.has_next_page,
            has_previous_page=page.has_previous_page,
        ),
    )


# ---------------------------------------------------------------------------
# Cart Router
# ---------------------------------------------------------------------------
cart_router = APIRouter(prefix="/carts", tags=["carts"])


def _cart_response(lifecycle: OrderLifecycleManager, user_id: str) -> CartResponse:
    snapshot = lifecycle.carts.read(user_id)
    return CartResponse(
        cart_id=snapshot.cart_id,
        items=[
            CartLineSchema(
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity,
                price=line.price,
                subtotal=line.subtotal,
            )
            for line in snapshot.lines
        ],
        total=snapshot.total,
    )


@cart_router.get("/me", response_model=CartResponse)
async def get_cart(
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> CartResponse:
    return _cart_response(lifecycle, principal.user_id)


@cart_router.post("/me/items", response_model=CartResponse)
async def add_cart_item(
    body: AddToCartRequest,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> CartResponse:
    command = AddToCart(
        user_id=principal.user_id,
        product_id=body.product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(lifecycle, principal.user_id)


@cart_router.put("/me/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    body: UpdateCartItemRequest,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> CartResponse:
    command = UpdateCartItem(
        user_id=principal.user_id,
        product_id=product_id,
        quantity=body.quantity,
    )
    current_domain.process(command, asynchronous=False)
    return _cart_response(lifecycle, principal.user_id)


@cart_router.delete("/me/items/{product_id}", response_model=CartResponse)
async def remove_cart_item(
    product_id: str,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> CartResponse:
    current_domain.process(RemoveFromCart(user_id=principal.user_id, product_id=product_id), asynchronous=False)
    return _cart_response(lifecycle, principal.user_id)


@cart_router.delete("/me", response_model=CartResponse)
async def clear_cart(
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> CartResponse:
    current_domain.process(ClearCart(user_id=principal.user_id), asynchronous=False)
    return _cart_response(lifecycle, principal.user_id)


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(
    body: CreateOrderRequest,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> OrderResponse:
    """Create an order from the caller's cart without opening a payment."""
    order = lifecycle.place_order(principal, body.shipping_address.model_dump(), body.notes)
    return _order_response(order)


@order_router.get("", response_model=OrderListResponse)
async def list_my_orders(
    status: str | None = None,
    payment_status: str | None = None,
    page: int | None = None,
    limit: int | None = None,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> OrderListResponse:
    return _order_list(lifecycle.list_orders(principal, status, payment_status, page, limit))


@order_router.get("/admin", response_model=OrderListResponse)
async def list_all_orders(
    status: str | None = None,
    payment_status: str | None = None,
    user_id: str | None = None,
    search: str | None = None,
    page: int | None = None,
    limit: int | None = None,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> OrderListResponse:
    result = lifecycle.list_all_orders(
        principal,
        status=status,
        payment_status=payment_status,
        user_id=user_id,
        search=search,
        page=page,
        limit=limit,
    )
    return _order_list(result)


@order_router.get("/stats", response_model=OrderStatsResponse)
async def order_statistics(
    period: str = Query(default="30d"),
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> OrderStatsResponse:
    stats = lifecycle.order_stats(principal, period)
    return OrderStatsResponse(
        period=stats.period,
        start=stats.start,
        end=stats.end,
        total_orders=stats.total_orders,
        total_revenue=stats.total_revenue,
        average_order_value=stats.average_order_value,
        conversion_rate=stats.conversion_rate,
        orders_by_status=stats.orders_by_status,
        orders_by_payment_status=stats.orders_by_payment_status,
    )


@order_router.get("/{order_id}", response_model=OrderResponse)
def get_order(
    order_id: str,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> OrderResponse:
    view = lifecycle.get_order(principal, order_id)
    response = _order_response(view.order)
    if view.gateway_state is not None:
        response.gateway_status = view.gateway_state.status
    return response


@order_router.post("/{order_id}/cancel", response_model=CancellationResponse)
def cancel_order(
    order_id: str,
    body: CancelOrderRequest | None = None,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> CancellationResponse:
    result = lifecycle.cancel_order(principal, order_id, body.reason if body else None)
    return CancellationResponse(
        order=_order_response(result.order),
        refunded=result.refunded,
        stock_released=result.stock_released,
    )


@order_router.put("/{order_id}/status", response_model=OrderResponse)
def update_order_status(
    order_id: str,
    body: UpdateStatusRequest,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> OrderResponse:
    order = lifecycle.update_status(principal, order_id, body.status, body.notes)
    return _order_response(order)


# ---------------------------------------------------------------------------
# Payment Router
# ---------------------------------------------------------------------------
payment_router = APIRouter(prefix="/payments", tags=["payments"])


@payment_router.post("/initiate", status_code=201, response_model=InitiatePaymentResponse)
def initiate_payment(
    body: InitiatePaymentRequest,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> InitiatePaymentResponse:
    """Create an order from the cart and open a Webpay transaction for it."""
    session = lifecycle.checkout(principal, body.shipping_address.model_dump(), body.notes)
    return InitiatePaymentResponse(
        order_id=str(session.order.id),
        order_number=session.order.order_number,
        token=session.token,
        url=session.redirect_url,
        amount=session.order.total_amount,
    )


@payment_router.post("/confirm", response_model=ConfirmPaymentResponse)
def confirm_payment(
    body: ConfirmPaymentRequest,
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> ConfirmPaymentResponse:
    """Gateway return: settle the transaction identified by ``token_ws``."""
    outcome = lifecycle.confirm_payment(body.token_ws)
    order = outcome.order
    return ConfirmPaymentResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        status=order.status,
        payment_status=order.payment_status,
        gateway_status=order.gateway_status,
        authorization_code=order.authorization_code,
        already_processed=outcome.already_processed,
    )


@payment_router.get("/{order_id}/status", response_model=PaymentStatusResponse)
def payment_status(
    order_id: str,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> PaymentStatusResponse:
    view = lifecycle.payment_status(principal, order_id)
    return PaymentStatusResponse(
        order_id=view.order_id,
        order_number=view.order_number,
        status=view.status,
        payment_status=view.payment_status,
        total_amount=view.total_amount,
        gateway_status=view.gateway_status,
        gateway_amount=view.gateway_amount,
    )


@payment_router.post("/{order_id}/refund", response_model=RefundResponse)
def refund_payment(
    order_id: str,
    body: RefundRequest | None = None,
    principal: Principal = Depends(get_principal),
    lifecycle: OrderLifecycleManager = Depends(get_lifecycle),
) -> RefundResponse:
    outcome = lifecycle.refund_payment(principal, order_id, body.amount if body else None)
    return RefundResponse(
        order_id=str(outcome.order.id),
        amount=outcome.amount,
        payment_status=outcome.order.payment_status,
        refund_type=outcome.receipt.type,
        balance=outcome.receipt.balance,
    )

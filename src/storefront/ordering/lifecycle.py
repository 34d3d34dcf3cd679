"""Order lifecycle manager: the checkout coordinator.

Checkout runs cart snapshot -> stock check -> order build -> stock
reservation -> (gateway transaction) -> cart clear. There is no transaction
around these steps:

- A reservation failure leaves the order in place and re-raises.
- A gateway failure after reservation puts the stock back and cancels the
  order with a failed payment. The cart is left untouched so the customer
  can try again.
- Clearing the cart and sending emails are logged when they fail and never
  undo the step they follow.

The payment callback is guarded by the order's payment status: once it is
no longer ``pending`` a repeated callback returns the recorded outcome
without calling the gateway again.
"""

from collections.abc import Callable
from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.cart.items import ClearCart
from storefront.cart.snapshot import CartSnapshotReader
from storefront.customer.customer import Customer
from storefront.errors import GatewayError, PermissionDeniedError
from storefront.inventory.ledger import StockLedger
from storefront.notifications.channel import build_email_channel
from storefront.notifications.notifier import Notifier
from storefront.ordering.builder import OrderAggregateBuilder, validate_shipping_address
from storefront.ordering.order import Order, OrderStatus, PaymentStatus
from storefront.ordering.queries import OrderStats, Page, matches_search, order_stats, paginate
from storefront.payments.gateway import build_gateway
from storefront.payments.gateway.port import PaymentGateway, RefundReceipt, TransactionState
from storefront.payments.orchestrator import Confirmation, PaymentOrchestrator
from storefront.principal import Principal
from storefront.settings import Settings
from storefront.utils.logging import mask_token

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CheckoutSession:
    order: Order
    token: str
    redirect_url: str


@dataclass(frozen=True)
class PaymentOutcome:
    order: Order
    confirmation: Confirmation | None = None
    already_processed: bool = False

    @property
    def payment_status(self) -> str:
        return self.order.payment_status


@dataclass(frozen=True)
class CancellationResult:
    order: Order
    refunded: bool
    stock_released: bool


@dataclass(frozen=True)
class RefundOutcome:
    order: Order
    amount: float
    receipt: RefundReceipt
    stock_released: bool = False


@dataclass(frozen=True)
class OrderView:
    order: Order
    gateway_state: TransactionState | None = None


@dataclass(frozen=True)
class PaymentStatusView:
    order_id: str
    order_number: str
    status: str
    payment_status: str
    total_amount: float
    gateway_status: str | None = None
    gateway_amount: float | None = None


class OrderLifecycleManager:
    def __init__(
        self,
        ledger: StockLedger,
        builder: OrderAggregateBuilder,
        carts: CartSnapshotReader,
        payments: PaymentOrchestrator,
        notifier: Notifier,
    ) -> None:
        self.ledger = ledger
        self.builder = builder
        self.carts = carts
        self.payments = payments
        self.notifier = notifier

    @classmethod
    def from_settings(cls, settings: Settings, gateway: PaymentGateway | None = None, email=None):
        """Wire the manager with the adapters the settings name."""
        contact_url = f"{settings.frontend_url.rstrip('/')}/contact" if settings.frontend_url else None
        return cls(
            ledger=StockLedger(),
            builder=OrderAggregateBuilder(),
            carts=CartSnapshotReader(),
            payments=PaymentOrchestrator(gateway or build_gateway(settings), settings),
            notifier=Notifier(
                email=email or build_email_channel(settings),
                operator_email=settings.operator_email or settings.smtp_from_email,
                brand_name=settings.brand_name,
                contact_url=contact_url,
            ),
        )

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------
    @staticmethod
    def _orders():
        return current_domain.repository_for(Order)

    def _load(self, order_id) -> Order:
        return self._orders().get(str(order_id))

    @staticmethod
    def _require_admin(principal: Principal) -> None:
        if not principal.is_admin:
            raise PermissionDeniedError("Administrator role required")

    @staticmethod
    def _require_owner_or_admin(principal: Principal, order: Order) -> None:
        if not (principal.is_admin or order.is_owned_by(principal.user_id)):
            raise PermissionDeniedError("You do not have access to this order")

    def _notify(self, send: Callable[[Order], object], order: Order) -> None:
        try:
            send(order)
        except Exception as exc:
            logger.error(
                "Notification failed",
                notification=send.__name__,
                order_id=str(order.id),
                order_number=order.order_number,
                error=str(exc),
            )

    def _release(self, order: Order, reason: str) -> bool:
        try:
            return self.ledger.release(order.id, reason=reason) is not None
        except Exception as exc:
            logger.error(
                "Stock release failed",
                order_id=str(order.id),
                order_number=order.order_number,
                error=str(exc),
            )
            return False

    def _clear_cart(self, user_id) -> None:
        try:
            current_domain.process(ClearCart(user_id=str(user_id)), asynchronous=False)
        except Exception as exc:
            logger.error("Clearing cart after checkout failed", user_id=str(user_id), error=str(exc))

    def _create_reserved_order(self, principal: Principal, shipping_address, notes) -> Order:
        snapshot = self.carts.read(principal.user_id)
        address = validate_shipping_address(shipping_address)
        if snapshot.is_empty:
            raise ValidationError({"cart": ["Cart is empty"]})

        self.ledger.validate_availability(snapshot.lines).raise_if_failed()
        order = self.builder.build(principal.user_id, address, snapshot, notes)

        try:
            self.ledger.reserve(order.id)
        except Exception as exc:
            # The order is kept; what was reserved is on its StockReservation.
            logger.error(
                "Stock reservation failed after order creation",
                order_id=str(order.id),
                order_number=order.order_number,
                error=str(exc),
            )
            raise
        return order

    # -------------------------------------------------------------------
    # Checkout
    # -------------------------------------------------------------------
    def place_order(self, principal: Principal, shipping_address, notes=None) -> Order:
        """Create an order from the caller's cart without opening a payment."""
        order = self._create_reserved_order(principal, shipping_address, notes)
        self._clear_cart(principal.user_id)
        return order

    def checkout(self, principal: Principal, shipping_address, notes=None) -> CheckoutSession:
        """Create an order and open a gateway transaction for it."""
        return_url = self.payments.return_url()
        order = self._create_reserved_order(principal, shipping_address, notes)

        try:
            created = self.payments.create_transaction(
                amount=order.total_amount,
                order_number=order.order_number,
                session_id=self.payments.session_id_for(principal.user_id),
                return_url=return_url,
            )
        except (GatewayError, ValidationError):
            self._abandon_checkout(order)
            raise

        order.attach_gateway_token(created.token)
        self._orders().add(order)
        self._clear_cart(principal.user_id)

        logger.info(
            "Checkout started",
            order_id=str(order.id),
            order_number=order.order_number,
            token=mask_token(created.token),
        )
        return CheckoutSession(order=order, token=created.token, redirect_url=created.url)

    def _abandon_checkout(self, order: Order) -> None:
        self._release(order, reason="payment could not be started")
        try:
            order.record_payment_rejected(reason="Payment could not be started")
            self._orders().add(order)
        except Exception as exc:
            logger.error("Could not cancel abandoned checkout", order_id=str(order.id), error=str(exc))

    # -------------------------------------------------------------------
    # Payment callback
    # -------------------------------------------------------------------
    def confirm_payment(self, token) -> PaymentOutcome:
        if not token or not str(token).strip():
            raise ValidationError({"token": ["Token is required"]})

        order = self._orders().find_by_token(token)
        if order is None:
            raise ObjectNotFoundError({"token": ["No order matches this payment token"]})

        if not order.awaits_payment:
            logger.info(
                "Payment callback already processed",
                order_id=str(order.id),
                payment_status=order.payment_status,
            )
            return PaymentOutcome(order=order, already_processed=True)

        confirmation = self.payments.confirm_transaction(token)

        if confirmation.authorized:
            was_cancelled = order.status == OrderStatus.CANCELLED.value
            order.record_payment_authorized(confirmation.authorization_code, confirmation.status)
            self._orders().add(order)

            if was_cancelled:
                self._refund_late_payment(order)
            else:
                self._notify(self.notifier.payment_confirmation, order)
                self._notify(self.notifier.operator_payment_notice, order)
        else:
            order.record_payment_rejected(confirmation.status)
            self._orders().add(order)
            self._release(order, reason="payment rejected")
            self._notify(self.notifier.payment_failed, order)

        logger.info(
            "Payment callback processed",
            order_id=str(order.id),
            gateway_status=confirmation.status,
            payment_status=order.payment_status,
        )
        return PaymentOutcome(order=order, confirmation=confirmation)

    def _refund_late_payment(self, order: Order) -> None:
        """Give the money back for an order cancelled before its payment settled."""
        try:
            self.payments.refund(order.gateway_token, order.total_amount)
        except GatewayError:
            logger.error("Refund of payment for cancelled order failed", order_id=str(order.id))
            return
        order.record_refund(order.total_amount)
        self._orders().add(order)

    # -------------------------------------------------------------------
    # Cancellation and refunds
    # -------------------------------------------------------------------
    def cancel_order(self, principal: Principal, order_id, reason=None) -> CancellationResult:
        order = self._load(order_id)
        self._require_owner_or_admin(principal, order)
        order.ensure_cancellable()

        needs_refund = order.is_paid and bool(order.gateway_token)
        if needs_refund:
            # A failed refund aborts the cancellation with nothing changed.
            self.payments.refund(order.gateway_token, order.total_amount)

        stock_released = False
        if order.holds_stock:
            stock_released = self._release(order, reason="order cancelled")

        order.cancel(reason)
        if needs_refund:
            order.record_refund(order.total_amount)
        self._orders().add(order)

        self._notify(self.notifier.payment_failed, order)

        logger.info(
            "Order cancelled",
            order_id=str(order.id),
            cancelled_by=principal.user_id,
            refunded=needs_refund,
            stock_released=stock_released,
        )
        return CancellationResult(order=order, refunded=needs_refund, stock_released=stock_released)

    def refund_payment(self, principal: Principal, order_id, amount=None) -> RefundOutcome:
        self._require_admin(principal)
        order = self._load(order_id)
        order.ensure_refundable()

        amount = order.total_amount if amount is None else amount
        if amount <= 0 or amount > order.total_amount:
            raise ValidationError({"amount": ["Refund amount must be positive and no more than the order total"]})

        receipt = self.payments.refund(order.gateway_token, amount)

        stock_released = False
        if order.holds_stock:
            stock_released = self._release(order, reason="payment refunded")

        order.record_refund(amount)
        self._orders().add(order)

        logger.info(
            "Order refunded",
            order_id=str(order.id),
            amount=amount,
            refunded_by=principal.user_id,
            stock_released=stock_released,
        )
        return RefundOutcome(order=order, amount=amount, receipt=receipt, stock_released=stock_released)

    # -------------------------------------------------------------------
    # Fulfilment
    # -------------------------------------------------------------------
    def update_status(self, principal: Principal, order_id, status, notes=None) -> Order:
        self._require_admin(principal)
        order = self._load(order_id)
        order.advance_to(status, notes)
        self._orders().add(order)

        self._notify(self.notifier.status_update, order)
        return order

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def _gateway_state(self, order: Order) -> TransactionState | None:
        if not order.gateway_token:
            return None
        try:
            return self.payments.transaction_status(order.gateway_token)
        except GatewayError:
            logger.warning("Gateway status unavailable", order_id=str(order.id))
            return None

    def get_order(self, principal: Principal, order_id) -> OrderView:
        order = self._load(order_id)
        self._require_owner_or_admin(principal, order)
        return OrderView(order=order, gateway_state=self._gateway_state(order))

    def payment_status(self, principal: Principal, order_id) -> PaymentStatusView:
        order = self._load(order_id)
        self._require_owner_or_admin(principal, order)
        state = self._gateway_state(order)
        return PaymentStatusView(
            order_id=str(order.id),
            order_number=order.order_number,
            status=order.status,
            payment_status=order.payment_status,
            total_amount=order.total_amount,
            gateway_status=state.status if state else None,
            gateway_amount=state.amount if state else None,
        )

    @staticmethod
    def _check_filters(status, payment_status) -> None:
        errors = {}
        if status and status not in {s.value for s in OrderStatus}:
            errors["status"] = [f"Unknown order status: {status}"]
        if payment_status and payment_status not in {s.value for s in PaymentStatus}:
            errors["payment_status"] = [f"Unknown payment status: {payment_status}"]
        if errors:
            raise ValidationError(errors)

    @staticmethod
    def _filtered(orders, status, payment_status) -> list[Order]:
        return [
            o
            for o in orders
            if (not status or o.status == status) and (not payment_status or o.payment_status == payment_status)
        ]

    def list_orders(self, principal: Principal, status=None, payment_status=None, page=None, limit=None) -> Page:
        self._check_filters(status, payment_status)
        orders = self._filtered(self._orders().for_user(principal.user_id), status, payment_status)
        return paginate(orders, page, limit)

    def list_all_orders(
        self,
        principal: Principal,
        status=None,
        payment_status=None,
        user_id=None,
        search=None,
        page=None,
        limit=None,
    ) -> Page:
        self._require_admin(principal)
        self._check_filters(status, payment_status)

        orders = self._filtered(self._orders().all_orders(), status, payment_status)
        if user_id:
            orders = [o for o in orders if o.is_owned_by(user_id)]
        if search and search.strip():
            customers = current_domain.repository_for(Customer)
            matched = []
            for order in orders:
                try:
                    customer = customers.get(str(order.user_id))
                except ObjectNotFoundError:
                    customer = None
                if matches_search(
                    order,
                    search,
                    customer_email=customer.email if customer else None,
                    customer_name=customer.name if customer else None,
                ):
                    matched.append(order)
            orders = matched

        return paginate(orders, page, limit)

    def order_stats(self, principal: Principal, period=None) -> OrderStats:
        self._require_admin(principal)
        return order_stats(self._orders().all_orders(), period)

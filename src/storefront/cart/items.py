"""Cart item management: commands and handler.

Products must exist and be active. Stock is checked against the quantity
the cart would hold afterwards, and the line's price is the product's
effective price at that moment.
"""

import structlog
from protean import handle
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Identifier, Integer
from protean.utils.globals import current_domain

from storefront.cart.cart import Cart
from storefront.domain import storefront
from storefront.errors import InsufficientStockError
from storefront.inventory.product import Product

logger = structlog.get_logger(__name__)


@storefront.command(part_of="Cart")
class AddToCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1, default=1)


@storefront.command(part_of="Cart")
class UpdateCartItem:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)


@storefront.command(part_of="Cart")
class RemoveFromCart:
    user_id = Identifier(required=True)
    product_id = Identifier(required=True)


@storefront.command(part_of="Cart")
class ClearCart:
    user_id = Identifier(required=True)


def _sellable_product(product_id, quantity) -> Product:
    product = current_domain.repository_for(Product).get(str(product_id))
    if not product.is_active:
        raise ValidationError({"product_id": [f"Product {product_id} is not available"]})
    if not product.has_stock_for(quantity):
        raise InsufficientStockError(str(product_id), product.stock or 0, quantity)
    return product


def _existing_cart(user_id) -> Cart:
    cart = current_domain.repository_for(Cart).for_user(user_id)
    if cart is None:
        raise ObjectNotFoundError({"cart": [f"No cart found for user {user_id}"]})
    return cart


@storefront.command_handler(part_of=Cart)
class ManageCartItemsHandler:
    @handle(AddToCart)
    def add_to_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id) or Cart.create(command.user_id)

        wanted = cart.quantity_of(command.product_id) + command.quantity
        product = _sellable_product(command.product_id, wanted)

        cart.add_item(
            product_id=command.product_id,
            quantity=command.quantity,
            price=product.effective_price(),
            product_name=product.name,
        )
        repo.add(cart)

        logger.info(
            "Product added to cart",
            user_id=str(command.user_id),
            product_id=str(command.product_id),
            quantity=command.quantity,
        )
        return str(cart.id)

    @handle(UpdateCartItem)
    def update_cart_item(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(command.user_id)
        product = _sellable_product(command.product_id, command.quantity)

        cart.update_item_quantity(
            product_id=command.product_id,
            quantity=command.quantity,
            price=product.effective_price(),
        )
        repo.add(cart)
        return str(cart.id)

    @handle(RemoveFromCart)
    def remove_from_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = _existing_cart(command.user_id)
        cart.remove_item(command.product_id)
        repo.add(cart)
        return str(cart.id)

    @handle(ClearCart)
    def clear_cart(self, command):
        repo = current_domain.repository_for(Cart)
        cart = repo.for_user(command.user_id)
        if cart is None:
            return None

        cart.clear()
        repo.add(cart)
        logger.info("Cart cleared", user_id=str(command.user_id), cart_id=str(cart.id))
        return str(cart.id)

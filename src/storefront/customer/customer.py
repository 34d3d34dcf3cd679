"""Customer aggregate: the storefront's copy of the identity record.

Only the fields needed to address notifications are kept. Authentication
and profile management belong to the identity provider.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import handle
from protean.fields import DateTime, String
from protean.utils.globals import current_domain

from storefront.domain import storefront


class CustomerRole(Enum):
    USER = "user"
    ADMIN = "admin"


@storefront.aggregate
class Customer:
    name = String(max_length=150)
    email = String(required=True, max_length=254)
    role = String(choices=CustomerRole, default=CustomerRole.USER.value)
    created_at = DateTime()

    @classmethod
    def register(cls, email, name=None, role=CustomerRole.USER.value, customer_id=None):
        kwargs = {"id": customer_id} if customer_id else {}
        return cls(
            email=email.strip().lower(),
            name=name,
            role=role,
            created_at=datetime.now(UTC),
            **kwargs,
        )


@storefront.command(part_of="Customer")
class RegisterCustomer:
    customer_id = String(max_length=255)
    email = String(required=True, max_length=254)
    name = String(max_length=150)
    role = String(choices=CustomerRole, default=CustomerRole.USER.value)


@storefront.command_handler(part_of=Customer)
class RegisterCustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        customer = Customer.register(
            email=command.email,
            name=command.name,
            role=command.role,
            customer_id=command.customer_id,
        )
        current_domain.repository_for(Customer).add(customer)
        return str(customer.id)

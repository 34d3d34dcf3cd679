import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Initialise the storefront domain and push its domain_context. The activated domain can then be referred to elsewhere as `current_domain`
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain

    # Clear all databases
    for _, provider in current_domain.providers.items():
        provider._data_reset()

    # Drain event stores
    current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def settings():
    from storefront.settings import Settings

    return Settings(
        frontend_url="https://shop.test",
        operator_email="ops@shop.test",
        brand_name="Storefront",
    )


@pytest.fixture
def gateway():
    from storefront.payments.gateway.fake_adapter import FakeGateway

    return FakeGateway()


@pytest.fixture
def mailbox():
    from storefront.notifications.channel.fake_email import FakeEmailAdapter

    return FakeEmailAdapter()


@pytest.fixture
def lifecycle(settings, gateway, mailbox):
    from storefront.ordering.lifecycle import OrderLifecycleManager

    return OrderLifecycleManager.from_settings(settings, gateway=gateway, email=mailbox)


@pytest.fixture
def address():
    return {
        "street": "Av. Providencia 1234",
        "city": "Santiago",
        "state": "RM",
        "zip_code": "7500000",
        "country": "Chile",
    }


@pytest.fixture
def make_product():
    from protean import current_domain

    from storefront.inventory.product import Product

    def _make(product_id="9", price=1000.0, stock=10, name=None, **kwargs):
        product = Product.create(
            name=name or f"Product {product_id}",
            price=price,
            stock=stock,
            product_id=product_id,
            **kwargs,
        )
        current_domain.repository_for(Product).add(product)
        return product

    return _make


@pytest.fixture
def stock_of():
    from protean import current_domain

    from storefront.inventory.product import Product

    def _stock(product_id):
        return current_domain.repository_for(Product).get(product_id).stock

    return _stock


@pytest.fixture
def register_customer():
    from protean import current_domain

    from storefront.customer.customer import Customer

    def _register(user_id, email, name=None, role="user"):
        customer = Customer.register(email=email, name=name, role=role, customer_id=user_id)
        current_domain.repository_for(Customer).add(customer)
        return customer

    return _register


@pytest.fixture
def buyer(register_customer):
    from storefront.principal import Principal

    register_customer("user-1", "buyer@shop.test", name="Ana Buyer")
    return Principal(user_id="user-1")


@pytest.fixture
def stranger():
    from storefront.principal import Principal

    return Principal(user_id="user-2")


@pytest.fixture
def admin():
    from storefront.principal import Principal

    return Principal(user_id="admin-1", role="admin")


@pytest.fixture
def fill_cart():
    from protean import current_domain

    from storefront.cart.items import AddToCart

    def _fill(user_id, product_id, quantity):
        return current_domain.process(
            AddToCart(user_id=user_id, product_id=product_id, quantity=quantity),
            asynchronous=False,
        )

    return _fill

"""Pytest fixtures for storefront tests."""

import pytest
from fastapi.testclient import TestClient

from storefront.config import Settings
from storefront.main import create_app
from storefront.models import Product, User
from storefront.orders import OrderService
from storefront.schemas import PlaceOrderRequest

SHIPPING_ADDRESS = {
    "name": "Alice Example",
    "email": "alice@example.com",
    "phone": "5551234567",
    "address": "1 Main Street",
    "city": "Springfield",
    "postalCode": "12345",
    "country": "US",
}


class RecordingPublisher:
    """Publisher double that keeps every event in memory."""

    def __init__(self):
        self.events = []
        self.closed = False

    def publish(self, routing_key, message):
        self.events.append((routing_key, message))

    def close(self):
        self.closed = True

    def keys(self):
        return [key for key, _ in self.events]


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", log_level="WARNING")


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def app(settings, publisher):
    return create_app(settings, publisher=publisher)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def db(app):
    """A session on the app's database for seeding and inspecting state."""
    session = app.state.session_factory()
    yield session
    session.close()


@pytest.fixture
def service(db, publisher, settings):
    return OrderService(db, publisher=publisher, settings=settings)


def _add_user(db, name, email, role, token):
    user = User(name=name, email=email, role=role, api_token=token)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return _add_user(db, "Alice Example", "alice@example.com", "customer", "customer-token")


@pytest.fixture
def other_customer(db):
    return _add_user(db, "Bob Other", "bob@example.com", "customer", "other-token")


@pytest.fixture
def admin(db):
    return _add_user(db, "Store Admin", "admin@example.com", "admin", "admin-token")


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {customer.api_token}"}


@pytest.fixture
def other_headers(other_customer):
    return {"Authorization": f"Bearer {other_customer.api_token}"}


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": f"Bearer {admin.api_token}"}


@pytest.fixture
def make_product(db):
    """Factory for catalog products."""
    counter = {"n": 0}

    def _make(name=None, price=10.0, stock=5, category="Gadgets", images=None):
        counter["n"] += 1
        product = Product(
            name=name or f"Product {counter['n']}",
            description="A test product",
            price=price,
            category=category,
            images=images if images is not None else [f"https://img.example/{counter['n']}.png"],
            stock=stock,
        )
        db.add(product)
        db.commit()
        db.refresh(product)
        return product

    return _make


@pytest.fixture
def stock_of(db):
    """Read a product's stock as currently committed."""

    def _stock(product):
        db.expire_all()
        return db.get(Product, product.id).stock

    return _stock


@pytest.fixture
def order_body():
    """Build a POST /api/orders body from (product, quantity) pairs."""

    def _body(*items, payment_method="paypal", payment_details=None):
        body = {
            "products": [{"productId": p.id, "quantity": q} for p, q in items],
            "shippingAddress": dict(SHIPPING_ADDRESS),
            "paymentMethod": payment_method,
        }
        if payment_details is not None:
            body["paymentDetails"] = payment_details
        return body

    return _body


@pytest.fixture
def order_request(order_body):
    """Same as order_body but parsed into a PlaceOrderRequest."""

    def _request(*items, **kwargs):
        return PlaceOrderRequest.model_validate(order_body(*items, **kwargs))

    return _request

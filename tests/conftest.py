from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.services import build_order_service
from modules.products.models import Product


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture(autouse=True)
def _clear_cache():
    """Throttle counters live in the cache; start every test clean."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def customer():
    return get_user_model().objects.create_user(
        username="wanjiru",
        email="wanjiru@example.com",
        password="pass12345",
        first_name="Grace",
        last_name="Wanjiru",
    )


@pytest.fixture()
def other_customer():
    return get_user_model().objects.create_user(
        username="otieno",
        email="otieno@example.com",
        password="pass12345",
        first_name="Brian",
        last_name="Otieno",
    )


@pytest.fixture()
def staff_user():
    return get_user_model().objects.create_superuser(
        username="ops-admin",
        email="ops@example.com",
        password="pass12345",
        first_name="Ops",
        last_name="Admin",
    )


@pytest.fixture()
def make_product():
    counter = {"n": 0}

    def _make(price="100.00", stock=5, name=None):
        counter["n"] += 1
        n = counter["n"]
        return Product.objects.create(
            sku=f"sku-{n:03d}",
            name=name or f"Product {n}",
            price=Decimal(price),
            stock_quantity=stock,
        )

    return _make


@pytest.fixture()
def order_service():
    return build_order_service()


@pytest.fixture()
def place_order(order_service):
    """Create an order through the service: ``place_order(user, (product, qty), ...)``."""

    def _place(user, *lines):
        dto = CreateOrderDTO(
            user_id=user.id,
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=quantity)
                for product, quantity in lines
            ],
        )
        return order_service.create_order(dto)

    return _place

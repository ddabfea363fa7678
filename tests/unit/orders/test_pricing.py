from decimal import Decimal

import pytest

from modules.orders.dtos import CreateOrderDTO, CreateOrderItemDTO
from modules.orders.exceptions import InsufficientStock
from modules.orders.pricing import OrderPricingService
from modules.products.exceptions import ProductNotFound
from modules.products.repositories.django_repository import ProductDjangoRepository
from modules.products.services import ProductService

pytestmark = pytest.mark.unit


@pytest.fixture()
def pricing():
    return OrderPricingService(ProductService(ProductDjangoRepository()))


def _dto(*lines):
    return CreateOrderDTO(
        user_id=1,
        items=[CreateOrderItemDTO(product_id=p.id, quantity=q) for p, q in lines],
    )


class TestOrderPricing:
    def test_total_is_exact_decimal_sum(self, pricing, make_product):
        pen = make_product(price="19.99", stock=10)
        clip = make_product(price="0.10", stock=10)

        draft, availability = pricing.price(_dto((pen, 3), (clip, 1)))

        assert draft.total_amount == Decimal("60.07")
        assert draft.status == "PLACED"
        assert [item.unit_price for item in draft.items] == [
            Decimal("19.99"),
            Decimal("0.10"),
        ]
        assert [item.subtotal for item in draft.items] == [
            Decimal("59.97"),
            Decimal("0.10"),
        ]
        assert set(availability) == {pen.id, clip.id}

    def test_snapshots_name(self, pricing, make_product):
        product = make_product(name="Blue Pen")

        draft, _ = pricing.price(_dto((product, 1)))

        assert draft.items[0].product_name == "Blue Pen"

    def test_first_short_item_aborts(self, pricing, make_product):
        first = make_product(stock=10)
        short = make_product(stock=1, name="Stapler")

        with pytest.raises(InsufficientStock) as exc_info:
            pricing.price(_dto((first, 1), (short, 2)))

        assert exc_info.value.product_name == "Stapler"
        assert exc_info.value.requested == 2
        assert exc_info.value.available == 1
        assert str(exc_info.value) == "Insufficient stock for product 'Stapler'."

    def test_unknown_product(self, pricing, make_product):
        product = make_product()
        dto = CreateOrderDTO(
            user_id=1,
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=1),
                CreateOrderItemDTO(product_id=999999, quantity=1),
            ],
        )
        with pytest.raises(ProductNotFound):
            pricing.price(dto)

    def test_pricing_does_not_touch_stock(self, pricing, make_product):
        product = make_product(stock=5)
        pricing.price(_dto((product, 5)))
        product.refresh_from_db()
        assert product.stock_quantity == 5

    def test_repeated_product_within_stock(self, pricing, make_product):
        product = make_product(price="10.00", stock=5)

        draft, availability = pricing.price(_dto((product, 1), (product, 2)))

        assert [item.quantity for item in draft.items] == [1, 2]
        assert draft.total_amount == Decimal("30.00")
        assert list(availability) == [product.id]

    def test_repeated_product_checked_against_combined_quantity(
        self, pricing, make_product
    ):
        product = make_product(stock=5, name="Desk Lamp")

        with pytest.raises(InsufficientStock) as exc_info:
            pricing.price(_dto((product, 3), (product, 3)))

        assert exc_info.value.product_name == "Desk Lamp"
        assert exc_info.value.requested == 3
        assert exc_info.value.available == 2

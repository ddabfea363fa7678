from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError

from modules.orders.models import Order

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/"


class TestCreateOrderAPI:
    def test_requires_authentication(self, api_client, make_product):
        product = make_product()
        response = api_client.post(
            URL, {"items": [{"product_id": product.id, "quantity": 1}]}, format="json"
        )
        assert response.status_code == 401

    def test_creates_order(self, api_client, customer, make_product):
        product = make_product(price="100.00", stock=5)
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            URL, {"items": [{"product_id": product.id, "quantity": 2}]}, format="json"
        )

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "PLACED"
        assert data["version"] == 1
        assert data["user_id"] == customer.id
        assert Decimal(data["total_amount"]) == Decimal("200.00")
        assert data["items"][0]["product_id"] == product.id
        assert data["items"][0]["quantity"] == 2
        assert Decimal(data["items"][0]["unit_price"]) == Decimal("100.00")
        assert Decimal(data["items"][0]["subtotal"]) == Decimal("200.00")
        assert response["Location"] == f"{URL}{data['id']}/"
        product.refresh_from_db()
        assert product.stock_quantity == 3

    def test_user_id_in_body_is_ignored(
        self, api_client, customer, other_customer, make_product
    ):
        product = make_product()
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            URL,
            {
                "user_id": other_customer.id,
                "items": [{"product_id": product.id, "quantity": 1}],
            },
            format="json",
        )

        assert response.status_code == 201
        assert response.json()["user_id"] == customer.id

    def test_validation_errors_are_keyed_by_field(
        self, api_client, customer, make_product
    ):
        product = make_product()
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            URL,
            {
                "items": [
                    {"product_id": product.id, "quantity": 1},
                    {"product_id": product.id + 1000, "quantity": 0},
                ]
            },
            format="json",
        )

        assert response.status_code == 400
        assert response.json() == {
            "errors": {"items[1].quantity": "must be greater than 0"}
        }
        assert Order.objects.count() == 0

    def test_empty_items(self, api_client, customer):
        api_client.force_authenticate(user=customer)

        response = api_client.post(URL, {"items": []}, format="json")

        assert response.status_code == 400
        assert response.json() == {"errors": {"items": "must contain at least one item"}}

    def test_unknown_product(self, api_client, customer):
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            URL, {"items": [{"product_id": 999999, "quantity": 1}]}, format="json"
        )

        assert response.status_code == 404
        assert response.json() == {"detail": "Product 999999 not found."}

    def test_insufficient_stock(self, api_client, customer, make_product):
        product = make_product(stock=3, name="Office Desk")
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            URL, {"items": [{"product_id": product.id, "quantity": 4}]}, format="json"
        )

        assert response.status_code == 409
        assert response.json() == {
            "detail": "Insufficient stock for product 'Office Desk'.",
            "product_name": "Office Desk",
            "requested": 4,
            "available": 3,
        }
        product.refresh_from_db()
        assert product.stock_quantity == 3
        assert Order.objects.count() == 0

    def test_repeated_product_lines(self, api_client, customer, make_product):
        product = make_product(price="20.00", stock=5)
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            URL,
            {
                "items": [
                    {"product_id": product.id, "quantity": 2},
                    {"product_id": product.id, "quantity": 3},
                ]
            },
            format="json",
        )

        assert response.status_code == 201
        assert Decimal(response.json()["total_amount"]) == Decimal("100.00")
        product.refresh_from_db()
        assert product.stock_quantity == 0

    def test_repeated_product_lines_over_stock(self, api_client, customer, make_product):
        product = make_product(stock=5, name="Office Desk")
        api_client.force_authenticate(user=customer)

        response = api_client.post(
            URL,
            {
                "items": [
                    {"product_id": product.id, "quantity": 3},
                    {"product_id": product.id, "quantity": 3},
                ]
            },
            format="json",
        )

        assert response.status_code == 409
        assert response.json()["available"] == 2
        product.refresh_from_db()
        assert product.stock_quantity == 5
        assert Order.objects.count() == 0

    def test_storage_failure_returns_500(self, api_client, customer, make_product):
        product = make_product()
        api_client.force_authenticate(user=customer)

        with patch(
            "modules.orders.repositories.django_repository.OrderDjangoRepository.create",
            side_effect=DatabaseError("statement timeout"),
        ):
            response = api_client.post(
                URL,
                {"items": [{"product_id": product.id, "quantity": 1}]},
                format="json",
            )

        assert response.status_code == 500
        assert response.json() == {
            "detail": "The server encountered a problem and could not process your request."
        }
        assert "statement timeout" not in response.content.decode()

    def test_notifications_sent_after_commit(
        self,
        api_client,
        customer,
        staff_user,
        make_product,
        mailoutbox,
        django_capture_on_commit_callbacks,
    ):
        product = make_product()
        api_client.force_authenticate(user=customer)

        with django_capture_on_commit_callbacks(execute=True):
            response = api_client.post(
                URL,
                {"items": [{"product_id": product.id, "quantity": 1}]},
                format="json",
            )

        assert response.status_code == 201
        order_id = response.json()["id"]
        recipients = sorted(to for message in mailoutbox for to in message.to)
        assert recipients == sorted([customer.email, staff_user.email])
        subjects = {message.subject for message in mailoutbox}
        assert subjects == {
            f"Order #{order_id} confirmed",
            f"New order #{order_id} received",
        }

    def test_notification_failure_does_not_fail_order(
        self,
        api_client,
        customer,
        make_product,
        django_capture_on_commit_callbacks,
    ):
        product = make_product()
        api_client.force_authenticate(user=customer)

        with patch("modules.orders.handlers.send_order_confirmation_email") as task:
            task.delay.side_effect = ConnectionError("broker down")
            with django_capture_on_commit_callbacks(execute=True):
                response = api_client.post(
                    URL,
                    {"items": [{"product_id": product.id, "quantity": 1}]},
                    format="json",
                )

        assert response.status_code == 201
        assert Order.objects.filter(id=response.json()["id"]).exists()

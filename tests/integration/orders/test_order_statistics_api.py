from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import DatabaseError
from django.utils import timezone
from freezegun import freeze_time

from modules.orders.models import Order

pytestmark = pytest.mark.integration

URL = "/api/v1/orders/statistics/"


class TestOrderStatisticsAPI:
    def test_staff_only(self, api_client, customer):
        api_client.force_authenticate(user=customer)
        assert api_client.get(URL).status_code == 403

    def test_defaults_to_last_30_days(
        self, api_client, staff_user, customer, make_product, place_order, order_service
    ):
        product = make_product(price="100.00", stock=50)
        place_order(customer, (product, 2))
        place_order(customer, (product, 1))
        cancelled = place_order(customer, (product, 1))
        old = place_order(customer, (product, 5))
        order_service.update_status(cancelled.id, "CANCELLED", 1)
        Order.objects.filter(id=old.id).update(
            created_at=timezone.now() - timedelta(days=45)
        )
        api_client.force_authenticate(user=staff_user)

        response = api_client.get(URL)

        assert response.status_code == 200
        data = response.json()
        today = timezone.localdate()
        assert data["date_range"] == {
            "start_date": (today - timedelta(days=30)).isoformat(),
            "end_date": today.isoformat(),
        }
        stats = data["statistics"]
        assert stats["total_orders"] == 3
        assert stats["status_counts"]["PLACED"] == 2
        assert stats["status_counts"]["CANCELLED"] == 1
        assert stats["status_counts"]["SHIPPED"] == 0
        assert Decimal(stats["total_revenue"]) == Decimal("300.00")
        assert Decimal(stats["average_order_value"]) == Decimal("150.00")

    def test_explicit_range(self, api_client, staff_user, customer, make_product, place_order):
        product = make_product(price="40.00", stock=50)
        with freeze_time("2025-03-15 09:00:00"):
            place_order(customer, (product, 1))
        with freeze_time("2025-04-02 09:00:00"):
            place_order(customer, (product, 2))
        api_client.force_authenticate(user=staff_user)

        response = api_client.get(
            URL, {"start_date": "2025-03-01", "end_date": "2025-03-31"}
        )

        stats = response.json()["statistics"]
        assert stats["total_orders"] == 1
        assert Decimal(stats["total_revenue"]) == Decimal("40.00")

    def test_invalid_range(self, api_client, staff_user):
        api_client.force_authenticate(user=staff_user)

        response = api_client.get(
            URL, {"start_date": "2025-03-31", "end_date": "2025-03-01"}
        )

        assert response.status_code == 400
        assert response.json() == {
            "errors": {"end_date": "must not be before start_date"}
        }

    def test_storage_failure_returns_500(self, api_client, staff_user):
        api_client.force_authenticate(user=staff_user)

        with patch(
            "modules.orders.repositories.django_repository.OrderDjangoRepository.in_date_range",
            side_effect=DatabaseError("statement timeout"),
        ):
            response = api_client.get(URL)

        assert response.status_code == 500
        assert response.json() == {
            "detail": "The server encountered a problem and could not process your request."
        }

from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command

from modules.customers.models import CustomerProfile
from modules.orders.models import Order
from modules.products.models import Product

pytestmark = pytest.mark.integration


class TestSeedDataCommand:
    def test_seeds_catalog_customers_and_orders(self, mailoutbox):
        out = StringIO()

        call_command("seed_data", "--orders", "10", stdout=out)

        assert "Seed completed" in out.getvalue()
        assert Product.objects.count() == 14
        assert CustomerProfile.objects.count() == 6
        assert get_user_model().objects.filter(is_superuser=True).count() == 1
        assert 0 < Order.objects.count() <= 10
        for order in Order.objects.prefetch_related("items"):
            assert order.total_amount == sum(i.subtotal for i in order.items.all())
        assert mailoutbox == []

    def test_is_rerunnable(self):
        call_command("seed_data", "--orders", "2", stdout=StringIO())
        call_command("seed_data", "--orders", "2", stdout=StringIO())

        assert Product.objects.count() == 14
        assert get_user_model().objects.filter(username="admin").count() == 1

"""Order DRF serializers for API output.

One explicit serializer per projection: ``OrderSerializer`` is the owner
view, ``AdminOrderSerializer`` adds the customer's details.  Input is
validated by the Pydantic DTOs in ``dtos.py``, not here.
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework import serializers

from modules.orders.models import Order, OrderItem


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order items with price/name snapshots."""

    subtotal = serializers.DecimalField(
        max_digits=14, decimal_places=2, read_only=True
    )

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "product_name",
            "quantity",
            "unit_price",
            "subtotal",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with nested items."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "user_id",
            "status",
            "total_amount",
            "version",
            "created_at",
            "updated_at",
            "items",
        ]
        read_only_fields = fields


class OrderUserSerializer(serializers.ModelSerializer):
    class Meta:
        model = get_user_model()
        fields = ["id", "first_name", "last_name", "email"]
        read_only_fields = fields


class AdminOrderSerializer(OrderSerializer):
    """Admin projection: the owner view plus the customer's details."""

    user = OrderUserSerializer(read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["user"]
        read_only_fields = fields


class OrderStatisticsSerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    status_counts = serializers.DictField(child=serializers.IntegerField())
    total_revenue = serializers.DecimalField(max_digits=14, decimal_places=2)
    average_order_value = serializers.DecimalField(max_digits=14, decimal_places=2)

import django_filters
from django.db.models import Q

from modules.orders.constants import OrderStatus
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    """Filters shared by the order list and statistics queries.

    ``name`` matches the customer's first name, last name or username.
    Date bounds are inclusive and compare against the local date.
    """

    name = django_filters.CharFilter(method="filter_customer_name")
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    start_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__gte"
    )
    end_date = django_filters.DateFilter(
        field_name="created_at", lookup_expr="date__lte"
    )

    class Meta:
        model = Order
        fields = ["name", "status", "start_date", "end_date"]

    def filter_customer_name(self, queryset, name, value):
        return queryset.filter(
            Q(user__first_name__icontains=value)
            | Q(user__last_name__icontains=value)
            | Q(user__username__icontains=value)
        )

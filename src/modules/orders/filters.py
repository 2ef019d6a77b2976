import django_filters

from modules.orders.constants import OrderKind
from modules.orders.models import Order


class OrderFilter(django_filters.FilterSet):
    status = django_filters.CharFilter(field_name="status", lookup_expr="iexact")
    kind = django_filters.ChoiceFilter(field_name="kind", choices=OrderKind.choices)
    user_id = django_filters.NumberFilter(field_name="user_id")
    start_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__gte")
    end_date = django_filters.DateFilter(field_name="created_at", lookup_expr="date__lte")

    class Meta:
        model = Order
        fields = [
            "status",
            "kind",
            "user_id",
            "start_date",
            "end_date",
        ]

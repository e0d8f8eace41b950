"""Query filters for the invoice list (control board)."""

import django_filters
from django.utils import timezone

from messaging.phone import normalize_mobile
from .models import Invoice


class InvoiceFilter(django_filters.FilterSet):
    received = django_filters.CharFilter(method='filter_received')
    received_from = django_filters.DateFilter(field_name='received_at', lookup_expr='date__gte')
    received_to = django_filters.DateFilter(field_name='received_at', lookup_expr='date__lte')
    mobile = django_filters.CharFilter(method='filter_mobile')

    class Meta:
        model = Invoice
        fields = ['device_status', 'is_delivered', 'contacted_customer']

    def filter_received(self, queryset, name, value):
        # "today" is the shop's local day
        if value == 'today':
            return queryset.filter(received_at__date=timezone.localdate())
        return queryset

    def filter_mobile(self, queryset, name, value):
        return queryset.filter(mobile=normalize_mobile(value))

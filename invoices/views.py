"""Invoices API views.

Creation and updates go through :mod:`invoices.services`; the viewset only
validates payload shape and serializes results.
"""

from django.db.models import Count, Q
from django.utils import timezone
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from accounts.permissions import CanEditTicketsOrReadOnly
from . import services
from .filters import InvoiceFilter
from .lifecycle import DeviceStatus, can_message
from .models import Invoice
from .serializers import (
    InvoiceCreateSerializer,
    InvoiceDetailSerializer,
    InvoiceSerializer,
    InvoiceUpdateSerializer,
)


class InvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Repair tickets.

    - Everyone signed in: list (filter/search/order) and retrieve with message history.
    - Admin and staff: create and PATCH. There is no PUT and no delete.
    """

    permission_classes = [CanEditTicketsOrReadOnly]
    serializer_class = InvoiceSerializer
    filterset_class = InvoiceFilter
    search_fields = ['invoice_no', 'customer_name', 'mobile', 'device_type']
    ordering_fields = ['updated_at', 'received_at', 'invoice_no', 'delivered_at']
    ordering = ['-updated_at']

    def get_queryset(self):
        queryset = Invoice.objects.select_related('created_by', 'updated_by')
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related('messages__sent_by')
        return queryset

    def get_serializer_class(self):
        if self.action == 'retrieve':
            return InvoiceDetailSerializer
        return InvoiceSerializer

    def create(self, request, *args, **kwargs):
        payload = InvoiceCreateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        invoice = services.create_invoice(payload.validated_data, user=request.user)
        serializer = self.get_serializer(invoice)
        return Response(serializer.data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        payload = InvoiceUpdateSerializer(data=request.data, partial=True)
        payload.is_valid(raise_exception=True)
        invoice = services.update_invoice(pk, payload.validated_data, user=request.user)
        serializer = self.get_serializer(invoice)
        return Response(serializer.data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        """Dashboard counters; "today" is the shop's local day."""
        today = timezone.localdate()
        totals = Invoice.objects.aggregate(
            total_received=Count('id'),
            total_delivered=Count('id', filter=Q(is_delivered=True)),
            waiting_parts=Count('id', filter=Q(device_status=DeviceStatus.WAITING_PARTS)),
            ready=Count('id', filter=Q(device_status=DeviceStatus.READY)),
            refused=Count('id', filter=Q(device_status=DeviceStatus.REFUSED)),
            received_today=Count('id', filter=Q(received_at__date=today)),
            delivered_today=Count('id', filter=Q(delivered_at__date=today)),
        )
        return Response(totals)

    @action(detail=False, methods=['get'])
    def statuses(self, request):
        """List device status values for dropdowns."""
        return Response([
            {'value': value, 'label': label, 'can_message': can_message(value)}
            for value, label in DeviceStatus.choices
        ])

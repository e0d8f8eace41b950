"""DRF serializers for invoices APIs."""

from rest_framework import serializers

from messaging.phone import format_mobile_display
from messaging.serializers import MessageLogSerializer
from .lifecycle import DeviceStatus
from .models import Invoice


class OptionalDecimalField(serializers.DecimalField):
    """Decimal input where an empty string clears the value, as the desk form sends it."""

    def validate_empty_values(self, data):
        if data == '':
            return (True, None)
        return super().validate_empty_values(data)


def _optional_text(max_length=None):
    kwargs = {'required': False, 'allow_blank': True, 'allow_null': True}
    if max_length:
        kwargs['max_length'] = max_length
    return serializers.CharField(**kwargs)


def _optional_amount():
    return OptionalDecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)


class InvoiceSerializer(serializers.ModelSerializer):
    """
    عرض بيانات الفاتورة مع الحقول المحسوبة للواجهة.
    """
    status_display = serializers.ReadOnlyField(source='get_device_status_display')
    mobile_display = serializers.SerializerMethodField()
    can_message = serializers.ReadOnlyField()
    created_by = serializers.ReadOnlyField(source='created_by.username')
    updated_by = serializers.ReadOnlyField(source='updated_by.username')

    class Meta:
        model = Invoice
        fields = [
            'id',
            'invoice_no',
            'customer_name',
            'mobile',
            'mobile_display',
            'device_type',
            'problem',
            'staff_receiver',
            'notes',
            'agreed_price',
            'total_amount',
            'device_status',
            'status_display',
            'can_message',
            'contacted_customer',
            'is_delivered',
            'receiver_name',
            'created_at',
            'received_at',
            'delivered_at',
            'updated_at',
            'created_by',
            'updated_by',
        ]
        read_only_fields = fields

    def get_mobile_display(self, obj):
        return format_mobile_display(obj.mobile)


class InvoiceDetailSerializer(InvoiceSerializer):
    """Invoice plus its message history, newest first."""

    messages = MessageLogSerializer(many=True, read_only=True)

    class Meta(InvoiceSerializer.Meta):
        fields = InvoiceSerializer.Meta.fields + ['messages']
        read_only_fields = fields


class InvoiceCreateSerializer(serializers.Serializer):
    """Intake form payload. The minimal-information rule is checked by the service."""

    customer_name = _optional_text(150)
    mobile = _optional_text(30)
    device_type = _optional_text(150)
    problem = _optional_text()
    staff_receiver = _optional_text(100)
    notes = _optional_text()
    agreed_price = _optional_amount()


class InvoiceUpdateSerializer(serializers.Serializer):
    """Patch payload: only the keys present in the request end up in ``validated_data``."""

    customer_name = _optional_text(150)
    mobile = _optional_text(30)
    device_type = _optional_text(150)
    problem = _optional_text()
    staff_receiver = _optional_text(100)
    notes = _optional_text()
    receiver_name = _optional_text(150)
    agreed_price = _optional_amount()
    total_amount = _optional_amount()
    device_status = serializers.ChoiceField(choices=DeviceStatus.choices, required=False)
    contacted_customer = serializers.BooleanField(required=False)
    is_delivered = serializers.BooleanField(required=False)
    delivered_at = serializers.DateTimeField(required=False, allow_null=True)

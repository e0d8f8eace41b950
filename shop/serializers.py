"""Serializer for the shop settings singleton."""

from rest_framework import serializers

from .models import ShopSettings


class ShopSettingsSerializer(serializers.ModelSerializer):
    # مفاتيح مزودي الرسائل لا تُعرض بعد الحفظ
    whatsapp_api_key = serializers.CharField(write_only=True, required=False, allow_null=True, allow_blank=True)
    sms_api_key = serializers.CharField(write_only=True, required=False, allow_null=True, allow_blank=True)
    has_whatsapp_api_key = serializers.SerializerMethodField()
    has_sms_api_key = serializers.SerializerMethodField()

    class Meta:
        model = ShopSettings
        fields = [
            'shop_name',
            'shop_phone',
            'vat_rate',
            'whatsapp_api_key',
            'sms_api_key',
            'has_whatsapp_api_key',
            'has_sms_api_key',
            'updated_at',
        ]
        read_only_fields = ['updated_at']

    def get_has_whatsapp_api_key(self, obj):
        return bool(obj.whatsapp_api_key)

    def get_has_sms_api_key(self, obj):
        return bool(obj.sms_api_key)

    def validate(self, attrs):
        for key in ('whatsapp_api_key', 'sms_api_key'):
            if key in attrs:
                attrs[key] = (attrs[key] or '').strip() or None
        return attrs

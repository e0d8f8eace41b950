"""DRF serializers for message templates, the message log and send requests."""

from rest_framework import serializers

from .models import MessageChannel, MessageLog, MessageTemplate


class MessageTemplateSerializer(serializers.ModelSerializer):
    channel_display = serializers.ReadOnlyField(source='get_channel_display')

    class Meta:
        model = MessageTemplate
        fields = ['id', 'code', 'channel', 'channel_display', 'title_ar', 'body_ar', 'enabled', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_code(self, value):
        return value.strip()

    def validate_body_ar(self, value):
        if not value.strip():
            raise serializers.ValidationError('نص القالب مطلوب.')
        return value


class MessageLogSerializer(serializers.ModelSerializer):
    """Read-only view of a log row."""

    sent_by = serializers.ReadOnlyField(source='sent_by.username')
    channel_display = serializers.ReadOnlyField(source='get_channel_display')

    class Meta:
        model = MessageLog
        fields = [
            'id',
            'invoice',
            'channel',
            'channel_display',
            'template_code',
            'to_mobile',
            'message_body',
            'status',
            'sent_by',
            'created_at',
        ]
        read_only_fields = fields


class MessagePreviewSerializer(serializers.Serializer):
    invoice_id = serializers.UUIDField()
    template_id = serializers.IntegerField(required=False, allow_null=True)
    custom_body = serializers.CharField(required=False, allow_blank=True, default='', trim_whitespace=False)


class SendMessageSerializer(MessagePreviewSerializer):
    """
    بيانات طلب إرسال رسالة: الفاتورة والقناة مع قالب أو نص مخصص.
    """
    channel = serializers.ChoiceField(choices=MessageChannel.choices)

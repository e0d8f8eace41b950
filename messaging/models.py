"""Database models for message templates and the outbound message log."""

from django.conf import settings
from django.db import models


class MessageChannel(models.TextChoices):
    WHATSAPP = 'WHATSAPP', 'واتساب'
    SMS = 'SMS', 'رسالة نصية'


class MessageStatus(models.TextChoices):
    QUEUED = 'QUEUED', 'في الانتظار'
    SENT = 'SENT', 'مرسلة'
    FAILED = 'FAILED', 'فشلت'


class MessageTemplate(models.Model):
    """Reusable notification body with ``{placeholder}`` tokens, keyed by ``code``.

    ``enabled`` is shown in the editor but not checked when sending.
    """

    code = models.CharField(max_length=50, unique=True)
    channel = models.CharField(max_length=10, choices=MessageChannel.choices, default=MessageChannel.WHATSAPP)
    title_ar = models.CharField(max_length=150)
    body_ar = models.TextField()
    enabled = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['code']
        verbose_name = "Message Template"
        verbose_name_plural = "Message Templates"

    def __str__(self):
        return f"{self.code} ({self.channel})"


class MessageLog(models.Model):
    """Append-only record of a rendered message handed to the caller as a deep link.

    ``SENT`` means the link was produced, not that the carrier delivered it.
    """

    invoice = models.ForeignKey('invoices.Invoice', on_delete=models.CASCADE, related_name='messages')
    channel = models.CharField(max_length=10, choices=MessageChannel.choices)
    template_code = models.CharField(max_length=50, null=True, blank=True)
    to_mobile = models.CharField(max_length=20)
    message_body = models.TextField()
    status = models.CharField(max_length=10, choices=MessageStatus.choices, default=MessageStatus.SENT)
    sent_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='sent_messages',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-created_at']
        verbose_name = "Message Log"
        verbose_name_plural = "Message Logs"
        indexes = [
            models.Index(fields=['invoice', 'created_at'], name='msglog_invoice_created_idx'),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("MessageLog rows are immutable once created.")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.channel} → {self.to_mobile} ({self.status})"

"""Database models for repair tickets (invoices) and their number counter."""

import uuid

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .lifecycle import DeviceStatus, can_message
from .numbering import GLOBAL_COUNTER_KEY, INVOICE_COUNTER_FLOOR, next_counter_value


class InvoiceCounterManager(models.Manager):
    """Counter access used by the allocator; every call is expected inside a transaction."""

    def ensure_global(self):
        # get_or_create absorbs the IntegrityError of a concurrent first insert.
        counter, _ = self.get_or_create(
            date_key=GLOBAL_COUNTER_KEY,
            defaults={'counter': INVOICE_COUNTER_FLOOR},
        )
        return counter

    def read_global_for_update(self) -> int:
        row = self.select_for_update().get(date_key=GLOBAL_COUNTER_KEY)
        return row.counter

    def try_advance(self, expected_prior: int) -> int | None:
        """Compare-and-swap the global counter from ``expected_prior`` to the next value.

        Returns the new value, or ``None`` when the row no longer holds
        ``expected_prior``.
        """
        new_value = next_counter_value(expected_prior)
        updated = self.filter(date_key=GLOBAL_COUNTER_KEY, counter=expected_prior).update(counter=new_value)
        if updated != 1:
            return None
        return new_value


class InvoiceCounter(models.Model):
    """Single global row holding the last issued invoice number."""

    date_key = models.CharField(max_length=20, unique=True)
    counter = models.PositiveIntegerField(default=INVOICE_COUNTER_FLOOR)

    objects = InvoiceCounterManager()

    class Meta:
        verbose_name = "Invoice Counter"
        verbose_name_plural = "Invoice Counters"

    def __str__(self):
        return f"{self.date_key}: {self.counter}"


class Invoice(models.Model):
    """One repair ticket, from device drop-off to delivery."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # رقم الفاتورة الظاهر للعميل، لا يتغير بعد الإنشاء
    invoice_no = models.CharField(max_length=20, unique=True, editable=False)

    customer_name = models.CharField(max_length=150, null=True, blank=True)
    mobile = models.CharField(max_length=20, null=True, blank=True)
    device_type = models.CharField(max_length=150, null=True, blank=True)
    problem = models.TextField(null=True, blank=True)
    staff_receiver = models.CharField(max_length=100, null=True, blank=True)
    notes = models.TextField(null=True, blank=True)

    agreed_price = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )
    total_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)]
    )

    device_status = models.CharField(max_length=20, choices=DeviceStatus.choices, default=DeviceStatus.NEW)
    contacted_customer = models.BooleanField(default=False)

    # التسليم
    is_delivered = models.BooleanField(default=False)
    receiver_name = models.CharField(max_length=150, null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    received_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='created_invoices',
    )
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='updated_invoices',
    )

    class Meta:
        ordering = ['-updated_at']
        verbose_name = "Invoice"
        verbose_name_plural = "Invoices"
        indexes = [
            models.Index(fields=['device_status', 'updated_at'], name='invoice_status_updated_idx'),
            models.Index(fields=['received_at'], name='invoice_received_idx'),
        ]

    @property
    def can_message(self) -> bool:
        return can_message(self.device_status)

    def __str__(self):
        return f"Invoice {self.invoice_no}"

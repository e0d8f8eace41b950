"""Device status values and the rules attached to them.

Status is set freely by staff: there is no transition guard, so an invoice may
go from ``DELIVERED`` back to ``NEW``. The only enforced rules are the
delivered flag side effects and the messaging block on ``NO_PARTS``.
"""

from django.db import models
from django.utils import timezone


class DeviceStatus(models.TextChoices):
    NEW = 'NEW', 'جديد'
    RECEIVED = 'RECEIVED', 'تم استلام الجهاز'
    IN_PROGRESS = 'IN_PROGRESS', 'جاري تجهيزه'
    WAITING_PARTS = 'WAITING_PARTS', 'في احتياج إلى قطع'
    NO_PARTS = 'NO_PARTS', 'داخلي – لا يُرسل للعميل (لا توجد قطعة)'
    READY = 'READY', 'جاهز'
    DELIVERED = 'DELIVERED', 'تم التسليم'
    REFUSED = 'REFUSED', 'تم التواصل والعميل رفض'
    CANCELED = 'CANCELED', 'ملغاة'


# Internal-only statuses: the customer must not be contacted while in these.
MESSAGING_BLOCKED_STATUSES = frozenset({DeviceStatus.NO_PARTS})

STATUS_MESSAGES = {
    DeviceStatus.RECEIVED: 'تم استلام جهازك تحت رقم الفاتورة {invoice_no}. سنوافيك بالتحديثات.',
    DeviceStatus.IN_PROGRESS: 'جاري العمل على جهازك تحت رقم الفاتورة {invoice_no}. سنبلغك عند أي تحديث.',
    DeviceStatus.WAITING_PARTS: 'فاتورتك رقم {invoice_no} بانتظار وصول القطع. سنبلغك فور وصولها.',
    DeviceStatus.NO_PARTS: 'لا توجد قطعة لهذا الجهاز. رقم الفاتورة {invoice_no}.',
    DeviceStatus.READY: 'جهازك جاهز للاستلام. رقم الفاتورة {invoice_no}. يرجى الحضور خلال أوقات الدوام.',
    DeviceStatus.DELIVERED: 'تم تسليم جهازك بنجاح. رقم الفاتورة {invoice_no}. شكرًا لزيارتك.',
    DeviceStatus.REFUSED: 'تم تحديث الفاتورة رقم {invoice_no}: العميل رفض الإصلاح.',
    DeviceStatus.CANCELED: 'تم إلغاء الفاتورة رقم {invoice_no}.',
}


def can_message(status) -> bool:
    return status not in MESSAGING_BLOCKED_STATUSES


def default_message_for(status) -> str:
    """Suggested notification body for ``status`` (falls back to the RECEIVED text)."""
    return STATUS_MESSAGES.get(status, STATUS_MESSAGES[DeviceStatus.RECEIVED])


def apply_delivery_flag(invoice, is_delivered: bool, delivered_at=None, now=None):
    """Apply the delivered flag to ``invoice`` in memory; returns the changed field names.

    ``True`` forces ``DELIVERED`` and stamps ``delivered_at`` with the given
    value, or with ``now`` when the flag flips from false. ``False`` clears
    ``delivered_at`` and leaves the status alone.
    """
    changed = ['is_delivered', 'delivered_at']
    if is_delivered:
        if delivered_at is not None:
            invoice.delivered_at = delivered_at
        elif not invoice.is_delivered or invoice.delivered_at is None:
            invoice.delivered_at = now or timezone.now()
        invoice.device_status = DeviceStatus.DELIVERED
        changed.append('device_status')
    else:
        invoice.delivered_at = None
    invoice.is_delivered = is_delivered
    return changed

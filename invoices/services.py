"""Invoice service: ticket creation and partial updates.

Views hand validated payloads to these functions; errors are raised as the
domain exceptions from :mod:`core.exceptions`.
"""

from decimal import Decimal, InvalidOperation

import structlog
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from core.exceptions import AllocationConflict, AllocationExhausted, NotFoundError, PayloadValidationError
from messaging.phone import normalize_mobile
from .lifecycle import apply_delivery_flag
from .models import Invoice
from .numbering import MAX_ALLOCATION_ATTEMPTS, allocate_and_create

logger = structlog.get_logger(__name__)

MINIMAL_INFO_FIELDS = ('customer_name', 'mobile', 'device_type', 'problem')
TEXT_FIELDS = ('customer_name', 'mobile', 'device_type', 'problem', 'staff_receiver', 'notes', 'receiver_name')
AMOUNT_FIELDS = ('agreed_price', 'total_amount')
CREATE_FIELDS = ('customer_name', 'mobile', 'device_type', 'problem', 'staff_receiver', 'notes', 'agreed_price')

MINIMAL_INFO_MESSAGE = "أدخل على الأقل أي حقلين (مثل: اسم العميل + نوع الجهاز) أو (رقم الجوال + المشكلة)."


def _has_value(value) -> bool:
    return value is not None and bool(str(value).strip())


def has_minimal_information(payload) -> bool:
    """Accept a ticket with two of name/mobile/device/problem filled in.

    Name+device and mobile+problem are the combinations staff normally enter;
    any other pair is accepted too.
    """
    filled = {field for field in MINIMAL_INFO_FIELDS if _has_value(payload.get(field))}
    combo_device = {'customer_name', 'device_type'} <= filled
    combo_contact = {'mobile', 'problem'} <= filled
    return combo_device or combo_contact or len(filled) >= 2


def _clean_text(field, value):
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if field == 'mobile':
        return normalize_mobile(text) or None
    return text


def _clean_amount(field, value):
    if value is None or value == '':
        return None
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise PayloadValidationError({field: 'قيمة غير صحيحة.'}, code='invalid') from None
    if amount < 0:
        raise PayloadValidationError({field: 'لا يمكن أن تكون القيمة سالبة.'}, code='min_value')
    return amount


def _actor(user):
    return user if getattr(user, 'is_authenticated', False) else None


def get_invoice(invoice_id, for_update=False) -> Invoice:
    queryset = Invoice.objects.select_for_update() if for_update else Invoice.objects.all()
    try:
        invoice = queryset.filter(pk=invoice_id).first()
    except (DjangoValidationError, ValueError):
        invoice = None
    if invoice is None:
        raise NotFoundError('الفاتورة غير موجودة.')
    return invoice


def create_invoice(payload, user=None) -> Invoice:
    """Create a ticket and give it the next invoice number.

    Lost numbering races are retried up to ``MAX_ALLOCATION_ATTEMPTS`` times,
    then reported as :class:`AllocationExhausted`.
    """
    if not has_minimal_information(payload):
        raise PayloadValidationError({'detail': MINIMAL_INFO_MESSAGE}, code='minimal_information')

    fields = {}
    for field in CREATE_FIELDS:
        if field in AMOUNT_FIELDS:
            fields[field] = _clean_amount(field, payload.get(field))
        else:
            fields[field] = _clean_text(field, payload.get(field))
    created_by = _actor(user)

    def build(invoice_no):
        return Invoice(invoice_no=invoice_no, created_by=created_by, updated_by=created_by, **fields)

    for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
        try:
            invoice = allocate_and_create(build)
        except AllocationConflict as exc:
            logger.warning('invoice_number_conflict', attempt=attempt, reason=str(exc))
            continue
        logger.info(
            'invoice_created',
            invoice_id=str(invoice.pk),
            invoice_no=invoice.invoice_no,
            user_id=getattr(created_by, 'pk', None),
            attempt=attempt,
        )
        return invoice

    logger.error('invoice_allocation_exhausted', attempts=MAX_ALLOCATION_ATTEMPTS)
    raise AllocationExhausted()


def update_invoice(invoice_id, changes, user=None) -> Invoice:
    """Apply a partial update.

    Keys missing from ``changes`` are left as they are; ``None`` or ``""``
    clears a text or amount field. ``is_delivered`` carries the delivery side
    effects; ``delivered_at`` is only read together with it. A status change
    on its own never touches the delivered flag.
    """
    with transaction.atomic():
        invoice = get_invoice(invoice_id, for_update=True)
        changed = []

        for field in TEXT_FIELDS:
            if field in changes:
                setattr(invoice, field, _clean_text(field, changes[field]))
                changed.append(field)

        for field in AMOUNT_FIELDS:
            if field in changes:
                setattr(invoice, field, _clean_amount(field, changes[field]))
                changed.append(field)

        if changes.get('device_status') is not None:
            invoice.device_status = changes['device_status']
            changed.append('device_status')

        if isinstance(changes.get('contacted_customer'), bool):
            invoice.contacted_customer = changes['contacted_customer']
            changed.append('contacted_customer')

        if isinstance(changes.get('is_delivered'), bool):
            changed += apply_delivery_flag(
                invoice,
                changes['is_delivered'],
                delivered_at=changes.get('delivered_at'),
                now=timezone.now(),
            )

        invoice.updated_by = _actor(user)
        changed += ['updated_by', 'updated_at']
        invoice.save(update_fields=list(dict.fromkeys(changed)))

    logger.info(
        'invoice_updated',
        invoice_id=str(invoice.pk),
        invoice_no=invoice.invoice_no,
        fields=sorted(set(changed) - {'updated_by', 'updated_at'}),
        user_id=getattr(invoice.updated_by, 'pk', None),
    )
    return invoice


def mark_contacted(invoice) -> None:
    if not invoice.contacted_customer:
        invoice.contacted_customer = True
        invoice.save(update_fields=['contacted_customer', 'updated_at'])

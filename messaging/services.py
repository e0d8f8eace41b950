"""Compose customer notifications as WhatsApp / SMS deep links.

Nothing is dispatched from the server: the caller opens the returned URL.
The log row records that the link was handed out.
"""

from dataclasses import dataclass
from urllib.parse import quote

import structlog
from django.db import transaction

from core.exceptions import InvalidStateError, NotFoundError, PayloadValidationError, SettingsMissing
from invoices.lifecycle import can_message, default_message_for
from invoices.services import get_invoice, mark_contacted
from shop.models import ShopSettings
from .models import MessageChannel, MessageLog, MessageStatus, MessageTemplate
from .phone import is_valid_ksa_mobile, normalize_mobile
from .templating import render_template

logger = structlog.get_logger(__name__)

# Same set of unescaped characters as JavaScript's encodeURIComponent.
_URI_COMPONENT_SAFE = "-_.!~*'()"


@dataclass
class ComposedMessage:
    url: str
    log: MessageLog


def encode_uri_component(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def build_deep_link(channel: str, mobile: str, body: str) -> str:
    encoded = encode_uri_component(body)
    if channel == MessageChannel.WHATSAPP:
        return f"https://wa.me/{mobile.lstrip('+')}?text={encoded}"
    return f"sms:{mobile}?body={encoded}"


def _load_template(template_id):
    if template_id in (None, ''):
        return None
    try:
        template = MessageTemplate.objects.filter(pk=template_id).first()
    except (TypeError, ValueError):
        template = None
    if template is None:
        raise NotFoundError('القالب غير موجود.')
    return template


def _resolve_body(invoice, template, custom_body) -> str:
    if template is not None:
        return template.body_ar
    if custom_body and custom_body.strip():
        return custom_body
    return default_message_for(invoice.device_status)


def preview_message(invoice_id, template_id=None, custom_body='') -> str:
    """Render the message that ``compose_message`` would send, without logging it."""
    invoice = get_invoice(invoice_id)
    settings = ShopSettings.load()
    if settings is None:
        raise SettingsMissing()
    template = _load_template(template_id)
    return render_template(_resolve_body(invoice, template, custom_body), invoice, settings)


def compose_message(invoice_id, channel, template_id=None, custom_body='', user=None) -> ComposedMessage:
    """Render a notification for an invoice and return its deep link.

    The body comes from the stored template when ``template_id`` is given,
    else from ``custom_body``, else from the default text for the invoice's
    status. On success a ``SENT`` log row is written and the invoice is
    marked as contacted.

    An empty or whitespace-only ``custom_body`` counts as absent, so without a
    template it sends the status text rather than an empty message.
    """
    if channel not in MessageChannel.values:
        raise PayloadValidationError({'channel': 'قناة غير مدعومة.'}, code='invalid_choice')

    invoice = get_invoice(invoice_id)

    settings = ShopSettings.load()
    if settings is None:
        raise SettingsMissing()

    if not can_message(invoice.device_status):
        raise InvalidStateError('حالة الجهاز داخلية ولا يُرسل للعميل.', code='status_not_messageable')

    if not invoice.mobile or not is_valid_ksa_mobile(invoice.mobile):
        raise InvalidStateError('رقم الجوال غير صحيح أو غير موجود.', code='invalid_mobile')
    mobile = normalize_mobile(invoice.mobile)

    template = _load_template(template_id)
    rendered = render_template(_resolve_body(invoice, template, custom_body), invoice, settings)
    url = build_deep_link(channel, mobile, rendered)

    sent_by = user if getattr(user, 'is_authenticated', False) else None
    with transaction.atomic():
        log = MessageLog.objects.create(
            invoice=invoice,
            channel=channel,
            template_code=template.code if template else None,
            to_mobile=mobile,
            message_body=rendered,
            status=MessageStatus.SENT,
            sent_by=sent_by,
        )
        mark_contacted(invoice)

    logger.info(
        'message_composed',
        invoice_id=str(invoice.pk),
        invoice_no=invoice.invoice_no,
        channel=channel,
        template_code=log.template_code,
        user_id=getattr(sent_by, 'pk', None),
    )
    return ComposedMessage(url=url, log=log)

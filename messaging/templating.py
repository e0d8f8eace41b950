"""Placeholder substitution for customer notifications."""

from decimal import Decimal

from django.utils import timezone

CREATED_AT_FORMAT = '%Y-%m-%d %H:%M'

# Tokens understood by the renderer, in the order the template editor lists them.
# model/color/part_status/expected_part_arrival_date have no invoice field yet
# and always render empty.
PLACEHOLDERS = (
    '{customer_name}',
    '{mobile}',
    '{invoice_no}',
    '{device_name}',
    '{model}',
    '{color}',
    '{problem}',
    '{repair_status}',
    '{part_status}',
    '{expected_part_arrival_date}',
    '{shop_name}',
    '{shop_phone}',
    '{final_cost}',
    '{created_at}',
)


def format_amount(value) -> str:
    """Plain decimal string without trailing zeros (``150``, ``12.5``); empty when unset."""
    if value is None or value == '':
        return ''
    amount = Decimal(str(value)).normalize()
    return format(amount, 'f')


def format_created_at(value) -> str:
    if value is None:
        return ''
    if timezone.is_aware(value):
        value = timezone.localtime(value)
    return value.strftime(CREATED_AT_FORMAT)


def build_replacements(invoice, settings) -> dict[str, str]:
    return {
        '{customer_name}': invoice.customer_name or '',
        '{mobile}': invoice.mobile or '',
        '{invoice_no}': invoice.invoice_no or '',
        '{device_name}': invoice.device_type or '',
        '{model}': '',
        '{color}': '',
        '{problem}': invoice.problem or '',
        '{repair_status}': str(invoice.device_status or ''),
        '{part_status}': '',
        '{expected_part_arrival_date}': '',
        '{shop_name}': settings.shop_name or '',
        '{shop_phone}': settings.shop_phone or '',
        '{final_cost}': format_amount(invoice.agreed_price),
        '{created_at}': format_created_at(invoice.created_at),
    }


def render_template(body: str, invoice, settings) -> str:
    """Replace every known placeholder in ``body``; unknown ``{tokens}`` are kept."""
    rendered = body or ''
    for token, value in build_replacements(invoice, settings).items():
        rendered = rendered.replace(token, value)
    return rendered

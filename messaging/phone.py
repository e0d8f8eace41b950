"""Saudi mobile number helpers.

All stored mobiles use the canonical ``+9665XXXXXXXX`` form. The functions
here are pure so the presentation layer can reuse them for previews.
"""

import re

import phonenumbers

KSA_MOBILE_RE = re.compile(r'^\+9665\d{8}$')
_LOCAL_MOBILE_RE = re.compile(r'^05\d{8}$')
_BARE_MOBILE_RE = re.compile(r'^5\d{8}$')
_STRIP_RE = re.compile(r'[^\d+]')


def normalize_mobile(raw: str) -> str:
    """Rewrite common Saudi input formats into ``+9665XXXXXXXX``.

    ``0512345678``, ``512345678``, ``00966512345678`` and ``966512345678``
    all become ``+966512345678``. Anything unrecognised is returned with only
    digits and ``+`` kept, and may still be invalid.
    """
    cleaned = _STRIP_RE.sub('', raw or '')

    if cleaned.startswith('00'):
        return '+' + cleaned[2:]
    if _LOCAL_MOBILE_RE.match(cleaned):
        return '+966' + cleaned[1:]
    if _BARE_MOBILE_RE.match(cleaned):
        return '+966' + cleaned
    if cleaned.startswith('966'):
        return '+' + cleaned
    return cleaned


def is_valid_ksa_mobile(raw: str) -> bool:
    return bool(KSA_MOBILE_RE.match(normalize_mobile(raw)))


def format_mobile_display(raw: str | None) -> str:
    """National format for receipts and lists (``051 234 5678``).

    Falls back to the stored value when it cannot be parsed.
    """
    if not raw:
        return ''
    try:
        parsed = phonenumbers.parse(normalize_mobile(raw), 'SA')
    except phonenumbers.NumberParseException:
        return raw
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.NATIONAL)

"""Invoice number allocation.

Numbers come from a single global counter row. One allocation attempt runs in
its own transaction together with the invoice insert, so a number is only ever
visible on a committed invoice. Retrying lost races is the caller's job.
"""

import structlog
from django.db import IntegrityError, OperationalError, transaction

from core.exceptions import AllocationConflict

logger = structlog.get_logger(__name__)

GLOBAL_COUNTER_KEY = 'GLOBAL'
INVOICE_COUNTER_FLOOR = 10498
FIRST_INVOICE_NUMBER = INVOICE_COUNTER_FLOOR + 1
MAX_ALLOCATION_ATTEMPTS = 2

# Serialization failure and deadlock on PostgreSQL.
_RETRYABLE_SQLSTATES = frozenset({'40001', '40P01'})


def format_invoice_no(counter: int) -> str:
    if counter >= 10000:
        return str(counter)
    return str(counter).zfill(6)


def next_counter_value(base: int) -> int:
    return max(base + 1, FIRST_INVOICE_NUMBER)


def is_lock_conflict(exc) -> bool:
    """True when ``exc`` is a lock or serialization abort that a fresh attempt can clear."""
    cause = exc.__cause__
    sqlstate = getattr(cause, 'sqlstate', None) or getattr(cause, 'pgcode', None)
    if sqlstate in _RETRYABLE_SQLSTATES:
        return True
    return 'database is locked' in str(exc)


def allocate_and_create(build_invoice):
    """Reserve the next number and insert the invoice built by ``build_invoice(invoice_no)``.

    Raises :class:`AllocationConflict` when another allocator won the counter,
    the number already exists, or the database aborted the attempt on a lock
    or serialization conflict; any other database error propagates.
    """
    from .models import Invoice, InvoiceCounter

    invoice_no = None
    try:
        with transaction.atomic():
            InvoiceCounter.objects.ensure_global()
            base = InvoiceCounter.objects.read_global_for_update()
            advanced = InvoiceCounter.objects.try_advance(base)
            if advanced is None:
                raise AllocationConflict(f"counter moved past {base}")

            invoice_no = format_invoice_no(advanced)
            invoice = build_invoice(invoice_no)
            invoice.save(force_insert=True)
    except IntegrityError as exc:
        # Only a duplicate number is a numbering race; anything else is a real error.
        if invoice_no is not None and Invoice.objects.filter(invoice_no=invoice_no).exists():
            raise AllocationConflict(f"invoice number {invoice_no} already taken") from exc
        raise
    except OperationalError as exc:
        if is_lock_conflict(exc):
            raise AllocationConflict(f"lock conflict: {exc}") from exc
        raise

    return invoice

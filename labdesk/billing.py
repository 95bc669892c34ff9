"""
Invoice computation rules

Totals are plain arithmetic over caller-supplied numbers: nothing here
validates, rounds or clamps. A discount larger than the subtotal yields a
negative final amount and a NaN price yields a NaN total.
"""
from collections.abc import Mapping

from labdesk.security import Action, has_permission

INVOICE_PREFIX = 'INV'
INVOICE_STATUSES = ['draft', 'finalized', 'paid', 'cancelled']


def _field(item, name):
    if isinstance(item, Mapping):
        return item[name]
    return getattr(item, name)


def compute_line_total(item):
    """Price times quantity for one line item"""
    return _field(item, 'price') * _field(item, 'quantity')


def compute_subtotal(items):
    """Sum of price x quantity over all line items"""
    return sum((compute_line_total(item) for item in items), 0)


def compute_final_amount(subtotal, discount):
    """Subtotal less an absolute discount, unclamped"""
    return subtotal - discount


def compute_invoice_totals(items, discount):
    """Compute the subtotal and final amount of an invoice"""
    subtotal = compute_subtotal(items)
    return {
        'subtotal': subtotal,
        'final_amount': compute_final_amount(subtotal, discount),
    }


def generate_invoice_number(current_count, width=4):
    """Sequential invoice number, e.g. INV0001 for the first invoice

    Derived from the number of stored invoices, so numbers repeat once
    invoices have been deleted.
    """
    return f"{INVOICE_PREFIX}{str(current_count + 1).zfill(width)}"


def can_edit_invoice(user, invoice):
    """Editing needs invoices:edit, and invoices:unlock once the invoice is locked"""
    if not has_permission(user, 'invoices', Action.EDIT):
        return False
    if invoice.is_locked and not has_permission(user, 'invoices', Action.UNLOCK):
        return False
    return True


def can_delete_invoice(user, invoice):
    """Locked invoices cannot be deleted by anyone"""
    return not invoice.is_locked and has_permission(user, 'invoices', Action.DELETE)


REPORT_STATUSES = ['pending', 'in_progress', 'completed', 'verified', 'locked']


def can_edit_report(user, report):
    """Same shape as invoices, with the 'locked' status acting as the lock"""
    if not has_permission(user, 'reports', Action.EDIT):
        return False
    if report.status == 'locked' and not has_permission(user, 'reports', Action.UNLOCK):
        return False
    return True


def can_verify_report(user, report):
    """Only completed reports can be verified"""
    return report.status == 'completed' and has_permission(user, 'reports', Action.VERIFY)


def can_delete_report(user, report):
    return report.status != 'locked' and has_permission(user, 'reports', Action.DELETE)

"""
Ledger reconciliation: the pure computation that maps an invoice's line items,
discount, tax flag and payments to its totals, balance due and status.

Every function here is side-effect free. Callers always reconcile from the
full item and payment lists; there is no incremental update path.
"""
from typing import Iterable, List, Optional, Sequence
from app.config import settings
from app.schemas.invoice import InvoiceRecord, InvoiceTotals


def line_amount(item) -> float:
    """quantity x unit price"""
    return float(item.quantity) * float(item.unit_price)


def compute_subtotal(items: Iterable) -> float:
    return sum((line_amount(item) for item in items), 0.0)


def compute_tax(items: Iterable, tax_enabled: bool) -> float:
    """
    Per-line tax: each line is taxed at its own rate, so one invoice can mix rates.

    Returns 0 when tax is disabled for the invoice.
    """
    if not tax_enabled:
        return 0.0
    return sum((line_amount(item) * float(item.tax_rate or 0) / 100 for item in items), 0.0)


def compute_amount_paid(payments: Iterable) -> float:
    return sum((float(p.amount) for p in payments), 0.0)


def derive_status(total: float, amount_paid: float, epsilon: Optional[float] = None) -> str:
    """
    Status is a pure function of (total, amount_paid):
    - paid: amount_paid >= total
    - partial: 0 < amount_paid < total
    - unpaid: amount_paid == 0

    The paid check runs first, so a zero-total invoice with nothing paid is "paid".
    """
    eps = settings.money_epsilon if epsilon is None else epsilon
    if amount_paid >= total - eps:
        return "paid"
    if amount_paid > eps:
        return "partial"
    return "unpaid"


def compute_balance_due(total: float, amount_paid: float, epsilon: Optional[float] = None) -> float:
    """total - amount_paid, floored at zero (overpayment never shows as a negative balance)"""
    eps = settings.money_epsilon if epsilon is None else epsilon
    balance = total - amount_paid
    return balance if balance > eps else 0.0


def reconcile(
    items: Sequence,
    discount: float,
    tax_enabled: bool,
    payments: Sequence,
) -> InvoiceTotals:
    """
    Full reconciliation of one invoice.

    Discount is applied as given; callers are responsible for keeping it within
    the subtotal (a larger discount yields a negative total).
    """
    subtotal = compute_subtotal(items)
    tax_amount = compute_tax(items, tax_enabled)
    total = subtotal - float(discount or 0) + tax_amount
    amount_paid = compute_amount_paid(payments)

    return InvoiceTotals(
        subtotal=subtotal,
        tax_amount=tax_amount,
        total=total,
        amount_paid=amount_paid,
        balance_due=compute_balance_due(total, amount_paid),
        status=derive_status(total, amount_paid),
    )


def reconcile_invoice(invoice: InvoiceRecord) -> InvoiceTotals:
    return reconcile(invoice.items, invoice.discount, invoice.tax_enabled, invoice.payments)


def apply_totals(invoice: InvoiceRecord, totals: InvoiceTotals) -> InvoiceRecord:
    """Return a copy of the invoice with its cached ledger fields set from a reconciliation"""
    return invoice.model_copy(update={
        "subtotal": totals.subtotal,
        "tax_amount": totals.tax_amount,
        "total": totals.total,
        "paid": totals.amount_paid,
        "status": totals.status,
    })


def find_ledger_drift(invoice: InvoiceRecord) -> List[str]:
    """
    Compare an invoice's cached fields against a fresh reconciliation.

    Returns the names of the fields that disagree (empty when consistent).
    """
    totals = reconcile_invoice(invoice)
    eps = settings.money_epsilon
    drift = []

    cached = {
        "subtotal": (invoice.subtotal, totals.subtotal),
        "tax_amount": (invoice.tax_amount, totals.tax_amount),
        "total": (invoice.total, totals.total),
        "paid": (invoice.paid, totals.amount_paid),
    }
    for field, (stored, computed) in cached.items():
        if abs(float(stored) - computed) > eps:
            drift.append(field)

    if invoice.status != totals.status:
        drift.append("status")

    return drift

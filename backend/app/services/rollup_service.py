"""
Contact balance rollup.

total_paid is derived by joining payment records to the contact's invoices
by invoice id, not by summing each invoice's cached paid amount. Both
derivations must agree; check_rollup_consistency compares them.
"""
from typing import Dict, Iterable, List
from app.config import settings
from app.schemas.contact import ContactRecord, ContactRollup
from app.schemas.invoice import InvoiceRecord
from app.schemas.payment import PaymentRecord
from app.schemas.report import RollupMismatch


def contact_rollup(
    contact_id: str,
    invoices: Iterable[InvoiceRecord],
    payments: Iterable[PaymentRecord],
) -> ContactRollup:
    related = [inv for inv in invoices if inv.customer_id == contact_id]
    related_ids = {inv.id for inv in related}

    total_billed = sum((inv.total for inv in related), 0.0)
    total_paid = sum((p.amount for p in payments if p.invoice_id in related_ids), 0.0)

    return ContactRollup(
        contact_id=contact_id,
        invoice_count=len(related),
        total_billed=total_billed,
        total_paid=total_paid,
        balance=total_billed - total_paid,
    )


def paid_by_invoice_cache(contact_id: str, invoices: Iterable[InvoiceRecord]) -> float:
    """Second derivation: sum of each related invoice's own cached paid amount"""
    return sum((inv.paid for inv in invoices if inv.customer_id == contact_id), 0.0)


def rollups_by_contact(
    contacts: Iterable[ContactRecord],
    invoices: List[InvoiceRecord],
    payments: List[PaymentRecord],
) -> Dict[str, ContactRollup]:
    return {c.id: contact_rollup(c.id, invoices, payments) for c in contacts}


def total_receivable(
    contacts: Iterable[ContactRecord],
    invoices: List[InvoiceRecord],
    payments: List[PaymentRecord],
) -> float:
    """Sum of outstanding balances across customer-type contacts"""
    customers = [c for c in contacts if c.type == "customer"]
    return sum((r.balance for r in rollups_by_contact(customers, invoices, payments).values()), 0.0)


def check_rollup_consistency(
    contacts: Iterable[ContactRecord],
    invoices: List[InvoiceRecord],
    payments: List[PaymentRecord],
) -> List[RollupMismatch]:
    mismatches = []
    for contact in contacts:
        joined = contact_rollup(contact.id, invoices, payments).total_paid
        cached = paid_by_invoice_cache(contact.id, invoices)
        if abs(joined - cached) > settings.money_epsilon:
            mismatches.append(RollupMismatch(
                contact_id=contact.id,
                paid_by_payment_join=joined,
                paid_by_invoice_cache=cached,
            ))
    return mismatches

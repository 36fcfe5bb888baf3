from datetime import date

from app.schemas.contact import ContactCreate, ContactRecord
from app.schemas.invoice import InvoiceCreate, InvoiceRecord, LineItemInput
from app.schemas.payment import PaymentCreate, PaymentRecord
from app.services import contact_service, rollup_service
from app.services.invoice_service import invoice_service


def _contact(cid, contact_type="customer"):
    return ContactRecord(id=cid, business_id="b", name=cid, phone="1", type=contact_type)


def _invoice(iid, customer_id, total, paid=0.0):
    return InvoiceRecord(
        id=iid, business_id="b", invoice_no=f"INV-2024-{iid}", sequence=1,
        date=date(2024, 3, 1), customer_id=customer_id, total=total, paid=paid,
    )


def _payment(pid, invoice_id, amount):
    return PaymentRecord(id=pid, invoice_id=invoice_id, date=date(2024, 3, 2), amount=amount)


def test_rollup_joins_payments_by_invoice():
    invoices = [_invoice("1", "c1", 100, 60), _invoice("2", "c1", 50, 0), _invoice("3", "c2", 70, 70)]
    payments = [_payment("a", "1", 40), _payment("b", "1", 20), _payment("c", "3", 70)]

    rollup = rollup_service.contact_rollup("c1", invoices, payments)
    assert rollup.invoice_count == 2
    assert rollup.total_billed == 150
    assert rollup.total_paid == 60
    assert rollup.balance == 90


def test_rollup_for_contact_without_invoices_is_zero():
    rollup = rollup_service.contact_rollup("nobody", [_invoice("1", "c1", 100)], [])
    assert (rollup.invoice_count, rollup.total_billed, rollup.total_paid, rollup.balance) == (0, 0, 0, 0)


def test_total_receivable_counts_customers_only():
    contacts = [_contact("c1"), _contact("s1", "supplier")]
    invoices = [_invoice("1", "c1", 100), _invoice("2", "s1", 500)]
    assert rollup_service.total_receivable(contacts, invoices, []) == 100


def test_consistency_check_flags_disagreeing_derivations():
    contacts = [_contact("c1"), _contact("c2")]
    # c1's cached paid says 100 but only 40 was actually recorded
    invoices = [_invoice("1", "c1", 100, paid=100), _invoice("2", "c2", 50, paid=50)]
    payments = [_payment("a", "1", 40), _payment("b", "2", 50)]

    mismatches = rollup_service.check_rollup_consistency(contacts, invoices, payments)
    assert [m.contact_id for m in mismatches] == ["c1"]
    assert mismatches[0].paid_by_payment_join == 40
    assert mismatches[0].paid_by_invoice_cache == 100


def test_service_rollup_stays_consistent_through_lifecycle(repos, business_id, customer, scenario_a):
    invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=300))
    second = invoice_service.create_invoice(repos, business_id, InvoiceCreate(
        customer_id=customer.id,
        items=[LineItemInput(name="Lamp", quantity=1, unit_price=100, tax_rate=0)],
        initial_payment=PaymentCreate(amount=100),
    ))
    paid_twice = invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=200))
    invoice_service.delete_payment(repos, business_id, scenario_a.id, paid_twice.payment.id)

    rollup = contact_service.get_contact_rollup(repos, business_id, customer.id)
    assert rollup.invoice_count == 2
    assert rollup.total_billed == 1200
    assert rollup.total_paid == 400
    assert rollup.balance == 800
    assert second.invoice.status == "paid"

    mismatches = rollup_service.check_rollup_consistency(
        repos.contacts.list(business_id),
        repos.invoices.list(business_id),
        repos.payments.list(business_id),
    )
    assert mismatches == []

from datetime import date, timedelta

import pytest

from app.exceptions import LedgerIntegrityError, LedgerValidationError, NotFoundError
from app.schemas.contact import ContactCreate
from app.schemas.invoice import InvoiceCreate, InvoiceUpdate, LineItemInput
from app.schemas.payment import PaymentCreate
from app.schemas.product import ProductCreate, ProductUpdate
from app.services import contact_service, product_service
from app.services.business_service import get_or_create_business
from app.services.invoice_service import invoice_service


def _create(repos, business_id, customer_id, **kwargs):
    data = InvoiceCreate(
        customer_id=customer_id,
        items=kwargs.pop("items", [LineItemInput(name="Desk", quantity=2, unit_price=500, tax_rate=10)]),
        **kwargs,
    )
    return invoice_service.create_invoice(repos, business_id, data)


def test_scenario_a_create_invoice(repos, business_id, scenario_a):
    assert scenario_a.subtotal == 1000
    assert scenario_a.tax_amount == 100
    assert scenario_a.total == 1100
    assert scenario_a.status == "unpaid"
    assert scenario_a.balance_due == 1100

    stored = invoice_service.get_invoice(repos, business_id, scenario_a.id)
    assert stored.total == 1100
    assert stored.paid == 0


def test_invoice_number_uses_prefix_year_and_sequence(repos, business_id, customer):
    result = _create(repos, business_id, customer.id)
    assert result.invoice_no == f"INV-{date.today().year}-001"
    assert result.invoice.sequence == 1


def test_scenario_b_full_payment(repos, business_id, scenario_a):
    result = invoice_service.record_payment(
        repos, business_id, scenario_a.id, PaymentCreate(amount=1100, method="bank")
    )
    assert result.invoice.status == "paid"
    assert result.invoice.balance_due == 0
    assert result.warnings == []
    assert result.payment.method == "bank"


def test_scenario_c_partial_payment(repos, business_id, scenario_a):
    result = invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=500))
    assert result.invoice.status == "partial"
    assert result.invoice.balance_due == 600
    assert result.invoice.paid == 500


def test_scenario_d_delete_payment_reverts_status(repos, business_id, scenario_a):
    paid = invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=500))
    result = invoice_service.delete_payment(repos, business_id, scenario_a.id, paid.payment.id)

    assert result.invoice.status == "unpaid"
    assert result.invoice.balance_due == 1100
    assert result.invoice.payments == []
    assert repos.payments.list(business_id) == []


def test_scenario_e_overpayment_warns_but_succeeds(repos, business_id, scenario_a):
    result = invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=1500))

    assert result.invoice.paid == 1500
    assert result.invoice.balance_due == 0
    assert result.invoice.status == "paid"
    assert [w.code for w in result.warnings] == ["overpayment"]


def test_scenario_f_sequence_numbers_are_never_reused(repos, business_id, customer):
    first = _create(repos, business_id, customer.id)
    second = _create(repos, business_id, customer.id)
    invoice_service.delete_invoice(repos, business_id, second.invoice.id)
    third = _create(repos, business_id, customer.id)

    assert [first.invoice.sequence, second.invoice.sequence, third.invoice.sequence] == [1, 2, 3]
    assert third.invoice_no.endswith("-003")


def test_payments_accumulate_in_recording_order(repos, business_id, scenario_a):
    invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=300, note="first"))
    result = invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=200, note="second"))

    assert [p.note for p in result.invoice.payments] == ["first", "second"]
    assert result.invoice.paid == 500
    stored = invoice_service.get_invoice(repos, business_id, scenario_a.id)
    assert [p.amount for p in stored.payments] == [300, 200]


def test_initial_payment_is_recorded_on_create(repos, business_id, customer):
    result = _create(repos, business_id, customer.id, initial_payment=PaymentCreate(amount=400))
    assert result.invoice.status == "partial"
    assert result.invoice.paid == 400
    assert len(result.invoice.payments) == 1
    assert result.payment.amount == 400


def test_create_requires_customer(repos, business_id):
    with pytest.raises(LedgerValidationError, match="select a customer"):
        _create(repos, business_id, None)
    assert repos.invoices.list(business_id) == []


def test_create_requires_items(repos, business_id, customer):
    with pytest.raises(LedgerValidationError, match="at least one product"):
        _create(repos, business_id, customer.id, items=[])


def test_create_rejects_unknown_customer(repos, business_id):
    with pytest.raises(NotFoundError):
        _create(repos, business_id, "missing")


def test_create_rejects_supplier(repos, business_id):
    supplier = contact_service.add_contact(
        repos, business_id, ContactCreate(name="Bulk Supply Co", phone="555-0199", type="supplier")
    )
    with pytest.raises(LedgerValidationError):
        _create(repos, business_id, supplier.id)


def test_create_rejects_discount_above_subtotal(repos, business_id, customer):
    with pytest.raises(LedgerValidationError, match="Discount"):
        _create(repos, business_id, customer.id, discount=1500)


def test_failed_validation_does_not_consume_a_number(repos, business_id, customer):
    with pytest.raises(LedgerValidationError):
        _create(repos, business_id, customer.id, discount=1500)
    result = _create(repos, business_id, customer.id)
    assert result.invoice.sequence == 1


@pytest.mark.parametrize("amount", [0, -10])
def test_payment_amount_must_be_positive(repos, business_id, scenario_a, amount):
    with pytest.raises(LedgerValidationError):
        invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=amount))
    stored = invoice_service.get_invoice(repos, business_id, scenario_a.id)
    assert stored.payments == []


@pytest.mark.parametrize("amount", [float("inf"), float("nan")])
def test_payment_amount_must_be_finite(repos, business_id, scenario_a, amount):
    # model_construct skips schema validation, as a caller building records directly would
    payment = PaymentCreate.model_construct(amount=amount)
    with pytest.raises(LedgerValidationError):
        invoice_service.record_payment(repos, business_id, scenario_a.id, payment)
    stored = invoice_service.get_invoice(repos, business_id, scenario_a.id)
    assert stored.paid == 0


def test_payment_on_missing_invoice(repos, business_id):
    with pytest.raises(NotFoundError):
        invoice_service.record_payment(repos, business_id, "missing", PaymentCreate(amount=10))


def test_delete_unknown_payment(repos, business_id, scenario_a):
    with pytest.raises(NotFoundError):
        invoice_service.delete_payment(repos, business_id, scenario_a.id, "missing")


def test_line_items_snapshot_product_and_fall_back_to_business_tax(repos, business_id, customer):
    business = get_or_create_business(repos, business_id)
    taxed = product_service.add_product(repos, business_id, ProductCreate(name="Lamp", sale_price=40, tax_rate=5))
    untaxed = product_service.add_product(repos, business_id, ProductCreate(name="Bulb", sale_price=2, unit="BOX"))

    result = _create(repos, business_id, customer.id, items=[
        LineItemInput(product_id=taxed.id),
        LineItemInput(product_id=untaxed.id, quantity=5),
    ])
    lamp, bulb = result.invoice.items
    assert (lamp.name, lamp.unit_price, lamp.tax_rate) == ("Lamp", 40, 5)
    assert (bulb.unit, bulb.tax_rate, bulb.amount) == ("BOX", business.tax_rate, 10)

    # Later price changes do not touch the invoice
    product_service.update_product(repos, business_id, taxed.id, ProductUpdate(sale_price=99))
    stored = invoice_service.get_invoice(repos, business_id, result.invoice.id)
    assert stored.items[0].unit_price == 40


def test_same_product_twice_merges_into_one_line(repos, business_id, customer):
    product = product_service.add_product(repos, business_id, ProductCreate(name="Mug", sale_price=8, tax_rate=0))
    result = _create(repos, business_id, customer.id, items=[
        LineItemInput(product_id=product.id),
        LineItemInput(product_id=product.id),
    ])
    assert len(result.invoice.items) == 1
    assert result.invoice.items[0].quantity == 2
    assert result.invoice.total == 16


def test_invoice_creation_does_not_change_stock(repos, business_id, customer):
    product = product_service.add_product(repos, business_id, ProductCreate(name="Mug", sale_price=8, stock=10))
    _create(repos, business_id, customer.id, items=[LineItemInput(product_id=product.id, quantity=3)])
    assert product_service.get_product(repos, business_id, product.id).stock == 10


def test_update_items_keeps_payments_and_recomputes_status(repos, business_id, scenario_a):
    invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=500))
    result = invoice_service.update_invoice(repos, business_id, scenario_a.id, InvoiceUpdate(
        items=[LineItemInput(name="Stool", quantity=1, unit_price=400, tax_rate=0)],
    ))

    assert result.invoice.total == 400
    assert result.invoice.paid == 500
    assert result.invoice.status == "paid"
    assert result.invoice.balance_due == 0
    assert len(result.invoice.payments) == 1


def test_update_discount_and_tax_flag(repos, business_id, scenario_a):
    result = invoice_service.update_invoice(
        repos, business_id, scenario_a.id, InvoiceUpdate(discount=200, tax_enabled=False)
    )
    assert result.invoice.tax_amount == 0
    assert result.invoice.total == 800
    assert result.invoice.invoice_no == scenario_a.invoice_no


def test_update_rejects_empty_items(repos, business_id, scenario_a):
    with pytest.raises(LedgerValidationError):
        invoice_service.update_invoice(repos, business_id, scenario_a.id, InvoiceUpdate(items=[]))


def test_delete_invoice_removes_its_payments(repos, business_id, scenario_a):
    invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=100))
    invoice_service.delete_invoice(repos, business_id, scenario_a.id)

    assert repos.invoices.list(business_id) == []
    assert repos.payments.list(business_id) == []
    with pytest.raises(NotFoundError):
        invoice_service.delete_invoice(repos, business_id, scenario_a.id)


def test_deleted_customer_displays_as_unknown(repos, business_id, customer, scenario_a):
    contact_service.delete_contact(repos, business_id, customer.id)

    names = invoice_service.customer_names(repos, business_id)
    stored = invoice_service.get_invoice(repos, business_id, scenario_a.id)
    assert invoice_service.to_response(stored, names).customer_name == "Unknown"


def test_list_invoices_search_status_and_order(repos, business_id, customer):
    old = _create(repos, business_id, customer.id, date=date(2024, 1, 5))
    new = _create(repos, business_id, customer.id, date=date(2024, 2, 5))
    invoice_service.record_payment(repos, business_id, old.invoice.id, PaymentCreate(amount=1100))

    listed = invoice_service.list_invoices(repos, business_id)
    assert [inv.id for inv in listed] == [new.invoice.id, old.invoice.id]

    paid = invoice_service.list_invoices(repos, business_id, status="paid")
    assert [inv.id for inv in paid] == [old.invoice.id]

    assert len(invoice_service.list_invoices(repos, business_id, search="asha")) == 2
    assert [inv.id for inv in invoice_service.list_invoices(repos, business_id, search="-002")] == [new.invoice.id]


def test_timestamps_are_utc_aware(repos, business_id, customer):
    _create(repos, business_id, customer.id, date=date(2024, 3, 1))
    result = _create(repos, business_id, customer.id, date=date(2024, 3, 1))
    result = invoice_service.record_payment(repos, business_id, result.invoice.id, PaymentCreate(amount=10))
    assert result.payment.created_at.utcoffset() == timedelta(0)

    # Same date, so ordering falls through to the stored creation time
    listed = invoice_service.list_invoices(repos, business_id)
    assert len(listed) == 2
    assert all(inv.created_at.utcoffset() == timedelta(0) for inv in listed)
    assert all(p.created_at.tzinfo is not None for inv in listed for p in inv.payments)


def test_summary_totals(repos, business_id, scenario_a):
    invoice_service.record_payment(repos, business_id, scenario_a.id, PaymentCreate(amount=100))
    summary = invoice_service.summarize(repos.invoices.list(business_id))
    assert summary.invoice_count == 1
    assert summary.total_revenue == 1100
    assert summary.amount_received == 100
    assert summary.pending_amount == 1000


def test_drifted_invoice_refuses_further_mutation(snapshot_repos, business_id):
    customer = contact_service.add_contact(snapshot_repos, business_id, ContactCreate(name="Ravi", phone="1"))
    created = _create(snapshot_repos, business_id, customer.id)

    # Corrupt the cached paid amount behind the service's back
    stored = snapshot_repos.invoices.get(business_id, created.invoice.id)
    snapshot_repos.invoices.save(stored.model_copy(update={"paid": 50.0}))

    with pytest.raises(LedgerIntegrityError) as excinfo:
        invoice_service.record_payment(snapshot_repos, business_id, created.invoice.id, PaymentCreate(amount=10))
    assert "paid" in excinfo.value.fields


def test_preview_next_number_does_not_reserve(repos, business_id, customer):
    year = date.today().year
    assert invoice_service.preview_next_number(repos, business_id) == f"INV-{year}-001"
    assert invoice_service.preview_next_number(repos, business_id) == f"INV-{year}-001"
    _create(repos, business_id, customer.id)
    assert invoice_service.preview_next_number(repos, business_id) == f"INV-{year}-002"

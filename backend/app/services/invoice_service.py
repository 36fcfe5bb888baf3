"""
Invoice Service - lifecycle of the invoice aggregate.

Every mutation loads the invoice, checks its cached ledger fields against a
fresh reconciliation, applies the change, reconciles again from the full
item and payment lists and persists the result in one commit.
"""
import logging
import math
import uuid
from datetime import date
from typing import Dict, Iterable, List, Optional

from app.config import settings
from app.exceptions import LedgerIntegrityError, LedgerValidationError, NotFoundError
from app.repositories.base import Repositories
from app.schemas.business import BusinessProfile
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceMutationResult,
    InvoiceRecord,
    InvoiceResponse,
    InvoiceSummary,
    InvoiceUpdate,
    LedgerWarning,
    LineItem,
    LineItemInput,
)
from app.schemas.payment import PaymentCreate, PaymentRecord
from app.services import ledger
from app.services.business_service import get_or_create_business
from app.services.sync_service import publish_collection
from app.utils.numbering import format_invoice_number

logger = logging.getLogger(__name__)

UNKNOWN_CUSTOMER = "Unknown"


class InvoiceService:
    """Service for creating, editing and settling invoices"""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_invoice(self, repos: Repositories, business_id: str, invoice_id: str) -> InvoiceRecord:
        invoice = repos.invoices.get(business_id, invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def list_invoices(
        self,
        repos: Repositories,
        business_id: str,
        search: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[InvoiceRecord]:
        """Invoices matching a customer-name / invoice-number search and status, newest first"""
        invoices = repos.invoices.list(business_id)
        names = self.customer_names(repos, business_id)

        if status and status != "all":
            invoices = [inv for inv in invoices if inv.status == status]
        if search:
            needle = search.lower()
            invoices = [
                inv for inv in invoices
                if needle in self.display_name(inv, names).lower() or needle in inv.invoice_no.lower()
            ]

        invoices.sort(key=lambda inv: (inv.date, inv.created_at), reverse=True)
        return invoices

    def preview_next_number(self, repos: Repositories, business_id: str) -> str:
        """Number the next created invoice would get; nothing is reserved"""
        business = get_or_create_business(repos, business_id)
        sequence = repos.businesses.peek_invoice_sequence(business_id)
        return format_invoice_number(business.invoice_prefix, date.today().year, sequence)

    def customer_names(self, repos: Repositories, business_id: str) -> Dict[str, str]:
        return {c.id: c.name for c in repos.contacts.list(business_id)}

    def display_name(self, invoice: InvoiceRecord, names: Dict[str, str]) -> str:
        # Contacts are weak references: a deleted contact shows as "Unknown"
        return names.get(invoice.customer_id, UNKNOWN_CUSTOMER)

    def to_response(self, invoice: InvoiceRecord, names: Dict[str, str]) -> InvoiceResponse:
        return InvoiceResponse(
            **invoice.model_dump(),
            customer_name=self.display_name(invoice, names),
            balance_due=ledger.compute_balance_due(invoice.total, invoice.paid),
        )

    def to_list_item(self, invoice: InvoiceRecord, names: Dict[str, str]) -> InvoiceListResponse:
        return InvoiceListResponse(
            id=invoice.id,
            invoice_no=invoice.invoice_no,
            date=invoice.date,
            customer_id=invoice.customer_id,
            customer_name=self.display_name(invoice, names),
            total=invoice.total,
            paid=invoice.paid,
            balance_due=ledger.compute_balance_due(invoice.total, invoice.paid),
            status=invoice.status,
        )

    def summarize(self, invoices: Iterable[InvoiceRecord]) -> InvoiceSummary:
        invoices = list(invoices)
        revenue = sum((inv.total for inv in invoices), 0.0)
        received = sum((inv.paid for inv in invoices), 0.0)
        return InvoiceSummary(
            invoice_count=len(invoices),
            total_revenue=revenue,
            amount_received=received,
            pending_amount=revenue - received,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def build_line_items(
        self,
        repos: Repositories,
        business: BusinessProfile,
        items_in: List[LineItemInput],
    ) -> List[LineItem]:
        """
        Resolve submitted items into line items.

        Missing fields are snapshotted from the referenced product; the tax rate
        falls back to the product rate, then the business rate. Repeated
        references to the same product are merged into one line.
        """
        items: List[LineItem] = []
        by_product: Dict[str, int] = {}

        for item_in in items_in:
            product = None
            if item_in.product_id:
                product = repos.products.get(business.id, item_in.product_id)
                if product is None:
                    raise NotFoundError(f"Product {item_in.product_id} not found")

                if item_in.product_id in by_product:
                    index = by_product[item_in.product_id]
                    existing = items[index]
                    items[index] = LineItem(**{
                        **existing.model_dump(),
                        "quantity": existing.quantity + item_in.quantity,
                    })
                    continue

            name = item_in.name or (product.name if product else None)
            unit_price = item_in.unit_price if item_in.unit_price is not None else (
                product.sale_price if product else None
            )
            if not name or unit_price is None:
                raise LedgerValidationError("Each line item needs a product or a name and unit price")

            if item_in.tax_rate is not None:
                tax_rate = item_in.tax_rate
            elif product is not None and product.tax_rate is not None:
                tax_rate = product.tax_rate
            else:
                tax_rate = business.tax_rate

            items.append(LineItem(
                product_id=item_in.product_id,
                name=name,
                unit=item_in.unit or (product.unit if product else "PCS"),
                quantity=item_in.quantity,
                unit_price=unit_price,
                tax_rate=tax_rate,
            ))
            if item_in.product_id:
                by_product[item_in.product_id] = len(items) - 1

        return items

    def _require_customer(self, repos: Repositories, business_id: str, customer_id: Optional[str]):
        if not customer_id:
            raise LedgerValidationError("Please select a customer")
        contact = repos.contacts.get(business_id, customer_id)
        if contact is None:
            raise NotFoundError(f"Customer {customer_id} not found")
        if contact.type != "customer":
            raise LedgerValidationError("Invoices can only be raised for customers")
        return contact

    def _check_discount(self, items: List[LineItem], discount: float) -> None:
        subtotal = ledger.compute_subtotal(items)
        if discount > subtotal + settings.money_epsilon:
            raise LedgerValidationError(
                f"Discount ({discount:.2f}) cannot exceed the subtotal ({subtotal:.2f})"
            )

    def _check_payment_amount(self, amount: float) -> None:
        if not (math.isfinite(amount) and amount > 0):
            raise LedgerValidationError("Please enter a valid payment amount")

    def _overpayment_warning(self, amount: float, balance_due: float) -> Optional[LedgerWarning]:
        if amount > balance_due + settings.money_epsilon:
            return LedgerWarning(
                code="overpayment",
                message=f"Payment exceeds balance due. Balance: {balance_due:.2f}",
                details={"amount": amount, "balance_due": balance_due},
            )
        return None

    def _new_payment(self, invoice_id: str, data: PaymentCreate) -> PaymentRecord:
        return PaymentRecord(
            id=uuid.uuid4().hex,
            invoice_id=invoice_id,
            date=data.date,
            amount=data.amount,
            method=data.method,
            note=data.note,
        )

    def _load_verified(self, repos: Repositories, business_id: str, invoice_id: str) -> InvoiceRecord:
        invoice = self.get_invoice(repos, business_id, invoice_id)
        drift = ledger.find_ledger_drift(invoice)
        if drift:
            logger.error(f"Invoice {invoice.invoice_no} ledger drift detected: {drift}")
            raise LedgerIntegrityError(invoice.id, drift)
        return invoice

    def _persist(self, repos: Repositories, invoice: InvoiceRecord, is_new: bool = False) -> InvoiceRecord:
        """Reconcile, write and commit; the stored result is re-checked before commit"""
        invoice = ledger.apply_totals(invoice, ledger.reconcile_invoice(invoice))
        try:
            saved = repos.invoices.add(invoice) if is_new else repos.invoices.save(invoice)
            drift = ledger.find_ledger_drift(saved)
            if drift:
                raise LedgerIntegrityError(saved.id, drift)
            repos.commit()
        except Exception:
            repos.rollback()
            raise
        publish_collection(repos, invoice.business_id, "invoices")
        return saved

    def _result(
        self,
        repos: Repositories,
        invoice: InvoiceRecord,
        warnings: List[LedgerWarning],
        payment: Optional[PaymentRecord] = None,
    ) -> InvoiceMutationResult:
        names = self.customer_names(repos, invoice.business_id)
        return InvoiceMutationResult(
            invoice_no=invoice.invoice_no,
            invoice=self.to_response(invoice, names),
            payment=payment,
            warnings=warnings,
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_invoice(self, repos: Repositories, business_id: str, data: InvoiceCreate) -> InvoiceMutationResult:
        """
        Validate, allocate the next sequence number and persist a new invoice.

        Returns the generated invoice number, e.g. INV-2024-004.
        """
        contact = self._require_customer(repos, business_id, data.customer_id)
        if not data.items:
            raise LedgerValidationError("Please add at least one product")

        business = get_or_create_business(repos, business_id)
        items = self.build_line_items(repos, business, data.items)
        self._check_discount(items, data.discount)
        if data.initial_payment is not None:
            self._check_payment_amount(data.initial_payment.amount)

        # Allocated only after validation; a number is never handed out twice
        sequence = repos.businesses.allocate_invoice_sequence(business_id)
        invoice_no = format_invoice_number(business.invoice_prefix, date.today().year, sequence)

        invoice = InvoiceRecord(
            id=uuid.uuid4().hex,
            business_id=business_id,
            invoice_no=invoice_no,
            sequence=sequence,
            date=data.date,
            customer_id=contact.id,
            customer=contact.name,
            items=items,
            discount=data.discount,
            tax_enabled=data.tax_enabled,
            notes=data.notes,
        )

        warnings = []
        payment = None
        if data.initial_payment is not None:
            totals = ledger.reconcile_invoice(invoice)
            warning = self._overpayment_warning(data.initial_payment.amount, totals.balance_due)
            if warning:
                warnings.append(warning)
            payment = self._new_payment(invoice.id, data.initial_payment)
            invoice = invoice.model_copy(update={"payments": [payment]})

        saved = self._persist(repos, invoice, is_new=True)
        logger.info(f"Created invoice {saved.invoice_no} for {contact.name}: total {saved.total:.2f}, status {saved.status}")
        for warning in warnings:
            logger.warning(f"Invoice {saved.invoice_no}: {warning.message}")
        return self._result(repos, saved, warnings, payment)

    def record_payment(
        self,
        repos: Repositories,
        business_id: str,
        invoice_id: str,
        data: PaymentCreate,
    ) -> InvoiceMutationResult:
        """
        Append a payment record and re-reconcile.

        Overpayment is allowed: it produces a warning, and the balance due is
        floored at zero.
        """
        self._check_payment_amount(data.amount)
        invoice = self._load_verified(repos, business_id, invoice_id)

        warnings = []
        current = ledger.reconcile_invoice(invoice)
        warning = self._overpayment_warning(data.amount, current.balance_due)
        if warning:
            warnings.append(warning)
            logger.warning(f"Invoice {invoice.invoice_no}: {warning.message}")

        payment = self._new_payment(invoice.id, data)
        invoice = invoice.model_copy(update={"payments": [*invoice.payments, payment]})
        saved = self._persist(repos, invoice)

        logger.info(f"Recorded {payment.method} payment of {payment.amount:.2f} on {saved.invoice_no}: status {saved.status}")
        return self._result(repos, saved, warnings, payment)

    def delete_payment(
        self,
        repos: Repositories,
        business_id: str,
        invoice_id: str,
        payment_id: str,
    ) -> InvoiceMutationResult:
        invoice = self._load_verified(repos, business_id, invoice_id)
        remaining = [p for p in invoice.payments if p.id != payment_id]
        if len(remaining) == len(invoice.payments):
            raise NotFoundError(f"Payment {payment_id} not found on invoice {invoice_id}")

        saved = self._persist(repos, invoice.model_copy(update={"payments": remaining}))
        logger.info(f"Deleted payment {payment_id} from {saved.invoice_no}: status {saved.status}")
        return self._result(repos, saved, [])

    def update_invoice(
        self,
        repos: Repositories,
        business_id: str,
        invoice_id: str,
        data: InvoiceUpdate,
    ) -> InvoiceMutationResult:
        """
        Edit items, discount, tax flag, customer, date or notes and re-reconcile.

        Recorded payments are left alone, so reducing the total can leave the
        invoice overpaid (balance due 0, status paid).
        """
        invoice = self._load_verified(repos, business_id, invoice_id)
        changes = {}

        if data.customer_id is not None and data.customer_id != invoice.customer_id:
            contact = self._require_customer(repos, business_id, data.customer_id)
            changes.update(customer_id=contact.id, customer=contact.name)

        items = invoice.items
        if data.items is not None:
            if not data.items:
                raise LedgerValidationError("Please add at least one product")
            business = get_or_create_business(repos, business_id)
            items = self.build_line_items(repos, business, data.items)
            changes["items"] = items

        discount = invoice.discount if data.discount is None else data.discount
        self._check_discount(items, discount)
        changes["discount"] = discount

        if data.tax_enabled is not None:
            changes["tax_enabled"] = data.tax_enabled
        if data.notes is not None:
            changes["notes"] = data.notes
        if data.date is not None:
            changes["date"] = data.date

        saved = self._persist(repos, invoice.model_copy(update=changes))
        logger.info(f"Updated invoice {saved.invoice_no}: total {saved.total:.2f}, status {saved.status}")
        return self._result(repos, saved, [])

    def delete_invoice(self, repos: Repositories, business_id: str, invoice_id: str) -> None:
        """Hard delete of the invoice and its payments. The sequence number is not reused."""
        try:
            deleted = repos.invoices.delete(business_id, invoice_id)
            if not deleted:
                raise NotFoundError(f"Invoice {invoice_id} not found")
            repos.commit()
        except Exception:
            repos.rollback()
            raise
        logger.info(f"Deleted invoice {invoice_id}")
        publish_collection(repos, business_id, "invoices")


# Singleton instance
invoice_service = InvoiceService()

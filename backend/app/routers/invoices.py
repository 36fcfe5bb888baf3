from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from app.repositories import get_repositories
from app.repositories.base import Repositories
from app.routers.deps import get_business_id
from app.schemas.invoice import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceMutationResult,
    InvoiceResponse,
    InvoiceSummary,
    InvoiceUpdate,
)
from app.schemas.payment import PaymentCreate
from app.services.invoice_service import invoice_service

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get("", response_model=List[InvoiceListResponse])
def list_invoices(
    status: Optional[str] = Query(None, pattern="^(all|paid|partial|unpaid)$", description="Filter by status"),
    search: Optional[str] = Query(None, description="Search by customer name or invoice number"),
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """List invoices, newest first"""
    invoices = invoice_service.list_invoices(repos, business_id, search=search, status=status)
    names = invoice_service.customer_names(repos, business_id)
    return [invoice_service.to_list_item(inv, names) for inv in invoices]


@router.get("/summary", response_model=InvoiceSummary)
def get_invoice_summary(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Total revenue, amount received and pending amount over all invoices"""
    return invoice_service.summarize(repos.invoices.list(business_id))


@router.get("/next-number")
def get_next_invoice_number(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Preview of the number the next invoice will receive"""
    return {"invoice_no": invoice_service.preview_next_number(repos, business_id)}


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Get invoice detail with line items and payment history"""
    invoice = invoice_service.get_invoice(repos, business_id, invoice_id)
    return invoice_service.to_response(invoice, invoice_service.customer_names(repos, business_id))


@router.post("", response_model=InvoiceMutationResult, status_code=201)
def create_invoice(
    data: InvoiceCreate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """
    Create an invoice and assign the next invoice number.

    An optional initial_payment is recorded as the first payment.
    """
    return invoice_service.create_invoice(repos, business_id, data)


@router.put("/{invoice_id}", response_model=InvoiceMutationResult)
def update_invoice(
    invoice_id: str,
    data: InvoiceUpdate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Edit an invoice; totals and status are recomputed against existing payments"""
    return invoice_service.update_invoice(repos, business_id, invoice_id, data)


@router.delete("/{invoice_id}")
def delete_invoice(
    invoice_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    invoice_service.delete_invoice(repos, business_id, invoice_id)
    return {"message": "Invoice deleted"}


@router.post("/{invoice_id}/payments", response_model=InvoiceMutationResult, status_code=201)
def record_payment(
    invoice_id: str,
    data: PaymentCreate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """
    Record a payment against an invoice.

    Paying more than the balance due succeeds; the response carries an
    "overpayment" warning.
    """
    return invoice_service.record_payment(repos, business_id, invoice_id, data)


@router.delete("/{invoice_id}/payments/{payment_id}", response_model=InvoiceMutationResult)
def delete_payment(
    invoice_id: str,
    payment_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return invoice_service.delete_payment(repos, business_id, invoice_id, payment_id)

from fastapi import APIRouter, Depends, Query
from datetime import date
from typing import Optional
import logging

from app.config import settings
from app.repositories import get_repositories
from app.repositories.base import Repositories
from app.routers.deps import get_business_id
from app.schemas.report import DashboardResponse, IntegrityReport, SalesReport
from app.services import report_service
from app.services.invoice_service import invoice_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Headline numbers, charts and recent invoices for the dashboard"""
    invoices = repos.invoices.list(business_id)
    names = invoice_service.customer_names(repos, business_id)
    recent = [
        invoice_service.to_list_item(inv, names)
        for inv in invoice_service.list_invoices(repos, business_id)[:report_service.TOP_N]
    ]
    return report_service.build_dashboard(
        invoices,
        repos.products.list(business_id),
        repos.contacts.list(business_id),
        recent,
        today=date.today(),
    )


@router.get("/sales", response_model=SalesReport)
def get_sales_report(
    period: Optional[str] = Query(None, pattern="^(3m|6m|1y)$", description="Reporting window"),
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Monthly sales and tax, growth, category sales and payment status split"""
    return report_service.build_sales_report(
        repos.invoices.list(business_id),
        repos.products.list(business_id),
        today=date.today(),
        months=report_service.REPORT_PERIODS[period] if period else settings.report_default_months,
    )


@router.get("/integrity", response_model=IntegrityReport)
def get_integrity_report(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Verify cached invoice totals and contact balances against payment records"""
    report = report_service.build_integrity_report(
        repos.invoices.list(business_id),
        repos.contacts.list(business_id),
        repos.payments.list(business_id),
        today=date.today(),
    )
    if not report.ok:
        logger.error(
            f"Ledger integrity check failed for {business_id}: "
            f"{len(report.invoice_drift)} invoice(s) drifted, "
            f"{len(report.rollup_mismatches)} contact rollup mismatch(es)"
        )
    return report

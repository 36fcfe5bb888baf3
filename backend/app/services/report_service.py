"""
Dashboard and sales report aggregates.

All functions are pure reductions over already-loaded records and take the
reference day explicitly so results are reproducible.
"""
import math
from collections import OrderedDict
from datetime import date, timedelta
from typing import Dict, List, Optional

from app.schemas.contact import ContactRecord
from app.schemas.invoice import InvoiceListResponse, InvoiceRecord
from app.schemas.payment import PaymentRecord
from app.schemas.product import ProductRecord
from app.schemas.report import (
    DailyPoint,
    DashboardResponse,
    IntegrityReport,
    InvoiceDrift,
    MonthlyPoint,
    PaymentStatusShare,
    ProductSales,
    SalesReport,
    ShareSlice,
)
from app.services import ledger, rollup_service

REPORT_PERIODS = {"3m": 3, "6m": 6, "1y": 12}
TOP_N = 5


def _percent(part: float, whole: float) -> int:
    # Half-up rounding; an empty whole counts as 1
    return int(math.floor(part / (whole or 1) * 100 + 0.5))


def _month_start(today: date, months_back: int) -> date:
    index = today.year * 12 + today.month - 1 - months_back
    return date(index // 12, index % 12 + 1, 1)


def monthly_sales(invoices: List[InvoiceRecord], today: date, months: int = 6) -> List[MonthlyPoint]:
    """Sales, tax and invoice count per calendar month, oldest first, ending with today's month"""
    points = []
    for back in range(months - 1, -1, -1):
        start = _month_start(today, back)
        in_month = [inv for inv in invoices if inv.date.year == start.year and inv.date.month == start.month]
        points.append(MonthlyPoint(
            month=start.strftime("%Y-%m"),
            label=start.strftime("%b %y"),
            sales=sum((inv.total for inv in in_month), 0.0),
            tax=sum((inv.tax_amount for inv in in_month), 0.0),
            invoice_count=len(in_month),
        ))
    return points


def growth_percent(points: List[MonthlyPoint]) -> float:
    """Month-over-month sales growth; 0 when the previous month had no sales"""
    if len(points) < 2 or points[-2].sales <= 0:
        return 0.0
    current, previous = points[-1].sales, points[-2].sales
    return round((current - previous) / previous * 100, 1)


def daily_sales(invoices: List[InvoiceRecord], today: date, days: int = 7) -> List[DailyPoint]:
    points = []
    for back in range(days - 1, -1, -1):
        day = today - timedelta(days=back)
        points.append(DailyPoint(
            date=day,
            label=day.strftime("%a"),
            amount=sum((inv.total for inv in invoices if inv.date == day), 0.0),
        ))
    return points


def top_products(invoices: List[InvoiceRecord], limit: int = TOP_N) -> List[ProductSales]:
    """Best sellers by line amount, grouped by line item name"""
    totals: Dict[str, ProductSales] = OrderedDict()
    for inv in invoices:
        for item in inv.items:
            name = item.name or "Unknown Item"
            entry = totals.setdefault(name, ProductSales(name=name, sales=0.0, quantity=0.0))
            entry.sales += item.amount
            entry.quantity += item.quantity
    ranked = sorted(totals.values(), key=lambda p: p.sales, reverse=True)
    return ranked[:limit]


def category_share_by_count(products: List[ProductRecord], limit: int = TOP_N) -> List[ShareSlice]:
    """Percentage of catalogue products per category"""
    counts: Dict[str, int] = OrderedDict()
    for product in products:
        category = product.category or "Other"
        counts[category] = counts.get(category, 0) + 1
    slices = [ShareSlice(name=name, value=_percent(count, len(products))) for name, count in counts.items()]
    slices.sort(key=lambda s: s.value, reverse=True)
    return slices[:limit]


def category_sales(
    invoices: List[InvoiceRecord],
    products: List[ProductRecord],
    limit: int = TOP_N,
) -> List[ShareSlice]:
    """Invoiced amount per product category; lines without a live product are 'Uncategorized'"""
    categories = {p.id: p.category for p in products}
    totals: Dict[str, float] = OrderedDict()
    for inv in invoices:
        for item in inv.items:
            category = categories.get(item.product_id) or "Uncategorized"
            totals[category] = totals.get(category, 0.0) + item.amount
    slices = [ShareSlice(name=name, value=value) for name, value in totals.items()]
    slices.sort(key=lambda s: s.value, reverse=True)
    return slices[:limit]


def payment_status_share(invoices: List[InvoiceRecord]) -> PaymentStatusShare:
    paid = sum(1 for inv in invoices if inv.status == "paid")
    partial = sum(1 for inv in invoices if inv.status == "partial")
    unpaid = len(invoices) - paid - partial
    total = len(invoices)
    return PaymentStatusShare(
        paid=_percent(paid, total),
        partial=_percent(partial, total),
        unpaid=_percent(unpaid, total),
    )


def pending_payments(invoices: List[InvoiceRecord]) -> float:
    return sum((inv.total - inv.paid for inv in invoices if inv.status != "paid"), 0.0)


def build_dashboard(
    invoices: List[InvoiceRecord],
    products: List[ProductRecord],
    contacts: List[ContactRecord],
    recent_invoices: List[InvoiceListResponse],
    today: date,
) -> DashboardResponse:
    monthly = monthly_sales(invoices, today, months=6)
    daily = daily_sales(invoices, today)
    paid_count = sum(1 for inv in invoices if inv.status == "paid")

    return DashboardResponse(
        sales_today=daily[-1].amount,
        revenue_this_month=monthly[-1].sales,
        revenue_growth_percent=growth_percent(monthly),
        pending_payments=pending_payments(invoices),
        paid_invoice_count=paid_count,
        pending_invoice_count=len(invoices) - paid_count,
        customer_count=sum(1 for c in contacts if c.type == "customer"),
        product_count=len(products),
        low_stock_count=sum(1 for p in products if p.stock <= p.min_stock),
        monthly=monthly,
        daily=daily,
        top_products=top_products(invoices),
        category_share=category_share_by_count(products),
        recent_invoices=recent_invoices[:TOP_N],
    )


def build_sales_report(
    invoices: List[InvoiceRecord],
    products: List[ProductRecord],
    today: date,
    months: int = 6,
) -> SalesReport:
    points = monthly_sales(invoices, today, months=months)
    return SalesReport(
        months=points,
        sales_growth_percent=growth_percent(points),
        total_sales=sum((p.sales for p in points), 0.0),
        total_tax=sum((p.tax for p in points), 0.0),
        category_sales=category_sales(invoices, products),
        payment_status=payment_status_share(invoices),
    )


def build_integrity_report(
    invoices: List[InvoiceRecord],
    contacts: List[ContactRecord],
    payments: List[PaymentRecord],
    today: Optional[date] = None,
) -> IntegrityReport:
    """Cross-check every invoice's cached ledger fields and every contact's two paid totals"""
    drift = []
    for inv in invoices:
        fields = ledger.find_ledger_drift(inv)
        if fields:
            drift.append(InvoiceDrift(invoice_id=inv.id, invoice_no=inv.invoice_no, fields=fields))

    mismatches = rollup_service.check_rollup_consistency(contacts, invoices, payments)
    return IntegrityReport(
        ok=not drift and not mismatches,
        invoice_drift=drift,
        rollup_mismatches=mismatches,
        checked_on=today,
    )

from pydantic import BaseModel
from typing import List, Optional
from datetime import date
from app.schemas.invoice import InvoiceListResponse


class MonthlyPoint(BaseModel):
    month: str  # YYYY-MM
    label: str  # e.g., "Mar 24"
    sales: float
    tax: float
    invoice_count: int


class DailyPoint(BaseModel):
    date: date
    label: str  # weekday abbreviation
    amount: float


class ProductSales(BaseModel):
    name: str
    sales: float
    quantity: float


class ShareSlice(BaseModel):
    name: str
    value: float  # Percentage (rounded) or amount, see the owning report


class PaymentStatusShare(BaseModel):
    paid: int
    partial: int
    unpaid: int


class SalesReport(BaseModel):
    months: List[MonthlyPoint]
    sales_growth_percent: float
    total_sales: float
    total_tax: float
    category_sales: List[ShareSlice]
    payment_status: PaymentStatusShare


class DashboardResponse(BaseModel):
    sales_today: float
    revenue_this_month: float
    revenue_growth_percent: float
    pending_payments: float
    paid_invoice_count: int
    pending_invoice_count: int
    customer_count: int
    product_count: int
    low_stock_count: int
    monthly: List[MonthlyPoint]
    daily: List[DailyPoint]
    top_products: List[ProductSales]
    category_share: List[ShareSlice]
    recent_invoices: List[InvoiceListResponse]


class InvoiceDrift(BaseModel):
    invoice_id: str
    invoice_no: str
    fields: List[str]


class RollupMismatch(BaseModel):
    contact_id: str
    paid_by_payment_join: float
    paid_by_invoice_cache: float


class IntegrityReport(BaseModel):
    ok: bool
    invoice_drift: List[InvoiceDrift] = []
    rollup_mismatches: List[RollupMismatch] = []
    checked_on: Optional[date] = None

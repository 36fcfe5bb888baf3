import datetime as dt
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import List, Literal, Optional
from app.schemas.payment import PaymentCreate, PaymentRecord, as_utc, utc_now


InvoiceStatus = Literal["unpaid", "partial", "paid"]


class LineItemInput(BaseModel):
    """
    Line item as submitted by a client.

    When product_id is given, any missing name/unit/price/tax rate is copied
    from the product at add-time (a snapshot, not a live link).
    """
    product_id: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    quantity: float = Field(1.0, gt=0, allow_inf_nan=False)
    unit_price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    tax_rate: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class LineItem(BaseModel):
    product_id: Optional[str] = None
    name: str
    unit: str = "PCS"
    quantity: float = Field(..., gt=0, allow_inf_nan=False)
    unit_price: float = Field(..., ge=0, allow_inf_nan=False)
    tax_rate: float = Field(0.0, ge=0, allow_inf_nan=False)
    amount: float = 0.0

    class Config:
        from_attributes = True

    @model_validator(mode="after")
    def compute_amount(self):
        # Line amount is always quantity x unit price; a stale submitted amount is overwritten
        self.amount = self.quantity * self.unit_price
        return self


class InvoiceTotals(BaseModel):
    """Output of a full ledger reconciliation"""
    subtotal: float
    tax_amount: float
    total: float
    amount_paid: float
    balance_due: float
    status: InvoiceStatus


class InvoiceRecord(BaseModel):
    id: str
    business_id: str
    invoice_no: str
    sequence: int
    date: dt.date
    customer_id: str
    customer: str = ""  # Customer name at the time of the last save
    items: List[LineItem] = []
    discount: float = 0.0
    tax_enabled: bool = True
    notes: str = ""
    payments: List[PaymentRecord] = []

    # Cached reconciliation output, rewritten on every mutation
    paid: float = 0.0
    status: InvoiceStatus = "unpaid"
    subtotal: float = 0.0
    tax_amount: float = 0.0
    total: float = 0.0

    created_at: dt.datetime = Field(default_factory=utc_now)

    class Config:
        from_attributes = True

    @field_validator("created_at")
    @classmethod
    def created_at_in_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)


class InvoiceCreate(BaseModel):
    date: dt.date = Field(default_factory=dt.date.today)
    customer_id: Optional[str] = None
    items: List[LineItemInput] = []
    discount: float = Field(0.0, ge=0, allow_inf_nan=False)
    tax_enabled: bool = True
    notes: str = ""
    initial_payment: Optional[PaymentCreate] = None


class InvoiceUpdate(BaseModel):
    date: Optional[dt.date] = None
    customer_id: Optional[str] = None
    items: Optional[List[LineItemInput]] = None
    discount: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    tax_enabled: Optional[bool] = None
    notes: Optional[str] = None


class LedgerWarning(BaseModel):
    """Non-blocking condition raised by a ledger operation"""
    code: str  # e.g., "overpayment"
    message: str
    details: Optional[dict] = None


class InvoiceResponse(InvoiceRecord):
    customer_name: str
    balance_due: float


class InvoiceMutationResult(BaseModel):
    invoice_no: str
    invoice: InvoiceResponse
    payment: Optional[PaymentRecord] = None
    warnings: List[LedgerWarning] = []


class InvoiceListResponse(BaseModel):
    id: str
    invoice_no: str
    date: dt.date
    customer_id: str
    customer_name: str
    total: float
    paid: float
    balance_due: float
    status: InvoiceStatus


class InvoiceSummary(BaseModel):
    invoice_count: int
    total_revenue: float
    amount_received: float
    pending_amount: float

from app.schemas.invoice import InvoiceCreate, InvoiceRecord, InvoiceResponse, InvoiceListResponse, LineItem
from app.schemas.payment import PaymentCreate, PaymentRecord
from app.schemas.contact import ContactCreate, ContactRecord, ContactRollup
from app.schemas.product import ProductCreate, ProductRecord

__all__ = [
    "InvoiceCreate",
    "InvoiceRecord",
    "InvoiceResponse",
    "InvoiceListResponse",
    "LineItem",
    "PaymentCreate",
    "PaymentRecord",
    "ContactCreate",
    "ContactRecord",
    "ContactRollup",
    "ProductCreate",
    "ProductRecord",
]

from app.models.business import Business
from app.models.product import Product
from app.models.contact import Contact
from app.models.invoice import Invoice
from app.models.invoice_item import InvoiceItem
from app.models.payment import Payment

__all__ = ["Business", "Product", "Contact", "Invoice", "InvoiceItem", "Payment"]

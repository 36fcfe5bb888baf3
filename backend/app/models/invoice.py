from sqlalchemy import Column, Integer, String, Float, Boolean, Date, DateTime, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.database import Base
import uuid


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("business_id", "invoice_no", name="uq_invoices_business_invoice_no"),
    )

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex, index=True)
    business_id = Column(String, nullable=False, index=True)
    invoice_no = Column(String, nullable=False, index=True)
    sequence = Column(Integer, nullable=False)
    date = Column(Date, nullable=False, index=True)
    customer_id = Column(String, nullable=False, index=True)  # Weak reference to customers.id
    customer = Column(String, default="")  # Customer name at last save
    discount = Column(Float, nullable=False, default=0.0)
    tax_enabled = Column(Boolean, nullable=False, default=True)
    notes = Column(Text, default="")

    # Cached reconciliation output; rewritten on every mutation
    paid = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="unpaid", index=True)  # unpaid, partial, paid
    subtotal = Column(Float, nullable=False, default=0.0)
    tax_amount = Column(Float, nullable=False, default=0.0)
    total = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    items = relationship(
        "InvoiceItem", back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.line_no"
    )
    payments = relationship(
        "Payment", back_populates="invoice", cascade="all, delete-orphan", order_by="Payment.position"
    )

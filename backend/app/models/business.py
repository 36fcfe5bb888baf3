from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.sql import func
from app.database import Base


class Business(Base):
    """Business profile; also owns the invoice sequence counter"""
    __tablename__ = "businesses"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    tax_id = Column(String, default="")
    tax_label = Column(String, default="VAT")
    tax_rate = Column(Float, default=0.0)
    phone = Column(String, default="")
    email = Column(String, default="")
    address = Column(String, default="")
    country = Column(String, default="")
    invoice_prefix = Column(String, default="INV")
    currency_code = Column(String, default="USD")
    date_format = Column(String, default="DD/MM/YYYY")
    invoice_color = Column(String, default="#2563eb")

    # Next sequence number to hand out; only ever incremented
    next_invoice_seq = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

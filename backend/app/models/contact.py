from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from app.database import Base
import uuid


class Contact(Base):
    """Customer or supplier. Invoices reference contacts by id only (no cascade)."""
    __tablename__ = "customers"

    id = Column(String, primary_key=True, default=lambda: uuid.uuid4().hex, index=True)
    business_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False, index=True)
    phone = Column(String, nullable=False)
    email = Column(String, default="")
    tax_registration_id = Column(String, default="")
    address = Column(String, default="")
    type = Column(String, nullable=False, default="customer", index=True)  # customer, supplier
    color_index = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

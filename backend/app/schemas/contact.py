from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime


class ContactBase(BaseModel):
    name: str
    phone: str
    email: str = ""
    tax_registration_id: str = ""
    address: str = ""
    type: Literal["customer", "supplier"] = "customer"


class ContactCreate(ContactBase):
    pass


class ContactUpdate(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    tax_registration_id: Optional[str] = None
    address: Optional[str] = None
    type: Optional[Literal["customer", "supplier"]] = None


class ContactRecord(ContactBase):
    id: str
    business_id: str
    color_index: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContactRollup(BaseModel):
    """Balance of one contact across all invoices that reference it"""
    contact_id: str
    invoice_count: int = 0
    total_billed: float = 0.0
    total_paid: float = 0.0
    balance: float = 0.0


class ContactWithBalance(ContactRecord):
    rollup: ContactRollup

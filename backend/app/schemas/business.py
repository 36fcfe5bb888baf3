from pydantic import BaseModel, field_validator
from typing import Optional
from app.constants import CURRENCY_CODES, DATE_FORMATS


class BusinessProfile(BaseModel):
    id: str
    name: str
    tax_id: str = ""
    tax_label: str = "VAT"
    tax_rate: float = 0.0
    phone: str = ""
    email: str = ""
    address: str = ""
    country: str = ""
    invoice_prefix: str = "INV"
    currency_code: str = "USD"
    date_format: str = "DD/MM/YYYY"
    invoice_color: str = "#2563eb"

    class Config:
        from_attributes = True


class BusinessUpdate(BaseModel):
    name: Optional[str] = None
    tax_id: Optional[str] = None
    tax_label: Optional[str] = None
    tax_rate: Optional[float] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None
    invoice_prefix: Optional[str] = None
    currency_code: Optional[str] = None
    date_format: Optional[str] = None
    invoice_color: Optional[str] = None

    @field_validator("currency_code")
    @classmethod
    def known_currency(cls, value):
        if value is not None and value not in CURRENCY_CODES:
            raise ValueError(f"Unsupported currency: {value}")
        return value

    @field_validator("date_format")
    @classmethod
    def known_date_format(cls, value):
        if value is not None and value not in DATE_FORMATS:
            raise ValueError(f"Unsupported date format: {value}")
        return value

    @field_validator("tax_rate")
    @classmethod
    def non_negative_rate(cls, value):
        if value is not None and value < 0:
            raise ValueError("Tax rate cannot be negative")
        return value

    @field_validator("invoice_prefix")
    @classmethod
    def non_empty_prefix(cls, value):
        if value is not None and not value.strip():
            raise ValueError("Invoice prefix cannot be empty")
        return value.strip() if value is not None else value

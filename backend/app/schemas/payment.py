import datetime as dt
from pydantic import BaseModel, Field, field_validator
from typing import Literal


PaymentMethod = Literal["cash", "bank", "cheque", "online"]


def utc_now() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def as_utc(value: dt.datetime) -> dt.datetime:
    """Naive timestamps (SQLite, older snapshots) were written in UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value


class PaymentCreate(BaseModel):
    # Sign is checked by the ledger (must be > 0) so it surfaces as a validation error; infinity and NaN are schema errors
    amount: float = Field(..., allow_inf_nan=False)
    date: dt.date = Field(default_factory=dt.date.today)
    method: PaymentMethod = "cash"
    note: str = ""


class PaymentRecord(BaseModel):
    """Money received against one invoice. Immutable once created; may only be deleted."""
    id: str
    invoice_id: str
    date: dt.date
    amount: float = Field(..., allow_inf_nan=False)
    method: PaymentMethod = "cash"
    note: str = ""
    created_at: dt.datetime = Field(default_factory=utc_now)

    class Config:
        from_attributes = True
        frozen = True

    @field_validator("created_at")
    @classmethod
    def created_at_in_utc(cls, value: dt.datetime) -> dt.datetime:
        return as_utc(value)

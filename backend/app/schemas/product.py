from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import datetime


class ProductBase(BaseModel):
    name: str
    sku: str = ""
    category: str = "Other"
    unit: str = "PCS"
    sale_price: float = Field(..., ge=0, allow_inf_nan=False)
    purchase_price: float = Field(0.0, ge=0, allow_inf_nan=False)
    stock: int = Field(0, ge=0)
    min_stock: int = Field(0, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, allow_inf_nan=False)  # None falls back to the business tax rate


class ProductCreate(ProductBase):
    pass


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    sku: Optional[str] = None
    category: Optional[str] = None
    unit: Optional[str] = None
    sale_price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    purchase_price: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    stock: Optional[int] = Field(None, ge=0)
    min_stock: Optional[int] = Field(None, ge=0)
    tax_rate: Optional[float] = Field(None, ge=0, allow_inf_nan=False)


class ProductRecord(ProductBase):
    id: str
    business_id: str
    active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockAdjustment(BaseModel):
    """Stock movement: 'in' adds quantity, 'out' removes it (never below zero)"""
    mode: Literal["in", "out"] = "in"
    quantity: int
    note: str = ""


class InventorySummary(BaseModel):
    product_count: int
    low_stock_count: int
    total_stock_value: float
    low_stock: List[ProductRecord] = []

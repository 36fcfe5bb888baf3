from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from app.repositories import get_repositories
from app.repositories.base import Repositories
from app.routers.deps import get_business_id
from app.schemas.product import (
    InventorySummary,
    ProductCreate,
    ProductRecord,
    ProductUpdate,
    StockAdjustment,
)
from app.services import product_service

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductRecord])
def list_products(
    category: Optional[str] = Query(None, description="Filter by category"),
    search: Optional[str] = Query(None, description="Search by name or SKU"),
    sort_by: str = Query("name", pattern="^(name|stock|price)$"),
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """List products with optional filters"""
    return product_service.list_products(repos, business_id, category, search, sort_by)


@router.get("/summary", response_model=InventorySummary)
def get_inventory_summary(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Product count, stock value and low-stock products"""
    return product_service.inventory_summary(repos, business_id)


@router.post("", response_model=ProductRecord, status_code=201)
def create_product(
    data: ProductCreate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return product_service.add_product(repos, business_id, data)


@router.get("/{product_id}", response_model=ProductRecord)
def get_product(
    product_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return product_service.get_product(repos, business_id, product_id)


@router.put("/{product_id}", response_model=ProductRecord)
def update_product(
    product_id: str,
    data: ProductUpdate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return product_service.update_product(repos, business_id, product_id, data)


@router.delete("/{product_id}")
def delete_product(
    product_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    product_service.delete_product(repos, business_id, product_id)
    return {"message": "Product deleted"}


@router.post("/{product_id}/stock", response_model=ProductRecord)
def adjust_stock(
    product_id: str,
    adjustment: StockAdjustment,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Stock in / stock out; the level never goes below zero"""
    return product_service.adjust_stock(repos, business_id, product_id, adjustment)

"""
Product catalogue and stock tracking.

Stock changes only through adjust_stock; creating or editing invoices never
touches stock levels.
"""
import logging
import uuid
from typing import List, Optional
from app.exceptions import LedgerValidationError, NotFoundError
from app.repositories.base import Repositories
from app.schemas.product import (
    InventorySummary,
    ProductCreate,
    ProductRecord,
    ProductUpdate,
    StockAdjustment,
)
from app.services.sync_service import publish_collection

logger = logging.getLogger(__name__)

SORT_KEYS = ("name", "stock", "price")


def list_products(
    repos: Repositories,
    business_id: str,
    category: Optional[str] = None,
    search: Optional[str] = None,
    sort_by: str = "name",
) -> List[ProductRecord]:
    products = repos.products.list(business_id)

    if category and category != "All":
        products = [p for p in products if p.category == category]
    if search:
        needle = search.lower()
        products = [p for p in products if needle in p.name.lower() or needle in (p.sku or "").lower()]

    if sort_by == "stock":
        products.sort(key=lambda p: p.stock)
    elif sort_by == "price":
        products.sort(key=lambda p: p.sale_price, reverse=True)
    else:
        products.sort(key=lambda p: p.name.lower())
    return products


def get_product(repos: Repositories, business_id: str, product_id: str) -> ProductRecord:
    product = repos.products.get(business_id, product_id)
    if product is None:
        raise NotFoundError(f"Product {product_id} not found")
    return product


def add_product(repos: Repositories, business_id: str, data: ProductCreate) -> ProductRecord:
    if not data.name.strip():
        raise LedgerValidationError("Name and sale price are required")

    record = ProductRecord(id=uuid.uuid4().hex, business_id=business_id, **data.model_dump())
    product = repos.products.add(record)
    repos.commit()
    logger.info(f"Added product {product.name} ({product.id})")
    publish_collection(repos, business_id, "products")
    return product


def update_product(repos: Repositories, business_id: str, product_id: str, data: ProductUpdate) -> ProductRecord:
    product = get_product(repos, business_id, product_id)
    # An explicit null tax rate means "use the business rate"; other nulls are ignored
    changes = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k == "tax_rate"
    }
    if "name" in changes and not changes["name"].strip():
        raise LedgerValidationError("Name and sale price are required")

    product = repos.products.save(product.model_copy(update=changes))
    repos.commit()
    publish_collection(repos, business_id, "products")
    return product


def delete_product(repos: Repositories, business_id: str, product_id: str) -> None:
    """Hard delete. Invoice line items keep their own snapshot of the product."""
    if not repos.products.delete(business_id, product_id):
        raise NotFoundError(f"Product {product_id} not found")
    repos.commit()
    logger.info(f"Deleted product {product_id}")
    publish_collection(repos, business_id, "products")


def adjust_stock(
    repos: Repositories,
    business_id: str,
    product_id: str,
    adjustment: StockAdjustment,
) -> ProductRecord:
    """Apply a stock movement; the resulting level is clamped at zero"""
    if adjustment.quantity is None or adjustment.quantity <= 0:
        raise LedgerValidationError("Enter valid quantity")

    product = get_product(repos, business_id, product_id)
    delta = adjustment.quantity if adjustment.mode == "in" else -adjustment.quantity
    new_stock = max(0, product.stock + delta)

    product = repos.products.save(product.model_copy(update={"stock": new_stock}))
    repos.commit()
    logger.info(
        f"Stock {adjustment.mode} {adjustment.quantity} for {product.name}: now {new_stock}"
        + (f" ({adjustment.note})" if adjustment.note else "")
    )
    publish_collection(repos, business_id, "products")
    return product


def low_stock_products(products: List[ProductRecord]) -> List[ProductRecord]:
    return [p for p in products if p.stock <= p.min_stock]


def inventory_summary(repos: Repositories, business_id: str) -> InventorySummary:
    products = repos.products.list(business_id)
    low = low_stock_products(products)
    return InventorySummary(
        product_count=len(products),
        low_stock_count=len(low),
        total_stock_value=sum((p.stock * p.purchase_price for p in products), 0.0),
        low_stock=low,
    )

import pytest

from app.exceptions import LedgerValidationError, NotFoundError
from app.schemas.product import ProductCreate, ProductUpdate, StockAdjustment
from app.services import product_service


@pytest.fixture
def catalogue(repos, business_id):
    rows = [
        dict(name="Notebook", sku="NB-1", category="Stationery", sale_price=3, purchase_price=2, stock=40, min_stock=10),
        dict(name="Cable", sku="CB-9", category="Electronics", sale_price=12, purchase_price=7, stock=4, min_stock=5),
        dict(name="Adapter", sku="AD-3", category="Electronics", sale_price=25, purchase_price=15, stock=5, min_stock=5),
    ]
    return [product_service.add_product(repos, business_id, ProductCreate(**row)) for row in rows]


def test_add_product_requires_name(repos, business_id):
    with pytest.raises(LedgerValidationError):
        product_service.add_product(repos, business_id, ProductCreate(name=" ", sale_price=1))


def test_list_products_filters_and_sorts(repos, business_id, catalogue):
    names = [p.name for p in product_service.list_products(repos, business_id)]
    assert names == ["Adapter", "Cable", "Notebook"]

    electronics = product_service.list_products(repos, business_id, category="Electronics", sort_by="price")
    assert [p.name for p in electronics] == ["Adapter", "Cable"]

    by_stock = product_service.list_products(repos, business_id, sort_by="stock")
    assert [p.stock for p in by_stock] == [4, 5, 40]

    assert [p.name for p in product_service.list_products(repos, business_id, search="nb-")] == ["Notebook"]


def test_stock_in_and_out(repos, business_id, catalogue):
    notebook = catalogue[0]
    product = product_service.adjust_stock(repos, business_id, notebook.id, StockAdjustment(mode="in", quantity=10))
    assert product.stock == 50
    product = product_service.adjust_stock(repos, business_id, notebook.id, StockAdjustment(mode="out", quantity=15))
    assert product.stock == 35


def test_stock_out_is_clamped_at_zero(repos, business_id, catalogue):
    cable = catalogue[1]
    product = product_service.adjust_stock(repos, business_id, cable.id, StockAdjustment(mode="out", quantity=100))
    assert product.stock == 0


@pytest.mark.parametrize("quantity", [0, -3])
def test_stock_adjustment_needs_positive_quantity(repos, business_id, catalogue, quantity):
    with pytest.raises(LedgerValidationError, match="valid quantity"):
        product_service.adjust_stock(repos, business_id, catalogue[0].id, StockAdjustment(quantity=quantity))


def test_update_product_can_clear_tax_override(repos, business_id):
    product = product_service.add_product(repos, business_id, ProductCreate(name="Tea", sale_price=4, tax_rate=5))
    updated = product_service.update_product(
        repos, business_id, product.id, ProductUpdate(tax_rate=None, sale_price=5)
    )
    assert updated.tax_rate is None
    assert updated.sale_price == 5
    assert updated.name == "Tea"


def test_inventory_summary(repos, business_id, catalogue):
    summary = product_service.inventory_summary(repos, business_id)
    assert summary.product_count == 3
    assert summary.low_stock_count == 2
    assert sorted(p.name for p in summary.low_stock) == ["Adapter", "Cable"]
    assert summary.total_stock_value == 40 * 2 + 4 * 7 + 5 * 15


def test_delete_product(repos, business_id, catalogue):
    product_service.delete_product(repos, business_id, catalogue[0].id)
    with pytest.raises(NotFoundError):
        product_service.get_product(repos, business_id, catalogue[0].id)
    assert len(repos.products.list(business_id)) == 2

"""
Seed script to generate synthetic products, contacts, invoices and payments for demo purposes
"""
import sys
import os
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load environment variables from .env file if it exists
from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

from datetime import date, timedelta
from faker import Faker

from app.config import settings
from app.database import Base, engine
from app.repositories import get_repositories
from app.repositories.base import Repositories
from app.schemas.contact import ContactCreate
from app.schemas.invoice import InvoiceCreate, LineItemInput
from app.schemas.payment import PaymentCreate
from app.schemas.product import ProductCreate
from app.services import contact_service, product_service
from app.services.business_service import get_or_create_business
from app.services.invoice_service import invoice_service

fake = Faker()

CATEGORIES = ("Electronics", "Groceries", "Clothing", "Stationery", "Hardware")
UNITS = ("PCS", "BOX", "KG", "LTR")


def create_products(repos: Repositories, business_id: str, count: int = 10) -> list:
    """Create synthetic products"""
    products = []
    for _ in range(count):
        purchase_price = round(fake.random.uniform(5.0, 400.0), 2)
        products.append(product_service.add_product(repos, business_id, ProductCreate(
            name=fake.catch_phrase(),
            sku=f"SKU-{fake.random_int(min=1000, max=9999)}",
            category=fake.random_element(elements=CATEGORIES),
            unit=fake.random_element(elements=UNITS),
            sale_price=round(purchase_price * fake.random.uniform(1.1, 1.6), 2),
            purchase_price=purchase_price,
            stock=fake.random_int(min=0, max=120),
            min_stock=fake.random_int(min=2, max=15),
        )))
    return products


def create_contacts(repos: Repositories, business_id: str, customers: int = 8, suppliers: int = 3) -> list:
    """Create synthetic customers and suppliers"""
    contacts = []
    for contact_type, count in (("customer", customers), ("supplier", suppliers)):
        for _ in range(count):
            contacts.append(contact_service.add_contact(repos, business_id, ContactCreate(
                name=fake.company() if contact_type == "supplier" else fake.name(),
                phone=fake.phone_number(),
                email=fake.email(),
                address=fake.address().replace("\n", ", "),
                type=contact_type,
            )))
    return contacts


def create_invoices(repos: Repositories, business_id: str, products: list, customers: list, count: int = 20) -> list:
    """Create synthetic invoices spread over the last six months, fully, partly or not paid"""
    results = []
    for _ in range(count):
        picked = fake.random_elements(elements=products, length=fake.random_int(min=1, max=4), unique=True)
        invoice_date = date.today() - timedelta(days=fake.random_int(min=0, max=180))
        result = invoice_service.create_invoice(repos, business_id, InvoiceCreate(
            date=invoice_date,
            customer_id=fake.random_element(elements=customers).id,
            items=[LineItemInput(product_id=p.id, quantity=fake.random_int(min=1, max=10)) for p in picked],
        ))

        outcome = fake.random_element(elements=("paid", "partial", "unpaid"))
        total = result.invoice.total
        if outcome != "unpaid" and total > 0:
            amount = total if outcome == "paid" else round(total * fake.random.uniform(0.2, 0.8), 2)
            result = invoice_service.record_payment(repos, business_id, result.invoice.id, PaymentCreate(
                amount=amount,
                date=invoice_date + timedelta(days=fake.random_int(min=0, max=14)),
                method=fake.random_element(elements=("cash", "bank", "cheque", "online")),
            ))
        results.append(result)
    return results


def main():
    """Main seeding function"""
    business_id = settings.default_business_id

    if engine is not None:
        print("Creating database tables...")
        Base.metadata.create_all(bind=engine)
    else:
        print(f"No DATABASE_URL set, seeding snapshot storage at {settings.local_storage_dir}")

    repos_gen = get_repositories()
    repos = next(repos_gen)
    try:
        business = get_or_create_business(repos, business_id)
        print(f"Seeding business {business.name} ({business_id})")

        print("Creating products...")
        products = create_products(repos, business_id)
        print(f"Created {len(products)} products")

        print("Creating contacts...")
        contacts = create_contacts(repos, business_id)
        customers = [c for c in contacts if c.type == "customer"]
        print(f"Created {len(contacts)} contacts")

        print("Creating invoices...")
        results = create_invoices(repos, business_id, products, customers)
        print(f"Created {len(results)} invoices")

        statuses = [r.invoice.status for r in results]
        print("\nSeeding complete!")
        print(f"Summary:")
        print(f"  - Products: {len(products)}")
        print(f"  - Customers: {len(customers)}")
        print(f"  - Invoices: {len(results)}")
        for status in ("paid", "partial", "unpaid"):
            print(f"    - {status.capitalize()}: {statuses.count(status)}")

    except Exception as e:
        print(f"Error during seeding: {e}")
        repos.rollback()
        raise
    finally:
        repos_gen.close()


if __name__ == "__main__":
    main()

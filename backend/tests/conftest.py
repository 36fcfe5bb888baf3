import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  (registers tables on Base.metadata)
from app.database import Base
from app.repositories import get_repositories
from app.repositories.snapshot import SnapshotRepositories
from app.repositories.sql import SqlRepositories
from app.schemas.contact import ContactCreate
from app.schemas.invoice import InvoiceCreate, LineItemInput
from app.services import contact_service
from app.services.invoice_service import invoice_service
from app.services.snapshot_storage import SnapshotStorage

BUSINESS_ID = "test-biz"


@pytest.fixture
def sql_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def sql_repos(sql_session):
    return SqlRepositories(sql_session)


@pytest.fixture
def snapshot_storage(tmp_path):
    return SnapshotStorage(base_dir=str(tmp_path / "snapshots"), use_object_storage=False)


@pytest.fixture
def snapshot_repos(snapshot_storage):
    return SnapshotRepositories(snapshot_storage)


@pytest.fixture(params=["sql", "snapshot"])
def repos(request):
    """Every test using this fixture runs against both storage backends"""
    return request.getfixturevalue(f"{request.param}_repos")


@pytest.fixture
def business_id():
    return BUSINESS_ID


@pytest.fixture
def customer(repos, business_id):
    return contact_service.add_contact(
        repos, business_id, ContactCreate(name="Asha Traders", phone="555-0101")
    )


@pytest.fixture
def scenario_a(repos, business_id, customer):
    """Invoice with one line: 2 x 500 at 10% tax (total 1100)"""
    result = invoice_service.create_invoice(repos, business_id, InvoiceCreate(
        customer_id=customer.id,
        items=[LineItemInput(name="Desk", quantity=2, unit_price=500, tax_rate=10)],
    ))
    return result.invoice


@pytest.fixture
def client(repos):
    from app.main import app

    def override_get_repositories():
        yield repos

    app.dependency_overrides[get_repositories] = override_get_repositories
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()

"""
Narrow per-entity repository interfaces.

Services depend on these interfaces only; the SQL store and the snapshot
fallback both implement them. All reads return pydantic records, never ORM rows.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional
from app.schemas.business import BusinessProfile
from app.schemas.contact import ContactRecord
from app.schemas.invoice import InvoiceRecord
from app.schemas.payment import PaymentRecord
from app.schemas.product import ProductRecord


class BusinessRepository(ABC):
    @abstractmethod
    def get(self, business_id: str) -> Optional[BusinessProfile]:
        ...

    @abstractmethod
    def save(self, profile: BusinessProfile) -> BusinessProfile:
        ...

    @abstractmethod
    def allocate_invoice_sequence(self, business_id: str) -> int:
        """Hand out the next sequence number. Numbers are never handed out twice."""

    @abstractmethod
    def peek_invoice_sequence(self, business_id: str) -> int:
        """Next number that would be allocated, without consuming it"""


class ProductRepository(ABC):
    @abstractmethod
    def list(self, business_id: str) -> List[ProductRecord]:
        ...

    @abstractmethod
    def get(self, business_id: str, product_id: str) -> Optional[ProductRecord]:
        ...

    @abstractmethod
    def add(self, record: ProductRecord) -> ProductRecord:
        ...

    @abstractmethod
    def save(self, record: ProductRecord) -> ProductRecord:
        ...

    @abstractmethod
    def delete(self, business_id: str, product_id: str) -> bool:
        ...

    @abstractmethod
    def delete_all(self, business_id: str) -> int:
        ...


class ContactRepository(ABC):
    @abstractmethod
    def list(self, business_id: str) -> List[ContactRecord]:
        ...

    @abstractmethod
    def get(self, business_id: str, contact_id: str) -> Optional[ContactRecord]:
        ...

    @abstractmethod
    def count(self, business_id: str) -> int:
        ...

    @abstractmethod
    def add(self, record: ContactRecord) -> ContactRecord:
        ...

    @abstractmethod
    def save(self, record: ContactRecord) -> ContactRecord:
        ...

    @abstractmethod
    def delete(self, business_id: str, contact_id: str) -> bool:
        ...

    @abstractmethod
    def delete_all(self, business_id: str) -> int:
        ...


class InvoiceRepository(ABC):
    """Invoice aggregates, including their owned line items and payment records"""

    @abstractmethod
    def list(self, business_id: str) -> List[InvoiceRecord]:
        ...

    @abstractmethod
    def get(self, business_id: str, invoice_id: str) -> Optional[InvoiceRecord]:
        ...

    @abstractmethod
    def add(self, record: InvoiceRecord) -> InvoiceRecord:
        ...

    @abstractmethod
    def save(self, record: InvoiceRecord) -> InvoiceRecord:
        ...

    @abstractmethod
    def delete(self, business_id: str, invoice_id: str) -> bool:
        ...

    @abstractmethod
    def delete_all(self, business_id: str) -> int:
        ...


class PaymentRepository(ABC):
    """Read side of payment records, joined to invoices by invoice id"""

    @abstractmethod
    def list(self, business_id: str) -> List[PaymentRecord]:
        ...

    @abstractmethod
    def list_for_invoices(self, business_id: str, invoice_ids: List[str]) -> List[PaymentRecord]:
        ...


@dataclass
class Repositories:
    businesses: BusinessRepository
    products: ProductRepository
    contacts: ContactRepository
    invoices: InvoiceRepository
    payments: PaymentRepository

    def commit(self) -> None:
        """Make the writes of the current operation durable"""

    def rollback(self) -> None:
        """Discard uncommitted writes of the current operation"""

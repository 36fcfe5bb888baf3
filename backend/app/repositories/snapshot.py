"""
Snapshot fallback implementation of the repository interfaces.

Each business gets its own namespace holding a fixed set of keys
(business profile, products, customers, invoices, next invoice number).
Every key holds a full JSON snapshot and is rewritten on each change.
"""
import logging
import threading
from typing import List, Optional

from app.constants import (
    KEY_BUSINESS,
    KEY_CUSTOMERS,
    KEY_INVOICES,
    KEY_NEXT_INVOICE,
    KEY_PRODUCTS,
)
from app.repositories.base import (
    BusinessRepository,
    ContactRepository,
    InvoiceRepository,
    PaymentRepository,
    ProductRepository,
    Repositories,
)
from app.schemas.business import BusinessProfile
from app.schemas.contact import ContactRecord
from app.schemas.invoice import InvoiceRecord
from app.schemas.payment import PaymentRecord
from app.schemas.product import ProductRecord
from app.services.snapshot_storage import SnapshotStorage
from app.utils.numbering import parse_invoice_sequence

logger = logging.getLogger(__name__)

# Serializes counter read-and-increment within this process
_sequence_lock = threading.Lock()


class _SnapshotCollection:
    """List of records of one type stored under a single key"""

    record_type = None
    key = None

    def __init__(self, storage: SnapshotStorage):
        self.storage = storage

    def _load(self, business_id: str) -> list:
        raw = self.storage.get_json(business_id, self.key, default=[])
        return [self.record_type.model_validate(item) for item in raw]

    def _store(self, business_id: str, records: list) -> None:
        self.storage.put_json(business_id, self.key, [r.model_dump(mode="json") for r in records])

    def list(self, business_id: str):
        return self._load(business_id)

    def get(self, business_id: str, record_id: str):
        return next((r for r in self._load(business_id) if r.id == record_id), None)

    def add(self, record):
        records = self._load(record.business_id)
        records.append(record)
        self._store(record.business_id, records)
        return record

    def save(self, record):
        records = self._load(record.business_id)
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            raise LookupError(f"{self.record_type.__name__} {record.id} not found")
        self._store(record.business_id, records)
        return record

    def delete(self, business_id: str, record_id: str) -> bool:
        records = self._load(business_id)
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        self._store(business_id, remaining)
        return True

    def delete_all(self, business_id: str) -> int:
        count = len(self._load(business_id))
        self._store(business_id, [])
        return count


class SnapshotProductRepository(_SnapshotCollection, ProductRepository):
    record_type = ProductRecord
    key = KEY_PRODUCTS


class SnapshotContactRepository(_SnapshotCollection, ContactRepository):
    record_type = ContactRecord
    key = KEY_CUSTOMERS

    def count(self, business_id: str) -> int:
        return len(self._load(business_id))


class SnapshotInvoiceRepository(_SnapshotCollection, InvoiceRepository):
    record_type = InvoiceRecord
    key = KEY_INVOICES


class SnapshotPaymentRepository(PaymentRepository):
    """Payments live inside their invoice documents; this flattens them"""

    def __init__(self, invoices: SnapshotInvoiceRepository):
        self.invoices = invoices

    def list(self, business_id: str) -> List[PaymentRecord]:
        return [p for invoice in self.invoices.list(business_id) for p in invoice.payments]

    def list_for_invoices(self, business_id: str, invoice_ids: List[str]) -> List[PaymentRecord]:
        wanted = set(invoice_ids)
        return [p for p in self.list(business_id) if p.invoice_id in wanted]


class SnapshotBusinessRepository(BusinessRepository):
    def __init__(self, storage: SnapshotStorage, invoices: SnapshotInvoiceRepository):
        self.storage = storage
        self.invoices = invoices

    def get(self, business_id: str) -> Optional[BusinessProfile]:
        raw = self.storage.get_json(business_id, KEY_BUSINESS)
        return BusinessProfile.model_validate(raw) if raw else None

    def save(self, profile: BusinessProfile) -> BusinessProfile:
        self.storage.put_json(profile.id, KEY_BUSINESS, profile.model_dump(mode="json"))
        return profile

    def peek_invoice_sequence(self, business_id: str) -> int:
        stored = self.storage.get_json(business_id, KEY_NEXT_INVOICE)
        if stored is not None:
            return int(stored)

        # No counter yet: continue after the highest number already issued
        highest = 0
        for invoice in self.invoices.list(business_id):
            number = parse_invoice_sequence(invoice.invoice_no)
            if number is not None and number > highest:
                highest = number
        if highest:
            logger.warning(f"Invoice counter missing for {business_id}; resuming at {highest + 1}")
        return highest + 1

    def allocate_invoice_sequence(self, business_id: str) -> int:
        with _sequence_lock:
            sequence = self.peek_invoice_sequence(business_id)
            self.storage.put_json(business_id, KEY_NEXT_INVOICE, sequence + 1)
        return sequence


class SnapshotRepositories(Repositories):
    """Writes are durable as soon as each key is stored; commit and rollback are no-ops"""

    def __init__(self, storage: SnapshotStorage):
        self.storage = storage
        invoices = SnapshotInvoiceRepository(storage)
        super().__init__(
            businesses=SnapshotBusinessRepository(storage, invoices),
            products=SnapshotProductRepository(storage),
            contacts=SnapshotContactRepository(storage),
            invoices=invoices,
            payments=SnapshotPaymentRepository(invoices),
        )

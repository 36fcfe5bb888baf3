"""
SQLAlchemy implementation of the repository interfaces (the primary store).

Repositories only flush; the owning Repositories bundle commits once per
service operation so a failed operation leaves no partial write.
"""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from app.models.business import Business
from app.models.contact import Contact
from app.models.invoice import Invoice
from app.models.invoice_item import InvoiceItem
from app.models.payment import Payment
from app.models.product import Product
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
from app.schemas.invoice import InvoiceRecord, LineItem
from app.schemas.payment import PaymentRecord, utc_now
from app.schemas.product import ProductRecord

logger = logging.getLogger(__name__)


def _payment_to_record(row: Payment) -> PaymentRecord:
    return PaymentRecord(
        id=row.id,
        invoice_id=row.invoice_id,
        date=row.date,
        amount=row.amount,
        method=row.method,
        note=row.note or "",
        created_at=row.created_at,
    )


def _invoice_to_record(row: Invoice) -> InvoiceRecord:
    return InvoiceRecord(
        id=row.id,
        business_id=row.business_id,
        invoice_no=row.invoice_no,
        sequence=row.sequence,
        date=row.date,
        customer_id=row.customer_id,
        customer=row.customer or "",
        items=[LineItem.model_validate(item) for item in row.items],
        discount=row.discount,
        tax_enabled=row.tax_enabled,
        notes=row.notes or "",
        payments=[_payment_to_record(p) for p in row.payments],
        paid=row.paid,
        status=row.status,
        subtotal=row.subtotal,
        tax_amount=row.tax_amount,
        total=row.total,
        created_at=row.created_at or utc_now(),
    )


class SqlBusinessRepository(BusinessRepository):
    def __init__(self, db: Session):
        self.db = db

    def get(self, business_id: str) -> Optional[BusinessProfile]:
        row = self.db.query(Business).filter(Business.id == business_id).first()
        return BusinessProfile.model_validate(row) if row else None

    def save(self, profile: BusinessProfile) -> BusinessProfile:
        row = self.db.query(Business).filter(Business.id == profile.id).first()
        if row is None:
            row = Business(id=profile.id, next_invoice_seq=1)
            self.db.add(row)
        for field, value in profile.model_dump(exclude={"id"}).items():
            setattr(row, field, value)
        self.db.flush()
        return BusinessProfile.model_validate(row)

    def _locked_row(self, business_id: str) -> Business:
        row = (
            self.db.query(Business)
            .filter(Business.id == business_id)
            .with_for_update()
            .first()
        )
        if row is None:
            raise LookupError(f"Business {business_id} not found")
        return row

    def allocate_invoice_sequence(self, business_id: str) -> int:
        # Row lock serializes concurrent allocations for the same business
        row = self._locked_row(business_id)
        sequence = row.next_invoice_seq or 1
        row.next_invoice_seq = sequence + 1
        self.db.flush()
        return sequence

    def peek_invoice_sequence(self, business_id: str) -> int:
        row = self.db.query(Business).filter(Business.id == business_id).first()
        return row.next_invoice_seq if row else 1


class SqlProductRepository(ProductRepository):
    def __init__(self, db: Session):
        self.db = db

    def list(self, business_id: str) -> List[ProductRecord]:
        rows = self.db.query(Product).filter(Product.business_id == business_id).all()
        return [ProductRecord.model_validate(row) for row in rows]

    def get(self, business_id: str, product_id: str) -> Optional[ProductRecord]:
        row = self.db.query(Product).filter(
            Product.business_id == business_id, Product.id == product_id
        ).first()
        return ProductRecord.model_validate(row) if row else None

    def add(self, record: ProductRecord) -> ProductRecord:
        row = Product(**record.model_dump(exclude={"created_at"}))
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        return ProductRecord.model_validate(row)

    def save(self, record: ProductRecord) -> ProductRecord:
        row = self.db.query(Product).filter(Product.id == record.id).first()
        for field, value in record.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        self.db.flush()
        return ProductRecord.model_validate(row)

    def delete(self, business_id: str, product_id: str) -> bool:
        deleted = self.db.query(Product).filter(
            Product.business_id == business_id, Product.id == product_id
        ).delete()
        return deleted > 0

    def delete_all(self, business_id: str) -> int:
        return self.db.query(Product).filter(Product.business_id == business_id).delete()


class SqlContactRepository(ContactRepository):
    def __init__(self, db: Session):
        self.db = db

    def list(self, business_id: str) -> List[ContactRecord]:
        rows = self.db.query(Contact).filter(Contact.business_id == business_id).all()
        return [ContactRecord.model_validate(row) for row in rows]

    def get(self, business_id: str, contact_id: str) -> Optional[ContactRecord]:
        row = self.db.query(Contact).filter(
            Contact.business_id == business_id, Contact.id == contact_id
        ).first()
        return ContactRecord.model_validate(row) if row else None

    def count(self, business_id: str) -> int:
        return self.db.query(Contact).filter(Contact.business_id == business_id).count()

    def add(self, record: ContactRecord) -> ContactRecord:
        row = Contact(**record.model_dump(exclude={"created_at"}))
        self.db.add(row)
        self.db.flush()
        self.db.refresh(row)
        return ContactRecord.model_validate(row)

    def save(self, record: ContactRecord) -> ContactRecord:
        row = self.db.query(Contact).filter(Contact.id == record.id).first()
        for field, value in record.model_dump(exclude={"id", "created_at"}).items():
            setattr(row, field, value)
        self.db.flush()
        return ContactRecord.model_validate(row)

    def delete(self, business_id: str, contact_id: str) -> bool:
        deleted = self.db.query(Contact).filter(
            Contact.business_id == business_id, Contact.id == contact_id
        ).delete()
        return deleted > 0

    def delete_all(self, business_id: str) -> int:
        return self.db.query(Contact).filter(Contact.business_id == business_id).delete()


class SqlInvoiceRepository(InvoiceRepository):
    def __init__(self, db: Session):
        self.db = db

    def _row(self, business_id: str, invoice_id: str) -> Optional[Invoice]:
        return self.db.query(Invoice).filter(
            Invoice.business_id == business_id, Invoice.id == invoice_id
        ).first()

    def list(self, business_id: str) -> List[InvoiceRecord]:
        rows = self.db.query(Invoice).filter(Invoice.business_id == business_id).all()
        return [_invoice_to_record(row) for row in rows]

    def get(self, business_id: str, invoice_id: str) -> Optional[InvoiceRecord]:
        row = self._row(business_id, invoice_id)
        return _invoice_to_record(row) if row else None

    def add(self, record: InvoiceRecord) -> InvoiceRecord:
        row = Invoice(id=record.id, business_id=record.business_id)
        self.db.add(row)
        self._apply(row, record)
        self.db.flush()
        self.db.refresh(row)
        return _invoice_to_record(row)

    def save(self, record: InvoiceRecord) -> InvoiceRecord:
        row = self._row(record.business_id, record.id)
        if row is None:
            raise LookupError(f"Invoice {record.id} not found")
        self._apply(row, record)
        self.db.flush()
        self.db.refresh(row)
        return _invoice_to_record(row)

    def _apply(self, row: Invoice, record: InvoiceRecord) -> None:
        scalar_fields = record.model_dump(
            exclude={"id", "business_id", "items", "payments"}
        )
        for field, value in scalar_fields.items():
            setattr(row, field, value)

        # Line items are owned by the invoice and replaced wholesale
        row.items = [
            InvoiceItem(line_no=line_no, **item.model_dump())
            for line_no, item in enumerate(record.items, start=1)
        ]

        # Payments are immutable: keep rows still present, drop removed ones, append new ones
        wanted = {p.id: position for position, p in enumerate(record.payments)}
        kept = [p for p in row.payments if p.id in wanted]
        existing_ids = {p.id for p in kept}
        for payment in record.payments:
            if payment.id not in existing_ids:
                kept.append(Payment(
                    id=payment.id,
                    date=payment.date,
                    amount=payment.amount,
                    method=payment.method,
                    note=payment.note,
                    created_at=payment.created_at,
                ))
        for p in kept:
            p.position = wanted[p.id]
        row.payments = sorted(kept, key=lambda p: p.position)

    def delete(self, business_id: str, invoice_id: str) -> bool:
        row = self._row(business_id, invoice_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True

    def delete_all(self, business_id: str) -> int:
        rows = self.db.query(Invoice).filter(Invoice.business_id == business_id).all()
        for row in rows:
            self.db.delete(row)
        self.db.flush()
        return len(rows)


class SqlPaymentRepository(PaymentRepository):
    def __init__(self, db: Session):
        self.db = db

    def _query(self, business_id: str):
        return (
            self.db.query(Payment)
            .join(Invoice, Payment.invoice_id == Invoice.id)
            .filter(Invoice.business_id == business_id)
        )

    def list(self, business_id: str) -> List[PaymentRecord]:
        return [_payment_to_record(row) for row in self._query(business_id).all()]

    def list_for_invoices(self, business_id: str, invoice_ids: List[str]) -> List[PaymentRecord]:
        if not invoice_ids:
            return []
        rows = self._query(business_id).filter(Payment.invoice_id.in_(invoice_ids)).all()
        return [_payment_to_record(row) for row in rows]


class SqlRepositories(Repositories):
    def __init__(self, db: Session):
        self.db = db
        super().__init__(
            businesses=SqlBusinessRepository(db),
            products=SqlProductRepository(db),
            contacts=SqlContactRepository(db),
            invoices=SqlInvoiceRepository(db),
            payments=SqlPaymentRepository(db),
        )

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        logger.warning("Rolling back uncommitted ledger writes")
        self.db.rollback()

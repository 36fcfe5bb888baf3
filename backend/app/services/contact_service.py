import logging
import uuid
from typing import List, Optional
from app.constants import AVATAR_COLOR_COUNT
from app.exceptions import LedgerValidationError, NotFoundError
from app.repositories.base import Repositories
from app.schemas.contact import (
    ContactCreate,
    ContactRecord,
    ContactRollup,
    ContactUpdate,
    ContactWithBalance,
)
from app.services import rollup_service
from app.services.sync_service import publish_collection

logger = logging.getLogger(__name__)


def _require_name_and_phone(name: Optional[str], phone: Optional[str]) -> None:
    if not (name or "").strip() or not (phone or "").strip():
        raise LedgerValidationError("Name and phone are required")


def get_contact(repos: Repositories, business_id: str, contact_id: str) -> ContactRecord:
    contact = repos.contacts.get(business_id, contact_id)
    if contact is None:
        raise NotFoundError(f"Contact {contact_id} not found")
    return contact


def list_contacts(
    repos: Repositories,
    business_id: str,
    contact_type: Optional[str] = None,
    search: Optional[str] = None,
) -> List[ContactWithBalance]:
    """Contacts with their balances; rollups are computed from one read of invoices and payments"""
    contacts = repos.contacts.list(business_id)
    if contact_type:
        contacts = [c for c in contacts if c.type == contact_type]
    if search:
        needle = search.lower()
        contacts = [c for c in contacts if needle in c.name.lower() or needle in (c.phone or "")]

    invoices = repos.invoices.list(business_id)
    payments = repos.payments.list(business_id)
    rollups = rollup_service.rollups_by_contact(contacts, invoices, payments)

    contacts.sort(key=lambda c: c.name.lower())
    return [ContactWithBalance(**c.model_dump(), rollup=rollups[c.id]) for c in contacts]


def get_contact_rollup(repos: Repositories, business_id: str, contact_id: str) -> ContactRollup:
    get_contact(repos, business_id, contact_id)
    invoices = [inv for inv in repos.invoices.list(business_id) if inv.customer_id == contact_id]
    payments = repos.payments.list_for_invoices(business_id, [inv.id for inv in invoices])
    return rollup_service.contact_rollup(contact_id, invoices, payments)


def total_receivable(repos: Repositories, business_id: str) -> float:
    return rollup_service.total_receivable(
        repos.contacts.list(business_id),
        repos.invoices.list(business_id),
        repos.payments.list(business_id),
    )


def add_contact(repos: Repositories, business_id: str, data: ContactCreate) -> ContactRecord:
    _require_name_and_phone(data.name, data.phone)

    record = ContactRecord(
        id=uuid.uuid4().hex,
        business_id=business_id,
        color_index=repos.contacts.count(business_id) % AVATAR_COLOR_COUNT,
        **data.model_dump(),
    )
    contact = repos.contacts.add(record)
    repos.commit()
    logger.info(f"Added {contact.type} {contact.name} ({contact.id})")
    publish_collection(repos, business_id, "customers")
    return contact


def update_contact(repos: Repositories, business_id: str, contact_id: str, data: ContactUpdate) -> ContactRecord:
    contact = get_contact(repos, business_id, contact_id)
    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    updated = contact.model_copy(update=changes)
    _require_name_and_phone(updated.name, updated.phone)

    contact = repos.contacts.save(updated)
    repos.commit()
    publish_collection(repos, business_id, "customers")
    return contact


def delete_contact(repos: Repositories, business_id: str, contact_id: str) -> None:
    """
    Hard delete. Invoices referencing the contact are kept; they display the
    customer as "Unknown" from then on.
    """
    if not repos.contacts.delete(business_id, contact_id):
        raise NotFoundError(f"Contact {contact_id} not found")
    repos.commit()

    orphaned = sum(1 for inv in repos.invoices.list(business_id) if inv.customer_id == contact_id)
    if orphaned:
        logger.warning(f"Deleted contact {contact_id} is still referenced by {orphaned} invoice(s)")
    publish_collection(repos, business_id, "customers")

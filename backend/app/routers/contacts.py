from fastapi import APIRouter, Depends, Query
from typing import List, Literal, Optional
from app.repositories import get_repositories
from app.repositories.base import Repositories
from app.routers.deps import get_business_id
from app.schemas.contact import (
    ContactCreate,
    ContactRecord,
    ContactRollup,
    ContactUpdate,
    ContactWithBalance,
)
from app.services import contact_service

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.get("", response_model=List[ContactWithBalance])
def list_contacts(
    type: Optional[Literal["customer", "supplier"]] = Query(None, description="Filter by contact type"),
    search: Optional[str] = Query(None, description="Search by name or phone"),
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """List contacts with their billed, paid and outstanding totals"""
    return contact_service.list_contacts(repos, business_id, type, search)


@router.get("/receivable")
def get_total_receivable(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Total outstanding balance across all customers"""
    return {"total_receivable": contact_service.total_receivable(repos, business_id)}


@router.post("", response_model=ContactRecord, status_code=201)
def create_contact(
    data: ContactCreate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return contact_service.add_contact(repos, business_id, data)


@router.get("/{contact_id}", response_model=ContactRecord)
def get_contact(
    contact_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return contact_service.get_contact(repos, business_id, contact_id)


@router.get("/{contact_id}/rollup", response_model=ContactRollup)
def get_contact_rollup(
    contact_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return contact_service.get_contact_rollup(repos, business_id, contact_id)


@router.put("/{contact_id}", response_model=ContactRecord)
def update_contact(
    contact_id: str,
    data: ContactUpdate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    return contact_service.update_contact(repos, business_id, contact_id, data)


@router.delete("/{contact_id}")
def delete_contact(
    contact_id: str,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Delete a contact. Existing invoices are kept and show the customer as Unknown."""
    contact_service.delete_contact(repos, business_id, contact_id)
    return {"message": "Contact deleted"}

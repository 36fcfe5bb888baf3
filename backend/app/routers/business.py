from fastapi import APIRouter, Depends
from app.constants import CURRENCIES, DATE_FORMATS
from app.repositories import get_repositories
from app.repositories.base import Repositories
from app.routers.deps import get_business_id
from app.schemas.business import BusinessProfile, BusinessUpdate
from app.services import business_service

router = APIRouter(prefix="/api/business", tags=["business"])


@router.get("", response_model=BusinessProfile)
def get_business(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Get the business profile, creating defaults on first access"""
    return business_service.get_or_create_business(repos, business_id)


@router.get("/options")
def get_business_options():
    """Currencies and date formats a business profile may use"""
    return {"currencies": CURRENCIES, "date_formats": DATE_FORMATS}


@router.put("", response_model=BusinessProfile)
def update_business(
    updates: BusinessUpdate,
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """Update business settings (name, tax, invoice prefix, currency, ...)"""
    return business_service.update_business(repos, business_id, updates)


@router.post("/reset")
def reset_business(
    business_id: str = Depends(get_business_id),
    repos: Repositories = Depends(get_repositories)
):
    """
    Delete all products, contacts and invoices.

    The business profile and the invoice number counter are kept.
    """
    removed = business_service.reset_business_data(repos, business_id)
    return {"message": "All data cleared", "removed": removed}

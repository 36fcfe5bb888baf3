import logging
from app.config import settings
from app.repositories.base import Repositories
from app.schemas.business import BusinessProfile, BusinessUpdate
from app.services.sync_service import publish_collection

logger = logging.getLogger(__name__)


def default_profile(business_id: str) -> BusinessProfile:
    return BusinessProfile(
        id=business_id,
        name=settings.default_business_name,
        tax_label=settings.default_tax_label,
        tax_rate=settings.default_tax_rate,
        invoice_prefix=settings.default_invoice_prefix,
        currency_code=settings.default_currency_code,
        date_format=settings.default_date_format,
        invoice_color=settings.default_invoice_color,
    )


def get_or_create_business(repos: Repositories, business_id: str) -> BusinessProfile:
    """Load the business profile, creating it from defaults on first access"""
    profile = repos.businesses.get(business_id)
    if profile is None:
        logger.info(f"Creating default business profile for {business_id}")
        profile = repos.businesses.save(default_profile(business_id))
        repos.commit()
    return profile


def update_business(repos: Repositories, business_id: str, updates: BusinessUpdate) -> BusinessProfile:
    profile = get_or_create_business(repos, business_id)
    changes = updates.model_dump(exclude_unset=True, exclude_none=True)
    profile = repos.businesses.save(profile.model_copy(update=changes))
    repos.commit()
    logger.info(f"Updated business {business_id}: {', '.join(sorted(changes)) or 'no changes'}")
    return profile


def reset_business_data(repos: Repositories, business_id: str) -> dict:
    """
    Remove all products, contacts and invoices of a business.

    The invoice sequence counter is left untouched so numbers are never reissued.
    """
    try:
        removed = {
            "invoices": repos.invoices.delete_all(business_id),
            "products": repos.products.delete_all(business_id),
            "customers": repos.contacts.delete_all(business_id),
        }
        repos.commit()
    except Exception:
        repos.rollback()
        raise

    logger.warning(f"Reset data for business {business_id}: {removed}")
    for collection in removed:
        publish_collection(repos, business_id, collection)
    return removed

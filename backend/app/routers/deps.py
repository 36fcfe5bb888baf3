import re
from typing import Optional
from fastapi import Header
from app.config import settings
from app.exceptions import LedgerValidationError

BUSINESS_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,64}")


def get_business_id(x_business_id: Optional[str] = Header(None)) -> str:
    """Business namespace for the request; the X-Business-Id header overrides the default"""
    business_id = (x_business_id or "").strip() or settings.default_business_id
    if not BUSINESS_ID_PATTERN.fullmatch(business_id):
        raise LedgerValidationError("X-Business-Id may only contain letters, digits, '-' and '_' (max 64)")
    return business_id

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from app.routers import business, products, contacts, invoices, reports, sync
from app.config import settings
from app.exceptions import LedgerIntegrityError, LedgerValidationError, NotFoundError
from app.repositories import backend_name
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)

# Log startup information
logger.info("="*60)
logger.info("Starting BillBook API")
logger.info("="*60)
logger.info(f"Storage backend: {backend_name()}")
logger.info(f"S3 snapshot storage configured: {bool(settings.storage_access_key_id and settings.storage_secret_access_key)}")
logger.info(f"Default business: {settings.default_business_id}")
logger.info("="*60)

app = FastAPI(
    title="BillBook API",
    description="API for invoicing, payments, inventory and customer ledgers",
    version="1.0.0"
)


def parse_cors_origins(origins_str: str) -> list:
    """Parse comma-separated CORS origins string into a list."""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


# Default origins for local development
default_origins = ["http://localhost:3000", "http://localhost:5173"]
all_origins = parse_cors_origins(settings.cors_origins) or default_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=all_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(business.router)
app.include_router(products.router)
app.include_router(contacts.router)
app.include_router(invoices.router)
app.include_router(reports.router)
app.include_router(sync.router)  # Snapshot subscriptions


@app.get("/")
def root():
    return {"message": "BillBook API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy", "backend": backend_name()}


@app.exception_handler(LedgerValidationError)
async def validation_error_handler(request: Request, exc: LedgerValidationError):
    logger.info(f"Rejected {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(LedgerIntegrityError)
async def integrity_error_handler(request: Request, exc: LedgerIntegrityError):
    logger.error(f"Ledger integrity error on {request.method} {request.url.path}: {str(exc)}")
    return JSONResponse(
        status_code=409,
        content={"detail": str(exc), "invoice_id": exc.invoice_id, "fields": exc.fields},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler so clients always get a JSON body"""
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"},
    )

#!/usr/bin/env python3
"""
Wipe the SQL ledger store: every business, product, contact, invoice and
payment, and every invoice number counter.

Numbering restarts at 1 afterwards. To clear one business while keeping its
invoice numbers unique, call POST /api/business/reset instead.

    python scripts/reset_database.py [--yes]
"""
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env'))

from sqlalchemy import text
from app.database import Base, engine
import app.models  # noqa: F401  (registers tables on Base.metadata)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def rebuild_schema() -> None:
    """Drop the ledger tables and create them empty from the current models"""
    table_names = ", ".join(sorted(Base.metadata.tables))
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    with engine.begin() as conn:
        # create_all built the schema, so alembic must be stamped again rather than upgraded
        conn.execute(text("DROP TABLE IF EXISTS alembic_version"))
    logger.info(f"Rebuilt tables: {table_names}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Delete all ledger data in the configured database")
    parser.add_argument("--yes", action="store_true", help="do not ask for confirmation")
    args = parser.parse_args(argv)

    if engine is None:
        logger.error("DATABASE_URL is not set. The snapshot store is cleared by removing "
                     "its storage directory or bucket prefix.")
        return 1

    target = engine.url.render_as_string(hide_password=True)
    if not args.yes:
        answer = input(f"Delete every invoice, payment and counter in {target}? Type 'reset' to continue: ")
        if answer.strip() != "reset":
            logger.info("Nothing was changed")
            return 1

    rebuild_schema()
    logger.info(f"Ledger store at {target} is empty; run 'alembic stamp head' before the next migration")
    return 0


if __name__ == "__main__":
    sys.exit(main())

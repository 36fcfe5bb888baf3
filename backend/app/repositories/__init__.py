from typing import Iterator

from app.database import SessionLocal, engine
from app.repositories.base import Repositories
from app.repositories.snapshot import SnapshotRepositories
from app.repositories.sql import SqlRepositories
from app.services.snapshot_storage import get_snapshot_storage


def backend_name() -> str:
    return "sql" if engine is not None else "snapshot"


def get_repositories() -> Iterator[Repositories]:
    """Dependency for getting the configured repository backend"""
    if engine is None:
        yield SnapshotRepositories(get_snapshot_storage())
        return

    db = SessionLocal()
    try:
        yield SqlRepositories(db)
    finally:
        db.close()

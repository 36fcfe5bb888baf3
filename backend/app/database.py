from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from app.config import settings


def _normalize_db_url(url):
    # Heroku/Railway style URLs still use the deprecated postgres:// scheme
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


engine = (
    create_engine(_normalize_db_url(settings.database_url), echo=settings.sql_echo, pool_pre_ping=True)
    if settings.database_url
    else None
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()
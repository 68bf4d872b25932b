"""Database engine and per-request sessions"""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from reseller_engine.config import settings


def build_engine(database_url: str) -> Engine:
    """
    Engine for the configured database.

    SQLite (single-store installs, local runs) gets no pool tuning; Postgres
    gets a bounded, pre-pinged pool sized from settings.
    """
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=3600,
    )


engine = build_engine(settings.database_url)

# Sales commit explicitly; nothing is flushed behind the caller's back
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Session:
    """Dependency injection for database sessions"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

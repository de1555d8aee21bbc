"""
Database session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings
from app.db.base import Base

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    echo=False,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_sqlite_schema() -> None:
    """Create all tables for SQLite deployments (server databases use Alembic)."""
    if "sqlite" in settings.DATABASE_URL:
        import app.models  # noqa: F401  registers every table on Base.metadata
        Base.metadata.create_all(bind=engine)

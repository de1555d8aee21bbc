"""
Dependencies for FastAPI endpoints
"""
from typing import Generator
from app.db.session import SessionLocal
from app.core.config import settings
from app.services.policy_context import LeavePolicyContext


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_policy_context() -> LeavePolicyContext:
    """Leave policy parameters for the current request, built from settings"""
    return LeavePolicyContext.from_settings(settings)

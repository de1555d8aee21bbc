"""
Main API router
"""
from fastapi import APIRouter

from app.api.v1 import health, version, leaves

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(version.router, tags=["version"])
api_router.include_router(leaves.router, prefix="/leaves", tags=["leaves"])

"""
API routes aggregation.
"""

from fastapi import APIRouter

from .access import router as access_router
from .admin import router as admin_router

router = APIRouter()

router.include_router(access_router, tags=["access"])
router.include_router(admin_router, prefix="/admin", tags=["admin"])

"""
API v1 router aggregating all endpoints.
"""

from fastapi import APIRouter

from api.v1.auth import router as auth_router
from api.v1.catalog import router as catalog_router
from api.v1.leaderboard import router as leaderboard_router
from api.v1.users import router as users_router

router = APIRouter()

router.include_router(auth_router, prefix="/auth", tags=["Authentication"])
router.include_router(users_router, prefix="/users", tags=["Users"])
router.include_router(leaderboard_router, prefix="/leaderboard", tags=["Leaderboard"])
router.include_router(catalog_router, prefix="/catalog", tags=["Catalog"])

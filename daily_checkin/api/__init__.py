"""API routers."""

from fastapi import APIRouter

from daily_checkin.api import admin, checkin, codes

api_router = APIRouter()
api_router.include_router(checkin.router)
api_router.include_router(codes.router)
api_router.include_router(admin.router)

__all__ = ["api_router"]

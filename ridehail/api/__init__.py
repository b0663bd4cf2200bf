"""HTTP API."""

from fastapi import APIRouter

from ridehail.api import admin, drivers, requests, users

router = APIRouter()
router.include_router(users.router, prefix="/user", tags=["users"])
router.include_router(requests.router, prefix="/requests", tags=["requests"])
router.include_router(drivers.router, prefix="/drivers", tags=["drivers"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])

__all__ = ["router"]

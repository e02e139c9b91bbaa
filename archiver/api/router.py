"""Aggregates all API routers into a single router."""

from fastapi import APIRouter

from archiver.api.archive import router as archive_router
from archiver.api.uploads import router as uploads_router

api_router = APIRouter()

api_router.include_router(uploads_router)
api_router.include_router(archive_router)

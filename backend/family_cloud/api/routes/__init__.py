"""API route registration."""

from fastapi import APIRouter

from family_cloud.api.routes import auth, health, storage

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(storage.router, prefix="/s3", tags=["storage"])

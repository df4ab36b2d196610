"""API router that aggregates all routes."""

from fastapi import APIRouter

from memecached.api.routes import health, memes, tags, upload

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)

# V1 API routes
v1_router = APIRouter(prefix="/v1")
v1_router.include_router(memes.router)
v1_router.include_router(tags.router)
v1_router.include_router(upload.router)

api_router.include_router(v1_router)

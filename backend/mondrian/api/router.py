"""Master API router: mounts all endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from mondrian.api import health, layout, reconstruct

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router)
api_router.include_router(layout.router)
api_router.include_router(reconstruct.router)

"""FastAPI dependency injection."""

from __future__ import annotations

from fastapi import Request

from mondrian.config import Settings, settings
from mondrian.engine.cache import SquareCache


def get_settings() -> Settings:
    return settings


def get_square_cache(request: Request) -> SquareCache:
    return request.app.state.square_cache

"""FastAPI app factory."""

from __future__ import annotations

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mondrian.config import settings
from mondrian.engine.cache import SquareCache

load_dotenv()

logging.basicConfig(
    level=getattr(logging, settings.mondrian_log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)


def create_app() -> FastAPI:
    app = FastAPI(
        title="Mondrian",
        description="Square-packing block visualizer: layout, raster and 3D read-back",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # One bounded cache per app instance
    app.state.square_cache = SquareCache(settings.cache_max_entries)

    from mondrian.api.router import api_router

    app.include_router(api_router)

    return app


app = create_app()

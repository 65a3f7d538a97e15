import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from lbd_events.api.router import api_router
from lbd_events.core.config import get_settings
from lbd_events.core.logging import setup_logging

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging()

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        logger.info(
            "Starting %s %s (env=%s, storage=%s).",
            settings.app_name,
            settings.app_version,
            settings.app_env,
            settings.storage_backend,
        )
        yield

    app = FastAPI(title=settings.app_name, version=settings.app_version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.storage_backend.lower() == "local":
        settings.media_path.mkdir(parents=True, exist_ok=True)
        app.mount("/media", StaticFiles(directory=str(settings.media_path)), name="media")
    app.include_router(api_router, prefix=settings.api_v1_prefix)

    return app


app = create_app()

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from ota_server.api.api import api_router
from ota_server.api.middleware import RequestLogMiddleware
from ota_server.config import settings
from ota_server.errors import DatastoreError
from ota_server.fleet.registry import FleetRegistry
from ota_server.fleet.sweeper import EvictionSweeper
from ota_server.log_setup import configure_logging
from ota_server.manifest.repository import ensure_apps_root
from ota_server.models.session import init_db

logger = logging.getLogger(__name__)


def create_app(registry: FleetRegistry | None = None) -> FastAPI:
    window = timedelta(seconds=settings.agent_inactivity_seconds)
    registry = registry or FleetRegistry(inactivity_window=window)
    sweeper = EvictionSweeper(registry, settings.agent_sweep_interval_seconds, window)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings)
        apps_root = ensure_apps_root()
        if settings.auto_create_schema:
            init_db()
        logger.info("%s started", settings.app_name)
        logger.info("Base URL: %s", settings.base_url)
        logger.info("Apps directory: %s", apps_root)
        await sweeper.start()
        try:
            yield
        finally:
            await sweeper.stop()
            logger.info("Server closed")

    app = FastAPI(title=settings.app_name, version=settings.service_version, lifespan=lifespan)
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(api_router)

    @app.get("/metrics")
    def metrics_endpoint():
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.exception_handler(DatastoreError)
    async def datastore_error_handler(request: Request, exc: DatastoreError):
        logger.error("Datastore failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"detail": "datastore unavailable"}, status_code=500)

    app.state.registry = registry
    app.state.sweeper = sweeper

    return app


app = create_app()

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.application import MaintenanceService
from backend.config import Settings
from backend.errors import install_error_handlers
from backend.infrastructure import SAPODataClient
from backend.routes import maintenance

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, *, http_client: httpx.AsyncClient | None = None) -> FastAPI:
    settings = settings or Settings.from_env()

    missing = settings.missing_variables()
    if missing:
        logger.warning("Missing SAP configuration: %s", ", ".join(missing))

    client = SAPODataClient(settings, http_client=http_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await client.aclose()

    app = FastAPI(title="SAP Maintenance Relay API", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.maintenance_service = MaintenanceService(client)

    origins = list(settings.cors_origins)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    install_error_handlers(app)
    app.include_router(maintenance.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse({"message": "SAP Maintenance Relay API", "docs": "/docs"})

    return app

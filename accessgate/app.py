from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from accessgate.api.v1.access_api import access as accessAPI
from accessgate.api.v1.admin_api import admin as adminAPI
from accessgate.api.v1.grievance_api import grievances as grievanceAPI
from accessgate.core.config.database import DatabaseManager
from accessgate.core.config.settings import AccessSettings
from accessgate.core.dependencies import build_evaluator, build_grievance_service
from accessgate.utils.helpers import error_response
from accessgate.utils.logger import Logger, set_root_level

app_logger = Logger(__name__)


def create_app(settings: Optional[AccessSettings] = None) -> FastAPI:
    """Create the FastAPI application hosting the access evaluator"""
    settings = settings or AccessSettings()
    set_root_level(settings.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager"""
        app_logger.info("Starting application...")
        db_manager = None
        database = None
        if settings.storage_backend == "mongo":
            db_manager = DatabaseManager(settings)
            database = await db_manager.connect()

        evaluator = build_evaluator(settings, database)
        await evaluator.initialize()
        app.state.evaluator = evaluator
        app.state.grievances = build_grievance_service(settings, evaluator, database)
        yield
        await evaluator.shutdown()
        if db_manager:
            db_manager.close()
        app_logger.info("Shutting down application...")

    app = FastAPI(
        title=settings.app_name,
        description="Hybrid RBAC/ABAC access decision engine",
        version=settings.app_version,
        docs_url="/api/docs",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allowed_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allowed_methods,
        allow_headers=settings.cors_allowed_headers,
    )

    api_version = settings.api_version
    app.include_router(accessAPI, prefix=f"/api/{api_version}/access", tags=["Access"])
    app.include_router(adminAPI, prefix=f"/api/{api_version}/admin", tags=["Administration"])
    app.include_router(grievanceAPI, prefix=f"/api/{api_version}/grievances", tags=["Grievances"])

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        app_logger.error(f"Unhandled exception: {exc}", exc_info=True)
        return error_response("An unexpected error occurred", code=500)

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint to verify API status.
        """
        evaluator = getattr(app.state, "evaluator", None)
        return JSONResponse(
            content={
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "initialized": bool(evaluator and evaluator.is_initialized),
            }
        )

    return app

"""
FastAPI Application Entry Point

Pizza ordering service: diners, franchises and stores, the menu, and
orders handed to the pizza factory.
Development mode runs on in-memory stores and a mock factory; staging and
production use PostgreSQL and the real factory API.

Endpoints:
    - /api/auth: register, login, logout
    - /api/user: profiles and the admin user list
    - /api/franchise: franchises and their stores
    - /api/order: menu and orders
    - GET /api/docs: endpoint list and service config
    - GET /: version banner
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException as StarletteHTTPException

from pizza_service.container import ServiceContainer, build_container
from pizza_service.core.config import Settings, get_settings, setup_logging
from pizza_service.core.exceptions import ServiceError
from pizza_service.dependencies import require_actor
from pizza_service.middleware import RequestLoggingMiddleware
from pizza_service.routers import auth, franchise, order, user
from pizza_service.schemas import DocsResponse, EndpointDoc, RootResponse

setup_logging()
logger = logging.getLogger(__name__)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    settings: Settings = app.state.settings

    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    if app.state.container is None:
        app.state.container = build_container(settings)
    container: ServiceContainer = app.state.container

    await container.startup()
    logger.info(f"✅ Storage: {container.storage_backend}")
    logger.info(f"✅ Fulfillment Service: {container.fulfillment.provider_name}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"⚠️ Missing production config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    await container.shutdown()
    logger.info("✅ Cleanup complete")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _requires_auth(dependant) -> bool:
    return any(
        dep.call is require_actor or _requires_auth(dep)
        for dep in dependant.dependencies
    )


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    field = ".".join(
        str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")
    )
    return f"{field}: {first['msg']}" if field else first["msg"]


# =============================================================================
# APPLICATION FACTORY
# =============================================================================

def create_app(
    container: Optional[ServiceContainer] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        container: Prebuilt services; built from settings at startup when omitted
        settings: Settings to use; defaults to the container's, then the environment's
    """
    if settings is None:
        settings = container.settings if container is not None else get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Pizza ordering service with franchise management and factory fulfillment.",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.container = container

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router)
    app.include_router(user.router)
    app.include_router(franchise.router)
    app.include_router(order.router)

    # -------------------------------------------------------------------------
    # ROOT & DOCS ENDPOINTS
    # -------------------------------------------------------------------------

    @app.get("/", response_model=RootResponse, tags=["Root"])
    async def root() -> RootResponse:
        """API root with version banner."""
        return RootResponse(message="welcome to JWT Pizza", version=settings.app_version)

    @app.get("/api/docs", response_model=DocsResponse, tags=["Root"])
    async def api_docs() -> DocsResponse:
        """Registered API endpoints and the service's external configuration."""
        endpoints = []
        for route in app.routes:
            if not isinstance(route, APIRoute) or not route.path.startswith("/api/"):
                continue
            for method in sorted(route.methods):
                endpoints.append(EndpointDoc(
                    method=method,
                    path=route.path,
                    requires_auth=_requires_auth(route.dependant),
                    description=route.summary,
                ))
        return DocsResponse(
            version=settings.app_version,
            endpoints=endpoints,
            config={"factory": settings.factory_url, "db": settings.database_host},
        )

    # -------------------------------------------------------------------------
    # ERROR HANDLERS
    # -------------------------------------------------------------------------

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": _validation_message(exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"message": "unknown endpoint"})
        return JSONResponse(status_code=exc.status_code, content={"message": str(exc.detail)})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all exception handler."""
        logger.exception(f"Unhandled exception: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "message": str(exc) if settings.debug else "internal server error",
            },
        )

    return app


app = create_app()


def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "pizza_service.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()

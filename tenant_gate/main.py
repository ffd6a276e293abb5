"""
Tenant Gate - FastAPI application

Runs the identity pipeline (tenant, locale, principal, page authorization)
in front of every request. Page rendering is out of scope; the catch-all
page handler echoes the resolved identity so downstream services and
operators can see what the pipeline decided.
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from .config import DEV_JWT_SECRET, Settings, get_settings
from .context import OUTBOUND_HEADERS
from .database import DatabasePool
from .directory import PostgresTenantDirectory, TenantDirectory
from .exceptions import ConfigurationError, DirectoryError, GatewayException
from .logging_config import configure_logging
from .middleware import (
    IdentityPipelineMiddleware,
    RoleProvider,
    TokenClaimRoleProvider,
    build_identity_pipeline,
)
from .resolver import TenantResolver
from .routers import metrics_router, session_router
from .routes import RoutePermissionTable, load_route_permissions
from .secrets import validate_secret_strength
from .tokens import TokenVerifier

logger = structlog.get_logger()


def check_jwt_secret(settings: Settings) -> None:
    """
    Refuse to start with a missing/short key, or with the development key in production

    Raises:
        ConfigurationError
    """
    try:
        validate_secret_strength(settings.jwt_secret_key, min_length=32, secret_name="jwt_secret_key")
    except ValueError as e:
        raise ConfigurationError("jwt_secret_key", str(e))

    if settings.environment == "production" and settings.jwt_secret_key == DEV_JWT_SECRET:
        raise ConfigurationError("jwt_secret_key", "development key must not be used in production")


def install_pipeline(
    app: FastAPI,
    directory: TenantDirectory,
    verifier: TokenVerifier,
    role_provider: RoleProvider,
    route_table: RoutePermissionTable,
    settings: Settings
) -> None:
    app.state.tenant_directory = directory
    resolver = TenantResolver(directory, verifier, settings)
    app.state.identity_pipeline = build_identity_pipeline(
        resolver, verifier, role_provider, route_table, settings
    )


def create_app(
    settings: Optional[Settings] = None,
    directory: Optional[TenantDirectory] = None,
    verifier: Optional[TokenVerifier] = None,
    role_provider: Optional[RoleProvider] = None,
    route_table: Optional[RoutePermissionTable] = None,
) -> FastAPI:
    """
    Build the application

    Collaborators default to production wiring: the PostgreSQL directory is
    opened during startup. Passing a directory builds the pipeline
    immediately (no database needed).
    """
    settings = settings or get_settings()
    check_jwt_secret(settings)

    verifier = verifier or TokenVerifier(settings.jwt_secret_key, settings.jwt_algorithm)
    role_provider = role_provider or TokenClaimRoleProvider(settings.default_role)
    route_table = route_table or load_route_permissions(settings.route_permissions_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the directory pool and wire the pipeline"""
        configure_logging(settings.log_level, settings.json_logs, settings.app_name, settings.environment)
        logger.info("app_starting", app_name=settings.app_name, version=settings.app_version)

        if not hasattr(app.state, "identity_pipeline"):
            db_pool = DatabasePool(settings)
            await db_pool.initialize()
            app.state.db_pool = db_pool
            install_pipeline(
                app, PostgresTenantDirectory(db_pool.pool), verifier, role_provider, route_table, settings
            )
            logger.info("directory_ready", pool=db_pool.get_stats())

        logger.info("app_ready", route_prefixes=len(route_table), app_domain=settings.app_domain)

        yield

        if hasattr(app.state, "db_pool"):
            await app.state.db_pool.close()
        logger.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Request identity resolution: tenant, locale, principal and page authorization",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.route_table = route_table
    app.state.token_verifier = verifier
    app.state.role_provider = role_provider

    if directory is not None:
        install_pipeline(app, directory, verifier, role_provider, route_table, settings)

    app.add_middleware(IdentityPipelineMiddleware)

    app.include_router(metrics_router)
    app.include_router(session_router)

    @app.exception_handler(GatewayException)
    async def gateway_exception_handler(request: Request, exc: GatewayException):
        """Handle tenant-gate exceptions raised by route handlers"""
        status_code = 503 if isinstance(exc, DirectoryError) else 500
        logger.error("gateway_exception", error=exc.message, error_code=exc.error_code)
        return JSONResponse(
            status_code=status_code,
            content=exc.to_dict()
        )

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "version": settings.app_version
        }

    @app.get("/{locale}")
    @app.get("/{locale}/{page_path:path}")
    async def page_context(request: Request, locale: str, page_path: str = ""):
        """Identity resolved for this page request"""
        if locale not in settings.supported_locales:
            raise HTTPException(status_code=404, detail="Not Found")

        identity = request.state.identity
        return {
            "tenant_id": identity.tenant_id,
            "active_locale": identity.active_locale,
            "path_without_locale": identity.path_without_locale,
            "user_id": identity.principal.user_id if identity.principal else None,
            "role": identity.role,
            "headers": {name: request.headers.get(name) for name in OUTBOUND_HEADERS},
        }

    return app

"""
Plinth FastAPI Application.

Main API application: authentication, workspaces, module management, and the
routes contributed by enabled feature modules.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from plinth import __version__
from plinth.api.routes import auth, modules, workspaces
from plinth.config import settings
from plinth.db.connection import db_session, init_db
from plinth.logging_config import setup_logging
from plinth.modules.integration import ModuleIntegration
from plinth.modules.manager import ModuleManager
from plinth.modules.registry import ModuleRegistry
from plinth.modules.scanner import ModuleScanner
from plinth.modules.service import ModulesService

logger = logging.getLogger(__name__)


def build_module_system(app: FastAPI) -> ModulesService:
    """
    Compose the module system and attach it to ``app.state``.

    The registry is created here and shared by the scanner-driven manager,
    the loader, and the service. Nothing is discovered until the service is
    initialized.
    """
    registry = ModuleRegistry()
    scanner = ModuleScanner(
        settings.module_roots, manifest_name=settings.module_manifest_name
    )
    manager = ModuleManager(registry=registry, scanner=scanner)
    service = ModulesService(manager, auto_enable=settings.auto_enable_modules)

    app.state.module_manager = manager
    app.state.modules_service = service
    app.state.module_integration = ModuleIntegration(manager)
    return service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for FastAPI application.

    Creates missing tables, initializes the module system from the persisted
    enabled set, and mounts the routes of every loaded module.
    """
    # Initialize logging first
    setup_logging(context="api")

    init_db()

    logger.info(f"Initializing module system from {settings.module_roots}")
    service = build_module_system(app)
    with db_session() as session:
        loaded = service.initialize(session)

    mounted = app.state.module_integration.mount(app)
    logger.info(
        f"✓ Module system ready: {len(loaded)} module(s) loaded, "
        f"{mounted} with routes"
    )

    logger.info("Application startup complete")

    yield

    logger.info("Application shutdown complete")


app = FastAPI(
    lifespan=lifespan,
    title="Plinth API",
    description="Multi-tenant SaaS backend with pluggable feature modules",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint - API health check."""
    return {
        "status": "ok",
        "message": "Plinth API is running",
        "version": __version__,
    }


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    from plinth.db.connection import check_connection

    db_status = "healthy" if check_connection() else "unhealthy"

    manager = getattr(app.state, "module_manager", None)
    modules_status = "ready" if manager is not None and manager.is_ready else "pending"

    return {
        "status": "healthy" if db_status == "healthy" else "degraded",
        "database": db_status,
        "modules": modules_status,
    }


app.include_router(auth.router)
app.include_router(workspaces.router)
app.include_router(modules.router)

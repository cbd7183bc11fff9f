"""FastAPI application serving the module catalog."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from treeplug import __version__
from treeplug.api.routes import modules_router
from treeplug.api.routes.modules import set_registry
from treeplug.compiler import get_module_path
from treeplug.modules import load_directory, registry

logger = logging.getLogger(__name__)


def should_load_modules() -> bool:
    """Whether installed modules are loaded at startup."""
    return os.getenv("TREEPLUG_SKIP_MODULE_LOAD", "").strip().lower() not in ("1", "true", "yes")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    module_path = get_module_path()

    set_registry(registry)

    if should_load_modules():
        result = load_directory(module_path, registry=registry)
        for path, error in result.failed.items():
            logger.warning("Skipped %s: %s", path, error)

    app.state.registry = registry
    app.state.module_path = module_path

    logger.info("treeplug API started. Modules: %s (%d loaded)", module_path, len(registry))

    yield

    # Shutdown
    logger.info("treeplug API shutting down.")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="treeplug",
        description="API for compiling user modules and querying the module catalog",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(modules_router)

    @app.get("/api/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy", "modules": len(registry)}

    @app.get("/")
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "treeplug API",
            "version": __version__,
            "docs_url": "/docs",
        }

    return app


# Create the app instance
app = create_app()

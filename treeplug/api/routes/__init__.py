"""API route modules."""

from treeplug.api.routes.modules import router as modules_router

__all__ = [
    "modules_router",
]

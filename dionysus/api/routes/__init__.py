"""
API Routes - FastAPI route modules.
"""

from dionysus.api.routes.health import router as health_router
from dionysus.api.routes.auth import router as auth_router
from dionysus.api.routes.projects import router as projects_router
from dionysus.api.routes.billing import router as billing_router

__all__ = [
    "health_router",
    "auth_router",
    "projects_router",
    "billing_router",
]

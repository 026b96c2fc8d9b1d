"""
app/api/routers package marker.
"""

from app.api.routers.rate_imports import router as rate_imports_router
from app.api.routers.rate_templates import router as rate_templates_router

__all__ = [
    "rate_imports_router",
    "rate_templates_router",
]

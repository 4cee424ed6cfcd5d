"""
API route modules.
"""

from .content import router as content_router
from .maintenance import router as maintenance_router
from .misc import router as misc_router

__all__ = [
    "content_router",
    "maintenance_router",
    "misc_router",
]

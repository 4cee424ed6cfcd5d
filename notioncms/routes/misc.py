"""
Miscellaneous routes: health check.
"""

from fastapi import APIRouter

from .. import __version__
from ..config import config, state

router = APIRouter(tags=["misc"])


@router.get("/status")
async def health_check() -> dict:
    """API health check."""
    return {
        "status": "ok",
        "version": __version__,
        "notion_configured": config.has_notion_config(),
        "storage_backend": state.storage.name if state.storage else None,
        "captions_enabled": state.provider is not None,
    }

"""
Service layer for business logic.

Services encapsulate business logic, keeping routes as thin HTTP adapters.
Each service receives its dependencies via constructor injection.

Usage in routes:
    from ..services import ContentServiceDep

    @router.get("/api/getPage")
    async def get_pages(service: ContentServiceDep):
        return await service.list_pages()
"""

from typing import Annotated

from fastapi import Depends, HTTPException

from ..config import config, require_notion_config, state

from .content_service import ContentService

__all__ = [
    # Services
    "ContentService",
    # Dependency factories
    "get_content_service",
    # Type aliases for dependency injection
    "ContentServiceDep",
]


def get_content_service() -> ContentService:
    """Dependency to get ContentService instance."""
    require_notion_config()
    if state.notion is None:
        raise HTTPException(status_code=500, detail="Notion client not initialized")
    return ContentService(
        client=state.notion,
        database_id=config.NOTION_DB,
        concurrency=config.FETCH_CONCURRENCY,
        storage=state.storage,
        provider=state.provider,
        downloader=state.downloader,
    )


ContentServiceDep = Annotated[ContentService, Depends(get_content_service)]

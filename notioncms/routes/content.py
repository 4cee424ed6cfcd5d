"""
Content routes: raw entries, resolved pages, tag options.
"""

from fastapi import APIRouter, HTTPException

from ..config import config
from ..exceptions import TagPropertyMissing, TagPropertyTypeError
from ..schemas import PageResponse, TagOptionsResponse
from ..services import ContentServiceDep

router = APIRouter(prefix="/api", tags=["content"])


@router.get("/fetchNotion")
async def fetch_notion(service: ContentServiceDep) -> dict:
    """Raw query result of published entries, sorted by ordering."""
    return await service.query_published()


@router.get("/getPage")
async def get_pages(service: ContentServiceDep) -> list[PageResponse]:
    """Entries with their content trees fully resolved."""
    entries = await service.list_pages(include_private=config.INCLUDE_PRIVATE)
    return [PageResponse.from_entry(entry) for entry in entries]


@router.get("/getTagOptions")
async def get_tag_options(service: ContentServiceDep) -> TagOptionsResponse:
    """Declared choices of the tag property, for the front-end filter."""
    try:
        options = await service.get_tag_options()
    except TagPropertyMissing as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TagPropertyTypeError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return TagOptionsResponse.from_options(options)

"""
Maintenance routes: image relocation and alt-text captions.

Side-effect only; both walk every published entry and answer with a summary.
"""

from fastapi import APIRouter, Depends

from ..config import config, require_llm_config, require_storage_config
from ..schemas import CaptionResponse, RelocationResponse
from ..services import ContentServiceDep

router = APIRouter(prefix="/api", tags=["maintenance"])


@router.api_route(
    "/uploadNotionImages",
    methods=["GET", "POST"],
    dependencies=[Depends(require_storage_config)],
)
async def upload_notion_images(service: ContentServiceDep) -> RelocationResponse:
    """Relocate temporary Notion images to durable storage."""
    report = await service.relocate_images()
    return RelocationResponse.from_report(report)


@router.api_route(
    "/generateImageDescriptions",
    methods=["GET", "POST"],
    dependencies=[Depends(require_llm_config)],
)
async def generate_image_descriptions(service: ContentServiceDep) -> CaptionResponse:
    """Caption every uncaptioned image with an AI description."""
    report = await service.generate_captions(delay_seconds=config.CAPTION_DELAY_SECONDS)
    return CaptionResponse.from_report(report)

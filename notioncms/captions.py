"""
Caption generator - AI alt text for images without a caption.

Walks each entry's content tree, asks the configured LLM provider to
describe every uncaptioned image for visually impaired readers, and writes
the description back as the image block's caption. Images are handled one
at a time with a pause in between to stay under provider rate limits.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from .images import ImageDownloader
from .models import BlockType, ContentBlock, Entry, RichTextRun, plain_text
from .notion import NotionClient
from .providers import LLMProvider
from .storage import content_type_for

logger = logging.getLogger(__name__)

CAPTION_PROMPT = (
    "Describe this image in a simple, straightforward, and affirmative way for "
    "visually impaired readers. Focus on the main subject, key visual elements, "
    "colors, and any important details. Keep it concise but informative."
)

UNAVAILABLE = "Image description unavailable"


@dataclass
class CaptionResult:
    """Outcome for one image."""
    page_name: str
    block_id: str
    image_url: str
    description: str
    updated: bool = False

    def to_dict(self) -> dict:
        return {
            "pageName": self.page_name,
            "blockId": self.block_id,
            "imageUrl": self.image_url,
            "description": self.description,
            "updated": self.updated,
        }


@dataclass
class CaptionReport:
    """Summary of a caption run."""
    processed_pages: int = 0
    images: list[CaptionResult] = field(default_factory=list)

    @property
    def updated(self) -> list[CaptionResult]:
        return [image for image in self.images if image.updated]

    @property
    def failed(self) -> list[CaptionResult]:
        return [image for image in self.images if not image.updated]


def has_caption(block: ContentBlock) -> bool:
    return bool(block.media and plain_text(block.media.caption).strip())


class CaptionGenerator:
    """Generates and stores alt-text captions for image blocks."""

    def __init__(
        self,
        client: NotionClient,
        provider: LLMProvider,
        downloader: ImageDownloader,
        delay_seconds: float = 1.0,
        prompt: str = CAPTION_PROMPT,
        max_tokens: int = 150,
    ):
        self.client = client
        self.provider = provider
        self.downloader = downloader
        self.delay_seconds = delay_seconds
        self.prompt = prompt
        self.max_tokens = max_tokens

    async def describe(self, image_url: str) -> str:
        """Return an AI description, or UNAVAILABLE when anything goes wrong."""
        try:
            data = await self.downloader.download(image_url)
            limit = self.provider.capabilities.max_image_bytes
            if len(data) > limit:
                logger.warning(f"Image {image_url} is {len(data)} bytes, over the {limit} byte limit")
                return UNAVAILABLE

            response = await self.provider.describe_image_async(
                data,
                content_type_for(image_url.split("?")[0]),
                self.prompt,
                max_tokens=self.max_tokens,
            )
        except Exception as e:
            logger.warning(f"Failed to analyze image {image_url}: {e}")
            return UNAVAILABLE

        description = (response.text or "").strip()
        if not description:
            logger.warning(f"No description returned for image {image_url}")
            return UNAVAILABLE
        return description

    async def update_caption(self, block: ContentBlock, caption: str) -> bool:
        """Write the caption to Notion; returns False instead of raising."""
        if caption == UNAVAILABLE:
            logger.warning(f"Skipping update for block {block.id} - no valid description")
            return False

        try:
            await self.client.update_block(block.id, {
                "image": {
                    "caption": [{"type": "text", "text": {"content": caption}}],
                },
            })
        except Exception as e:
            logger.warning(f"Failed to update caption for block {block.id}: {e}")
            return False

        block.media.caption = [RichTextRun(plain_text=caption)]
        logger.info(f"Updated caption for block {block.id}")
        return True

    async def caption_blocks(self, blocks: list[ContentBlock], page_name: str, report: CaptionReport) -> None:
        for block in blocks:
            if block.type == BlockType.IMAGE and block.media is not None:
                await self._caption_block(block, page_name, report)

            if block.children:
                await self.caption_blocks(block.children, page_name, report)

    async def _caption_block(self, block: ContentBlock, page_name: str, report: CaptionReport) -> None:
        if has_caption(block):
            logger.debug(f"Skipping image with existing caption in block {block.id}")
            return
        if not block.media.url:
            return

        logger.info(f"Processing image in '{page_name}': {block.media.url}")
        description = await self.describe(block.media.url)
        updated = await self.update_caption(block, description)
        report.images.append(CaptionResult(
            page_name=page_name,
            block_id=block.id,
            image_url=block.media.url,
            description=description,
            updated=updated,
        ))

        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

    async def caption_entries(self, entries: list[Entry]) -> CaptionReport:
        report = CaptionReport()
        for entry in entries:
            logger.info(f"Processing page: '{entry.title}'")
            await self.caption_blocks(entry.content, entry.title, report)
            report.processed_pages += 1

        logger.info(
            f"Captioned {len(report.images)} images: "
            f"{len(report.updated)} updated, {len(report.failed)} not updated"
        )
        return report

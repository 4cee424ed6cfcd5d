"""
Image Relocator - Move Notion-hosted images to durable storage.

Notion serves uploaded files from signed URLs that expire after an hour.
For every such image this module downloads the bytes, uploads them to the
configured storage backend and points the Notion block (or the page's
titleImage property) at the new URL.

A failure on one image is logged and recorded; the remaining images of the
page, and the remaining pages, are still processed.
"""

import logging
import re
import time
from dataclasses import dataclass, field

import aiohttp

from .exceptions import ImageDownloadError
from .models import BlockType, ContentBlock, Entry, ImageKind, ImageReference
from .notion import NotionClient
from .pages import sanitize_slug
from .storage import ObjectStorage, content_type_for

logger = logging.getLogger(__name__)

_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg)(\?.*)?$", re.IGNORECASE)

TITLE_IMAGE_FOLDER = "headImage"


@dataclass
class ImageCounter:
    """Per-entry image index shared by every branch of the tree walk."""
    count: int = 0

    def next(self) -> int:
        index = self.count
        self.count += 1
        return index


def generate_file_name(original_url: str, index: int = 0, timestamp_ms: int | None = None) -> str:
    """
    Build a destination file name from a millisecond timestamp and an index.

    The extension comes from the last URL segment when it is a known image
    type, otherwise "jpg".
    """
    last_part = original_url.split("/")[-1]
    match = _EXTENSION_PATTERN.search(last_part)
    extension = match.group(1) if match else "jpg"

    timestamp = timestamp_ms if timestamp_ms is not None else int(time.time() * 1000)
    if index > 0:
        return f"image-{timestamp}-{index}.{extension}"
    return f"image-{timestamp}.{extension}"


class ImageDownloader:
    """Downloads image bytes over HTTP."""

    def __init__(self, timeout: int = 30, session: aiohttp.ClientSession | None = None):
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def download(self, url: str) -> bytes:
        logger.info(f"Downloading image from: {url}")
        session = self._get_session()
        async with session.get(url, allow_redirects=True) as resp:
            if resp.status >= 400:
                raise ImageDownloadError(f"Failed to download image: {resp.status}")
            return await resp.read()

    async def close(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None


@dataclass
class RelocatedImage:
    """Outcome for one temporary image."""
    original_url: str
    kind: str  # "block" or "titleImage"
    block_id: str | None = None
    page_id: str | None = None
    new_url: str | None = None
    file_name: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        return {
            "type": self.kind,
            "blockId": self.block_id,
            "pageId": self.page_id,
            "originalUrl": self.original_url,
            "newUrl": self.new_url,
            "fileName": self.file_name,
            "error": self.error,
        }


@dataclass
class RelocationReport:
    """Summary of a relocation run."""
    processed_pages: int = 0
    images: list[RelocatedImage] = field(default_factory=list)

    @property
    def uploaded(self) -> list[RelocatedImage]:
        return [image for image in self.images if image.ok]

    @property
    def failed(self) -> list[RelocatedImage]:
        return [image for image in self.images if not image.ok]


class ImageRelocator:
    """Relocates temporary Notion images to durable storage."""

    def __init__(
        self,
        client: NotionClient,
        storage: ObjectStorage,
        downloader: ImageDownloader,
        title_image_folder: str = TITLE_IMAGE_FOLDER,
    ):
        self.client = client
        self.storage = storage
        self.downloader = downloader
        self.title_image_folder = title_image_folder

    async def _transfer(self, reference: ImageReference, folder: str, index: int) -> tuple[str, str]:
        """Download a temporary image and upload it; returns (public_url, file_name)."""
        data = await self.downloader.download(reference.url)
        file_name = generate_file_name(reference.url, index)
        path = f"{folder}/{file_name}" if folder else file_name
        public_url = await self.storage.upload(path, data, content_type_for(file_name))
        return public_url, file_name

    async def relocate_title_image(self, entry: Entry, report: RelocationReport) -> None:
        reference = entry.title_image
        if not reference.is_temporary:
            if reference.kind == ImageKind.EXTERNAL:
                logger.debug(f"Skipping title image for page {entry.title} (already external)")
            return

        result = RelocatedImage(original_url=reference.url, kind="titleImage", page_id=entry.id)
        try:
            logger.info(f"Processing title image for page: {entry.title}")
            new_url, file_name = await self._transfer(reference, self.title_image_folder, 0)
            await self.client.update_page(entry.id, {
                "titleImage": {
                    "files": [{
                        "type": "external",
                        "name": reference.name or "Title Image",
                        "external": {"url": new_url},
                    }]
                }
            })
            reference.mark_external(new_url)
            result.new_url = new_url
            result.file_name = file_name
            logger.info(f"Successfully processed title image: {file_name}")
        except Exception as e:
            result.error = str(e)
            logger.warning(f"Failed to process title image for page {entry.title}: {e}")
        report.images.append(result)

    async def relocate_blocks(
        self,
        blocks: list[ContentBlock],
        folder: str,
        counter: ImageCounter,
        report: RelocationReport,
    ) -> None:
        """Depth-first walk relocating every temporary image block."""
        for block in blocks:
            if block.type == BlockType.IMAGE and block.media is not None:
                await self._relocate_block(block, folder, counter, report)

            if block.children:
                await self.relocate_blocks(block.children, folder, counter, report)

    async def _relocate_block(
        self,
        block: ContentBlock,
        folder: str,
        counter: ImageCounter,
        report: RelocationReport,
    ) -> None:
        reference = block.media
        if not reference.is_temporary:
            if reference.kind == ImageKind.EXTERNAL:
                logger.debug(f"Skipping external image in block {block.id} (already external)")
            elif reference.kind == ImageKind.FILE_UPLOAD:
                logger.debug(f"Skipping file_upload image in block {block.id} (API uploaded)")
            return

        result = RelocatedImage(original_url=reference.url, kind="block", block_id=block.id)
        try:
            logger.info(f"Processing image in block {block.id}")
            new_url, file_name = await self._transfer(reference, folder, counter.next())
            await self.client.update_block(block.id, {
                "image": {"external": {"url": new_url}},
            })
            reference.mark_external(new_url)
            result.new_url = new_url
            result.file_name = file_name
            logger.info(f"Successfully processed image: {file_name}")
        except Exception as e:
            result.error = str(e)
            logger.warning(f"Failed to process image in block {block.id}: {e}")
        report.images.append(result)

    async def relocate_entry(self, entry: Entry, report: RelocationReport | None = None) -> RelocationReport:
        """Relocate the title image and every content image of one entry."""
        report = report or RelocationReport()
        logger.info(f"Processing page: {entry.title} ({entry.slug})")

        await self.relocate_title_image(entry, report)

        counter = ImageCounter()
        folder = sanitize_slug(entry.slug, fallback=entry.id)
        await self.relocate_blocks(entry.content, folder, counter, report)

        if counter.count == 0:
            logger.info(f"No uploadable images found in page: {entry.title}")
        else:
            logger.info(f"Processed {counter.count} images for page: {entry.title}")

        report.processed_pages += 1
        return report

    async def relocate_entries(self, entries: list[Entry]) -> RelocationReport:
        report = RelocationReport()
        for entry in entries:
            await self.relocate_entry(entry, report)

        logger.info(
            f"Processed {len(report.images)} images across {report.processed_pages} pages "
            f"({len(report.uploaded)} uploaded, {len(report.failed)} failed)"
        )
        return report

"""
Content service: business logic shared by the API routes and the CLI.

Handles entry queries, tag options, static page generation, image
relocation and caption generation.
"""

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ..captions import CaptionGenerator, CaptionReport
from ..content import ContentFetcher
from ..exceptions import TagPropertyMissing, TagPropertyTypeError
from ..images import ImageDownloader, ImageRelocator, RelocationReport
from ..models import Entry, TagOption
from ..notion import NotionClient
from ..pages import GenerationReport, write_pages

if TYPE_CHECKING:
    from ..providers import LLMProvider
    from ..storage import ObjectStorage

logger = logging.getLogger(__name__)

TAG_PROPERTY = "tag"


class ContentService:
    """Service for content-related business logic."""

    def __init__(
        self,
        client: NotionClient,
        database_id: str,
        concurrency: int = 8,
        storage: "ObjectStorage | None" = None,
        provider: "LLMProvider | None" = None,
        downloader: ImageDownloader | None = None,
    ):
        self.client = client
        self.database_id = database_id
        self.fetcher = ContentFetcher(client, database_id, concurrency=concurrency)
        self.storage = storage
        self.provider = provider
        self.downloader = downloader or ImageDownloader()

    # ─────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────

    async def query_published(self) -> dict:
        """Raw query envelope of published entries, sorted by ordering."""
        return await self.fetcher.query_entries(include_private=False)

    async def list_pages(self, include_private: bool = False) -> list[Entry]:
        """Published (and optionally private) entries with resolved content."""
        return await self.fetcher.fetch_entries(include_private=include_private)

    async def get_tag_options(self) -> list[TagOption]:
        """
        Declared choices of the database's multi-select "tag" property.

        Raises:
            TagPropertyMissing: If the schema has no "tag" property
            TagPropertyTypeError: If "tag" is not a multi_select
        """
        database = await self.client.retrieve_database(self.database_id)
        prop = (database.get("properties") or {}).get(TAG_PROPERTY)
        if not prop:
            raise TagPropertyMissing(f'No "{TAG_PROPERTY}" property found in database')

        prop_type = prop.get("type")
        if prop_type != "multi_select":
            raise TagPropertyTypeError(
                f'"{TAG_PROPERTY}" property is of type "{prop_type}", expected "multi_select"'
            )

        options = [TagOption.from_api(o) for o in (prop.get("multi_select") or {}).get("options", [])]
        logger.info(f"Retrieved {len(options)} tag options from database")
        return options

    # ─────────────────────────────────────────────────────────────
    # Site generation
    # ─────────────────────────────────────────────────────────────

    async def generate_site(
        self,
        output_dir: Path,
        stylesheet_href: str | None = None,
        include_private: bool = False,
    ) -> GenerationReport:
        entries = await self.list_pages(include_private=include_private)
        return write_pages(entries, output_dir, stylesheet_href=stylesheet_href)

    # ─────────────────────────────────────────────────────────────
    # Image maintenance
    # ─────────────────────────────────────────────────────────────

    async def relocate_images(self) -> RelocationReport:
        """Move every temporary image of published entries to durable storage."""
        if self.storage is None:
            raise RuntimeError("Storage backend not configured")

        entries = await self.list_pages()
        logger.info(f"Found {len(entries)} pages to process (storage: {self.storage.name})")
        relocator = ImageRelocator(self.client, self.storage, self.downloader)
        return await relocator.relocate_entries(entries)

    async def generate_captions(self, delay_seconds: float = 1.0) -> CaptionReport:
        """Describe every uncaptioned image of published entries."""
        if self.provider is None:
            raise RuntimeError("LLM provider not configured")

        entries = await self.list_pages()
        logger.info(f"Found {len(entries)} pages to caption (provider: {self.provider.name})")
        generator = CaptionGenerator(
            self.client,
            self.provider,
            self.downloader,
            delay_seconds=delay_seconds,
        )
        return await generator.caption_entries(entries)

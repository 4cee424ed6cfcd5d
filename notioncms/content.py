"""
Content Fetcher - Load published entries and their block trees from Notion.

Handles:
- Status filtering (published, optionally private)
- Ordering by the "ordering" property
- Recursive resolution of nested blocks with bounded concurrency
"""

import asyncio
import logging
from typing import Callable, Iterable, TypeVar

from .models import ContentBlock, Entry
from .notion import NotionClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

PUBLISHED_STATUS = "done"
PRIVATE_STATUS = "private"


def status_filter(include_private: bool = False) -> dict:
    """Build the database filter for visible entries."""
    published = {"property": "Status", "status": {"equals": PUBLISHED_STATUS}}
    if not include_private:
        return published
    return {
        "or": [
            published,
            {"property": "Status", "status": {"equals": PRIVATE_STATUS}},
        ]
    }


def sort_by_ordering(items: Iterable[T], key: Callable[[T], float | None]) -> list[T]:
    """
    Stable ascending sort on an optional rank.

    Items without a rank keep their relative order and go after all ranked ones.
    """
    return sorted(items, key=lambda item: (key(item) is None, key(item) or 0))


def raw_ordering(page: dict) -> float | None:
    """Read the "ordering" number from a raw page payload."""
    prop = (page.get("properties") or {}).get("ordering") or {}
    value = prop.get("number")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


class ContentFetcher:
    """Fetches entries and resolves their content trees."""

    def __init__(self, client: NotionClient, database_id: str, concurrency: int = 8):
        self.client = client
        self.database_id = database_id
        self._semaphore = asyncio.Semaphore(max(1, concurrency))

    async def query_entries(self, include_private: bool = False) -> dict:
        """
        Query visible entries as a raw list envelope.

        Results are sorted by "ordering" ascending; ties keep the order the
        API returned them in.
        """
        envelope = await self.client.query_database(
            self.database_id,
            filter=status_filter(include_private),
        )
        envelope["results"] = sort_by_ordering(envelope.get("results", []), raw_ordering)
        logger.info(f"Fetched {len(envelope['results'])} entries from Notion")
        return envelope

    async def fetch_blocks(self, block_id: str) -> list[ContentBlock]:
        """Fetch a block's children, recursing into every child that has its own."""
        # Only the HTTP call holds the semaphore, never the recursion
        async with self._semaphore:
            raw_blocks = await self.client.list_block_children(block_id)

        async def resolve(raw: dict) -> ContentBlock:
            block = ContentBlock.from_api(raw)
            if block.has_children:
                block.children = await self.fetch_blocks(block.id)
            return block

        return list(await asyncio.gather(*(resolve(raw) for raw in raw_blocks)))

    async def fetch_entry_content(self, entry: Entry) -> Entry:
        entry.content = await self.fetch_blocks(entry.id)
        return entry

    async def fetch_entries(self, include_private: bool = False) -> list[Entry]:
        """Fetch visible entries with fully resolved content, in display order."""
        envelope = await self.query_entries(include_private)
        entries = [Entry.from_api(page) for page in envelope["results"]]
        return list(await asyncio.gather(*(self.fetch_entry_content(e) for e in entries)))

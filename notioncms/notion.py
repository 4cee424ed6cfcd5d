"""
Notion API client.

Thin async wrapper over the Notion REST API covering the calls the content
pipeline needs:
- Database query (with cursor pagination) and schema retrieval
- Block children listing (with cursor pagination)
- Block and page property updates
"""

import logging

import aiohttp

from .exceptions import NotionAPIError

logger = logging.getLogger(__name__)


class NotionClient:
    """Async client for the Notion REST API."""

    BASE_URL = "https://api.notion.com/v1"
    NOTION_VERSION = "2022-06-28"
    MAX_PAGE_SIZE = 100

    def __init__(
        self,
        auth: str,
        timeout: int = 30,
        base_url: str | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.timeout = timeout
        self.headers = {
            "Authorization": f"Bearer {auth}",
            "Notion-Version": self.NOTION_VERSION,
            "Content-Type": "application/json",
        }
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "NotionClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
            self._owns_session = True
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        json: dict | None = None,
        params: dict | None = None,
    ) -> dict:
        """Send one request and return the decoded JSON body."""
        session = self._get_session()
        async with session.request(
            method,
            f"{self.base_url}{path}",
            json=json,
            params=params,
            headers=self.headers,
        ) as resp:
            try:
                body = await resp.json(content_type=None)
            except ValueError:
                body = {"message": await resp.text()}

            if resp.status >= 400:
                body = body if isinstance(body, dict) else {}
                raise NotionAPIError(
                    resp.status,
                    body.get("message") or resp.reason or "Unknown error",
                    code=body.get("code"),
                )
            return body

    # ─────────────────────────────────────────────────────────────
    # Databases
    # ─────────────────────────────────────────────────────────────

    async def query_database(
        self,
        database_id: str,
        filter: dict | None = None,
        sorts: list[dict] | None = None,
    ) -> dict:
        """
        Query a database, following pagination.

        Returns a single list envelope holding every matching page.
        """
        payload: dict = {"page_size": self.MAX_PAGE_SIZE}
        if filter:
            payload["filter"] = filter
        if sorts:
            payload["sorts"] = sorts

        results: list[dict] = []
        envelope: dict = {}
        while True:
            envelope = await self._request("POST", f"/databases/{database_id}/query", json=payload)
            results.extend(envelope.get("results", []))
            if not envelope.get("has_more") or not envelope.get("next_cursor"):
                break
            payload["start_cursor"] = envelope["next_cursor"]

        logger.debug(f"Queried database {database_id}: {len(results)} results")
        return {
            **envelope,
            "object": "list",
            "results": results,
            "has_more": False,
            "next_cursor": None,
        }

    async def retrieve_database(self, database_id: str) -> dict:
        """Retrieve a database schema."""
        return await self._request("GET", f"/databases/{database_id}")

    # ─────────────────────────────────────────────────────────────
    # Blocks & pages
    # ─────────────────────────────────────────────────────────────

    async def list_block_children(self, block_id: str, page_size: int = MAX_PAGE_SIZE) -> list[dict]:
        """List every direct child of a block (or page) in API order."""
        params: dict = {"page_size": min(page_size, self.MAX_PAGE_SIZE)}
        blocks: list[dict] = []
        while True:
            body = await self._request("GET", f"/blocks/{block_id}/children", params=params)
            blocks.extend(body.get("results", []))
            if not body.get("has_more") or not body.get("next_cursor"):
                return blocks
            params["start_cursor"] = body["next_cursor"]

    async def update_block(self, block_id: str, payload: dict) -> dict:
        """Patch a block, e.g. {"image": {"external": {"url": ...}}}."""
        return await self._request("PATCH", f"/blocks/{block_id}", json=payload)

    async def update_page(self, page_id: str, properties: dict) -> dict:
        """Patch page properties."""
        return await self._request("PATCH", f"/pages/{page_id}", json={"properties": properties})

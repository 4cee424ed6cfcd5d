"""
Pytest fixtures for notioncms tests.

No test talks to the network: Notion, storage, image downloads and the LLM
provider are replaced by in-memory fakes that record every call.
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from notioncms.config import Config, state
from notioncms.exceptions import ImageDownloadError, NotionAPIError
from notioncms.providers.base import LLMProvider, LLMResponse, ProviderCapabilities
from notioncms.server import app
from notioncms.storage import ObjectStorage


# ─────────────────────────────────────────────────────────────
# Raw payload builders
# ─────────────────────────────────────────────────────────────

def rich(text: str, href: str | None = None, **annotations) -> dict:
    """One rich text object as the Notion API returns it."""
    marks = {
        "bold": False,
        "italic": False,
        "strikethrough": False,
        "underline": False,
        "code": False,
        "color": "default",
    }
    marks.update(annotations)
    return {
        "type": "text",
        "text": {"content": text, "link": {"url": href} if href else None},
        "annotations": marks,
        "plain_text": text,
        "href": href,
    }


def text_block(block_id: str, type_name: str, text: str = "", has_children: bool = False, **annotations) -> dict:
    runs = [rich(text, **annotations)] if text else []
    return {
        "object": "block",
        "id": block_id,
        "type": type_name,
        "has_children": has_children,
        type_name: {"rich_text": runs, "color": "default"},
    }


def media_block(block_id: str, url: str, kind: str = "file", caption: str = "", type_name: str = "image") -> dict:
    payload = {"type": kind, "caption": [rich(caption)] if caption else []}
    if kind == "file":
        payload["file"] = {"url": url, "expiry_time": "2026-01-01T00:00:00.000Z"}
    elif kind == "external":
        payload["external"] = {"url": url}
    else:
        payload[kind] = {"id": "upload-id"}
    return {
        "object": "block",
        "id": block_id,
        "type": type_name,
        "has_children": False,
        type_name: payload,
    }


def make_page(
    page_id: str,
    title: str,
    slug: str | None = None,
    ordering: float | None = None,
    status: str = "done",
    description: str = "",
    tags: tuple = (),
    title_image: dict | None = None,
) -> dict:
    """A database row with the properties the pipeline reads."""
    return {
        "object": "page",
        "id": page_id,
        "properties": {
            "Name": {"type": "title", "title": [rich(title)] if title else []},
            "slug": {"type": "rich_text", "rich_text": [rich(slug)] if slug else []},
            "description": {"type": "rich_text", "rich_text": [rich(description)] if description else []},
            "ordering": {"type": "number", "number": ordering},
            "Status": {"type": "status", "status": {"name": status}},
            "tag": {"type": "multi_select", "multi_select": [{"name": t} for t in tags]},
            "titleImage": {"type": "files", "files": [title_image] if title_image else []},
        },
    }


def file_title_image(url: str) -> dict:
    return {"name": "cover.png", "type": "file", "file": {"url": url}}


def external_title_image(url: str) -> dict:
    return {"name": "cover.png", "type": "external", "external": {"url": url}}


TAG_DATABASE = {
    "object": "database",
    "id": "db-1",
    "properties": {
        "tag": {
            "id": "tag-prop",
            "type": "multi_select",
            "multi_select": {
                "options": [
                    {"id": "1", "name": "Web", "color": "blue"},
                    {"id": "2", "name": "Print", "color": "red"},
                ]
            },
        },
    },
}


# ─────────────────────────────────────────────────────────────
# Fakes
# ─────────────────────────────────────────────────────────────

def _allowed_statuses(filter: dict | None) -> set[str] | None:
    if not filter:
        return None
    if "or" in filter:
        return {clause["status"]["equals"] for clause in filter["or"]}
    return {filter["status"]["equals"]}


class FakeNotionClient:
    """In-memory stand-in for NotionClient."""

    def __init__(self, pages=None, blocks=None, database=None, latency: float = 0.0):
        self.pages = pages or []
        self.blocks = blocks or {}
        self.database = database if database is not None else TAG_DATABASE
        self.latency = latency
        self.fail_updates: set[str] = set()
        self.query_error: Exception | None = None

        self.queries: list[dict] = []
        self.children_calls: list[str] = []
        self.block_updates: list[tuple[str, dict]] = []
        self.page_updates: list[tuple[str, dict]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    async def query_database(self, database_id: str, filter: dict | None = None, sorts=None) -> dict:
        self.queries.append({"database_id": database_id, "filter": filter, "sorts": sorts})
        if self.query_error:
            raise self.query_error
        allowed = _allowed_statuses(filter)
        results = [
            page for page in self.pages
            if allowed is None or page["properties"]["Status"]["status"]["name"] in allowed
        ]
        return {"object": "list", "results": list(results), "has_more": False, "next_cursor": None}

    async def retrieve_database(self, database_id: str) -> dict:
        return self.database

    async def list_block_children(self, block_id: str, page_size: int = 100) -> list[dict]:
        self.children_calls.append(block_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.latency:
                await asyncio.sleep(self.latency)
            return list(self.blocks.get(block_id, []))
        finally:
            self.in_flight -= 1

    async def update_block(self, block_id: str, payload: dict) -> dict:
        if block_id in self.fail_updates:
            raise NotionAPIError(400, "validation_error", code="validation_error")
        self.block_updates.append((block_id, payload))
        return {"object": "block", "id": block_id}

    async def update_page(self, page_id: str, properties: dict) -> dict:
        self.page_updates.append((page_id, properties))
        return {"object": "page", "id": page_id}

    async def close(self) -> None:
        self.closed = True


class FakeStorage(ObjectStorage):
    """Records uploads and returns predictable public URLs."""

    def __init__(self):
        super().__init__()
        self.uploads: list[tuple[str, bytes, str | None]] = []

    @property
    def name(self) -> str:
        return "fake"

    async def upload(self, path: str, data: bytes, content_type: str | None = None) -> str:
        self.uploads.append((path, data, content_type))
        return f"https://cdn.example.com/{path}"


class FakeDownloader:
    """Returns fixed bytes; URLs in `failing` raise ImageDownloadError."""

    def __init__(self, failing=(), payload: bytes = b"\x89PNG fake image bytes"):
        self.failing = set(failing)
        self.payload = payload
        self.calls: list[str] = []

    async def download(self, url: str) -> bytes:
        self.calls.append(url)
        if url in self.failing:
            raise ImageDownloadError("Failed to download image: 403")
        return self.payload

    async def close(self) -> None:
        pass


class MockProvider(LLMProvider):
    """LLM provider returning a canned description."""

    def __init__(self, text: str = "A red bicycle leaning on a brick wall.", error: Exception | None = None,
                 max_image_bytes: int = 5 * 1024 * 1024):
        self.text = text
        self.error = error
        self.max_image_bytes = max_image_bytes
        self.calls: list[dict] = []

    @property
    def name(self) -> str:
        return "mock"

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(max_image_bytes=self.max_image_bytes)

    def describe_image(self, image_bytes, media_type, prompt, model=None, max_tokens=150) -> LLMResponse:
        self.calls.append({"media_type": media_type, "prompt": prompt, "size": len(image_bytes)})
        if self.error:
            raise self.error
        return LLMResponse(text=self.text, model="mock-vision")


# ─────────────────────────────────────────────────────────────
# Sample content
# ─────────────────────────────────────────────────────────────

TEMP_URL_A = "https://prod-files-secure.s3.us-west-2.amazonaws.com/ws/a/photo.png?X-Amz-Signature=1"
TEMP_URL_B = "https://prod-files-secure.s3.us-west-2.amazonaws.com/ws/b/sketch.jpg?X-Amz-Signature=2"
TEMP_COVER = "https://prod-files-secure.s3.us-west-2.amazonaws.com/ws/c/cover.png?X-Amz-Signature=3"
EXTERNAL_URL = "https://images.example.com/poster.webp"


def sample_pages() -> list[dict]:
    return [
        make_page("page-second", "Second Project", slug="second", ordering=2, tags=("Print",),
                  title_image=file_title_image(TEMP_COVER)),
        make_page("page-first", "First Project", slug="first", ordering=1, description="The first one",
                  tags=("Web", "Print"), title_image=external_title_image(EXTERNAL_URL)),
        make_page("page-secret", "Secret Project", slug="secret", ordering=0, status="private"),
        make_page("page-draft", "Draft Project", slug="draft", ordering=3, status="draft"),
    ]


def sample_blocks() -> dict[str, list[dict]]:
    return {
        "page-first": [
            text_block("b-para", "paragraph", "hi", bold=True),
            media_block("b-img-1", TEMP_URL_A),
            text_block("b-list", "bulleted_list_item", "parent item", has_children=True),
        ],
        "b-list": [
            media_block("b-img-nested", EXTERNAL_URL, kind="external", caption="Poster"),
        ],
        "page-second": [
            text_block("c-head", "heading_2", "Process"),
            media_block("c-img", TEMP_URL_B),
            media_block("c-video", "https://youtu.be/abc123?t=5", kind="external", type_name="video"),
        ],
        "page-secret": [text_block("s-para", "paragraph", "hidden")],
    }


@pytest.fixture
def notion():
    return FakeNotionClient(pages=sample_pages(), blocks=sample_blocks())


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def downloader():
    return FakeDownloader()


@pytest.fixture
def provider():
    return MockProvider()


@pytest.fixture
def configured(monkeypatch):
    """Environment configuration with every integration enabled."""
    # Config reads class attributes, so patch the class rather than the instance
    monkeypatch.setattr(Config, "NOTION_KEY", "secret_test")
    monkeypatch.setattr(Config, "NOTION_DB", "db-1")
    monkeypatch.setattr(Config, "INCLUDE_PRIVATE", False)
    monkeypatch.setattr(Config, "STORAGE_BACKEND", "supabase")
    monkeypatch.setattr(Config, "SUPABASE_PROJECT_URL", "https://project.supabase.co")
    monkeypatch.setattr(Config, "SUPABASE_ACCESS_KEY", "service-key")
    monkeypatch.setattr(Config, "ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.setattr(Config, "OPENAI_API_KEY", "")
    monkeypatch.setattr(Config, "GOOGLE_API_KEY", "")
    monkeypatch.setattr(Config, "CAPTION_DELAY_SECONDS", 0.0)
    monkeypatch.setattr(Config, "EXPOSE_STACK_TRACES", False)
    return Config


@pytest.fixture
def client(configured, notion, storage, downloader, provider):
    """Test client wired to the fakes."""
    original = (state.notion, state.storage, state.provider, state.downloader)

    state.notion = notion
    state.storage = storage
    state.provider = provider
    state.downloader = downloader

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    state.notion, state.storage, state.provider, state.downloader = original

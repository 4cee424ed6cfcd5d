"""
Tests for AI caption generation.

Uses a mock LLM provider so no API keys are needed.
"""

import pytest

from notioncms.captions import CAPTION_PROMPT, UNAVAILABLE, CaptionGenerator
from notioncms.models import ContentBlock, Entry
from notioncms.services import ContentService

from .conftest import (
    EXTERNAL_URL,
    TEMP_URL_A,
    FakeDownloader,
    FakeNotionClient,
    MockProvider,
    make_page,
    media_block,
    text_block,
)


def entry_with(*blocks: dict) -> Entry:
    entry = Entry.from_api(make_page("p1", "Gallery", slug="gallery"))
    entry.content = [ContentBlock.from_api(raw) for raw in blocks]
    return entry


def generator(client=None, provider=None, downloader=None) -> CaptionGenerator:
    return CaptionGenerator(
        client or FakeNotionClient(),
        provider or MockProvider(),
        downloader or FakeDownloader(),
        delay_seconds=0,
    )


class TestCaptionGenerator:

    @pytest.mark.asyncio
    async def test_captions_uncaptioned_image(self):
        client, provider = FakeNotionClient(), MockProvider()
        entry = entry_with(media_block("i1", EXTERNAL_URL, kind="external"))

        report = await generator(client, provider).caption_entries([entry])

        assert report.processed_pages == 1
        assert len(report.updated) == 1
        assert provider.calls[0]["prompt"] == CAPTION_PROMPT
        assert provider.calls[0]["media_type"] == "image/webp"
        block_id, payload = client.block_updates[0]
        assert block_id == "i1"
        assert payload == {
            "image": {"caption": [{"type": "text", "text": {"content": provider.text}}]}
        }
        assert entry.content[0].media.caption[0].plain_text == provider.text

    @pytest.mark.asyncio
    async def test_existing_caption_is_skipped(self):
        client, provider = FakeNotionClient(), MockProvider()
        entry = entry_with(media_block("i1", EXTERNAL_URL, kind="external", caption="Already described"))

        report = await generator(client, provider).caption_entries([entry])

        assert report.images == []
        assert provider.calls == []
        assert client.block_updates == []

    @pytest.mark.asyncio
    async def test_nested_images_are_found(self):
        client = FakeNotionClient()
        parent = ContentBlock.from_api(text_block("col", "column", has_children=True))
        parent.children = [ContentBlock.from_api(media_block("inner", TEMP_URL_A))]
        entry = entry_with()
        entry.content = [parent]

        report = await generator(client).caption_entries([entry])

        assert [image.block_id for image in report.updated] == ["inner"]

    @pytest.mark.asyncio
    async def test_download_failure_leaves_caption_empty(self):
        client = FakeNotionClient()
        entry = entry_with(media_block("i1", TEMP_URL_A))

        report = await generator(client, downloader=FakeDownloader(failing={TEMP_URL_A})).caption_entries([entry])

        assert report.images[0].description == UNAVAILABLE
        assert report.images[0].updated is False
        assert client.block_updates == []

    @pytest.mark.asyncio
    async def test_provider_error_is_unavailable(self):
        provider = MockProvider(error=RuntimeError("rate limited"))
        assert await generator(provider=provider).describe(EXTERNAL_URL) == UNAVAILABLE

    @pytest.mark.asyncio
    async def test_empty_description_is_unavailable(self):
        assert await generator(provider=MockProvider(text="   ")).describe(EXTERNAL_URL) == UNAVAILABLE

    @pytest.mark.asyncio
    async def test_oversized_image_is_not_sent(self):
        provider = MockProvider(max_image_bytes=4)
        assert await generator(provider=provider).describe(EXTERNAL_URL) == UNAVAILABLE
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_update_failure_is_reported(self):
        client = FakeNotionClient()
        client.fail_updates = {"i1"}
        entry = entry_with(media_block("i1", EXTERNAL_URL, kind="external"))

        report = await generator(client).caption_entries([entry])

        assert len(report.failed) == 1
        assert report.failed[0].description != UNAVAILABLE
        assert entry.content[0].media.caption == []

    @pytest.mark.asyncio
    async def test_service_requires_provider(self, notion):
        service = ContentService(notion, "db-1", downloader=FakeDownloader())
        with pytest.raises(RuntimeError, match="LLM provider not configured"):
            await service.generate_captions(delay_seconds=0)

    @pytest.mark.asyncio
    async def test_service_captions_published_entries(self, notion, provider, downloader):
        service = ContentService(notion, "db-1", provider=provider, downloader=downloader)
        report = await service.generate_captions(delay_seconds=0)

        assert report.processed_pages == 2
        # The nested poster already has a caption; videos are never captioned
        assert {image.block_id for image in report.images} == {"b-img-1", "c-img"}

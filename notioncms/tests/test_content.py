"""
Tests for the content fetcher: filtering, ordering and block tree resolution.
"""

import pytest

from notioncms.content import ContentFetcher, sort_by_ordering, status_filter
from notioncms.models import BlockType

from .conftest import FakeNotionClient, make_page, text_block


class TestStatusFilter:

    def test_published_only(self):
        assert status_filter() == {"property": "Status", "status": {"equals": "done"}}

    def test_with_private(self):
        clauses = status_filter(include_private=True)["or"]
        assert [c["status"]["equals"] for c in clauses] == ["done", "private"]


class TestSortByOrdering:

    def test_ascending(self):
        assert sort_by_ordering([2, 1], key=lambda x: x) == [1, 2]

    def test_unranked_go_last_in_input_order(self):
        items = [("a", None), ("b", 3), ("c", None), ("d", 1)]
        result = sort_by_ordering(items, key=lambda item: item[1])
        assert [name for name, _ in result] == ["d", "b", "a", "c"]

    def test_ties_keep_api_order(self):
        items = [("x", 1), ("y", 1), ("z", 0)]
        result = sort_by_ordering(items, key=lambda item: item[1])
        assert [name for name, _ in result] == ["z", "x", "y"]


class TestContentFetcher:

    @pytest.mark.asyncio
    async def test_query_entries_sorted_by_ordering(self, notion):
        fetcher = ContentFetcher(notion, "db-1")
        envelope = await fetcher.query_entries()

        assert [page["id"] for page in envelope["results"]] == ["page-first", "page-second"]
        assert notion.queries[0]["filter"] == status_filter()

    @pytest.mark.asyncio
    async def test_missing_ordering_sorts_last(self):
        client = FakeNotionClient(pages=[
            make_page("unranked", "U"),
            make_page("ranked", "R", ordering=5),
        ])
        envelope = await ContentFetcher(client, "db-1").query_entries()
        assert [page["id"] for page in envelope["results"]] == ["ranked", "unranked"]

    @pytest.mark.asyncio
    async def test_include_private(self, notion):
        envelope = await ContentFetcher(notion, "db-1").query_entries(include_private=True)
        ids = [page["id"] for page in envelope["results"]]
        assert ids == ["page-secret", "page-first", "page-second"]
        assert "page-draft" not in ids

    @pytest.mark.asyncio
    async def test_fetch_blocks_resolves_nested_children(self, notion):
        blocks = await ContentFetcher(notion, "db-1").fetch_blocks("page-first")

        assert [b.id for b in blocks] == ["b-para", "b-img-1", "b-list"]
        assert blocks[0].children is None
        assert [child.id for child in blocks[2].children] == ["b-img-nested"]
        # Only blocks flagged has_children are expanded
        assert sorted(notion.children_calls) == ["b-list", "page-first"]

    @pytest.mark.asyncio
    async def test_deep_tree_preserves_order(self):
        client = FakeNotionClient(blocks={
            "root": [
                text_block("a", "toggle", "a", has_children=True),
                text_block("b", "paragraph", "b"),
            ],
            "a": [text_block("a1", "toggle", "a1", has_children=True), text_block("a2", "paragraph", "a2")],
            "a1": [text_block("a1x", "paragraph", "a1x")],
        })
        blocks = await ContentFetcher(client, "db-1").fetch_blocks("root")

        assert [b.id for b in blocks] == ["a", "b"]
        assert [b.id for b in blocks[0].children] == ["a1", "a2"]
        assert blocks[0].children[0].children[0].id == "a1x"
        assert blocks[0].children[0].children[0].type == BlockType.PARAGRAPH

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        children = [text_block(f"c{i}", "toggle", str(i), has_children=True) for i in range(6)]
        tree = {"root": children}
        for i in range(6):
            tree[f"c{i}"] = [text_block(f"c{i}-p", "paragraph", "leaf")]
        client = FakeNotionClient(blocks=tree, latency=0.01)

        blocks = await ContentFetcher(client, "db-1", concurrency=2).fetch_blocks("root")

        assert len(blocks) == 6
        assert all(b.children[0].id == f"{b.id}-p" for b in blocks)
        assert client.max_in_flight <= 2

    @pytest.mark.asyncio
    async def test_fetch_entries_in_display_order(self, notion):
        entries = await ContentFetcher(notion, "db-1").fetch_entries()

        assert [e.id for e in entries] == ["page-first", "page-second"]
        assert [b.id for b in entries[1].content] == ["c-head", "c-img", "c-video"]

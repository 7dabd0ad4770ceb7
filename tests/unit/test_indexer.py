"""End-to-end tests for ComponentIndexer against a miniature source tree."""

import asyncio
import shutil
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio

from mudblazor_index.cache import DocumentationCache
from mudblazor_index.core.config import IndexConfig, ParsingConfig
from mudblazor_index.errors import (
    InvalidArgumentError,
    NotIndexedError,
    RepositoryUnavailableError,
    UnknownCategoryError,
    UnknownComponentError,
)
from mudblazor_index.indexing.indexer import SNAPSHOT_CACHE_KEY, ComponentIndexer
from mudblazor_index.indexing.models import IndexState, RelationshipKind, SearchFields
from mudblazor_index.repository import LocalSourceTree


def _names(components):
    return [c.name for c in components]


@pytest.fixture
def indexer(source_root):
    return ComponentIndexer(LocalSourceTree(source_root), config=IndexConfig())


@pytest_asyncio.fixture
async def built(indexer):
    await indexer.build()
    return indexer


class TestBuild:
    @pytest.mark.asyncio
    async def test_build_publishes_snapshot(self, indexer):
        assert indexer.state is IndexState.NOT_INDEXED
        assert indexer.is_indexed is False
        assert indexer.last_build_time is None

        snapshot = await indexer.build()

        assert indexer.state is IndexState.INDEXED
        assert indexer.is_indexed is True
        assert indexer.snapshot is snapshot
        assert snapshot.generation == 1
        assert indexer.last_build_time == snapshot.built_at

    @pytest.mark.asyncio
    async def test_components_sorted_and_filtered(self, indexer):
        snapshot = await indexer.build()

        # Internal components are excluded by default, deprecated ones kept
        assert _names(snapshot.components) == [
            "MudBaseButton", "MudButton", "MudCard", "MudIconButton", "MudOldBox", "MudTextField",
        ]
        assert indexer.get_component("OldBox").is_deprecated is True

    @pytest.mark.asyncio
    async def test_include_internal_and_exclude_deprecated(self, source_root):
        config = IndexConfig(parsing=ParsingConfig(
            include_internal_components=True,
            include_deprecated_components=False,
        ))
        indexer = ComponentIndexer(LocalSourceTree(source_root), config=config)
        snapshot = await indexer.build()

        names = _names(snapshot.components)
        assert "MudInputAdornment" in names
        assert "MudOldBox" not in names

    @pytest.mark.asyncio
    async def test_declaration_and_doc_page_merged(self, indexer):
        await indexer.build()
        button = indexer.require_component("MudButton")

        assert button.summary == "A clickable button."
        assert button.description == "Buttons let users take actions."
        assert button.title == "Button"
        assert button.category == "Buttons"
        assert button.base_type == "MudBaseButton"
        assert [s.heading for s in button.sections] == ["Basic usage"]
        assert button.usage_notes == ("Place buttons inside a card for grouping.",)
        assert button.related_components == ("MudCard", "MudIconButton")
        assert button.documentation_url == "https://mudblazor.com/components/button"
        assert button.source_url == (
            "https://github.com/MudBlazor/MudBlazor/tree/dev/src/MudBlazor/Components/Button"
        )

    @pytest.mark.asyncio
    async def test_required_parameter_and_event(self, indexer):
        await indexer.build()
        button = indexer.require_component("Button")

        label = next(p for p in button.parameters if p.name == "Label")
        assert label.is_required is True
        assert [(e.name, e.type) for e in button.events] == [("OnClick", "EventCallback<MouseEventArgs>")]

    @pytest.mark.asyncio
    async def test_remarks_win_over_page_subtitle(self, indexer):
        await indexer.build()
        text_field = indexer.require_component("TextField")

        assert text_field.description == "Supports Adornment icons and masking."
        assert text_field.title == "Text Field"
        assert text_field.related_components == ("MudButton",)

    @pytest.mark.asyncio
    async def test_component_without_page_gets_defaults(self, indexer):
        await indexer.build()
        card = indexer.require_component("MudCard")

        assert card.title is None
        assert card.sections == ()
        assert card.examples == ()
        assert card.category == "Cards"

    @pytest.mark.asyncio
    async def test_examples_attached(self, indexer):
        await indexer.build()
        examples = indexer.get_examples("MudButton")

        assert [e.name for e in examples] == ["ButtonIconExample", "ButtonSimpleExample"]
        assert examples[1].features == ("Color", "Variant", "Event handling")

    @pytest.mark.asyncio
    async def test_examples_disabled(self, source_root):
        config = IndexConfig(parsing=ParsingConfig(max_examples_per_component=0))
        indexer = ComponentIndexer(LocalSourceTree(source_root), config=config)
        await indexer.build()
        assert indexer.get_examples("MudButton") == []

    @pytest.mark.asyncio
    async def test_every_component_has_a_category(self, indexer):
        snapshot = await indexer.build()

        assert all(c.category for c in snapshot.components)
        assert indexer.get_component("MudOldBox").category == "Other"
        placed = [n for cat in snapshot.categories for n in cat.component_names]
        assert sorted(placed) == sorted(_names(snapshot.components))

    @pytest.mark.asyncio
    async def test_categories_follow_table_then_inferred(self, indexer):
        await indexer.build()
        categories = indexer.get_categories()
        names = [c.name for c in categories]

        assert names[0] == "Form Inputs & Controls"
        assert names[-1] == "Other"
        buttons = next(c for c in categories if c.name == "Buttons")
        assert buttons.component_names == ("MudBaseButton", "MudButton", "MudIconButton")

    @pytest.mark.asyncio
    async def test_api_references(self, indexer):
        await indexer.build()

        button = indexer.get_api_reference("MudButton")
        kinds = {(m.member_type, m.name) for m in button.members}
        assert ("Property", "Label") in kinds
        assert ("Event", "OnClick") in kinds
        assert ("Method", "FocusAsync") in kinds

        variant = indexer.get_api_reference("Variant")
        assert variant.kind == "enum"
        assert [v.name for v in variant.enum_values] == ["Text", "Filled", "Outlined"]

        assert indexer.get_api_reference("  ") is None

    @pytest.mark.asyncio
    async def test_rebuild_increments_generation(self, indexer):
        first = await indexer.build()
        second = await indexer.build()

        assert second.generation == first.generation + 1
        assert indexer.snapshot is second


class TestBuildFailures:
    @pytest.mark.asyncio
    async def test_missing_source_tree(self, tmp_path):
        indexer = ComponentIndexer(LocalSourceTree(tmp_path / "missing"), config=IndexConfig())

        with pytest.raises(RepositoryUnavailableError):
            await indexer.build()
        assert indexer.state is IndexState.NOT_INDEXED
        with pytest.raises(NotIndexedError):
            indexer.get_all_components()

    @pytest.mark.asyncio
    async def test_failed_rebuild_keeps_previous_snapshot(self, indexer, source_root):
        first = await indexer.build()
        shutil.rmtree(source_root)

        with pytest.raises(RepositoryUnavailableError):
            await indexer.build()

        assert indexer.state is IndexState.INDEXED
        assert indexer.snapshot is first
        assert indexer.get_component("MudButton") is not None

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self):
        source_tree = MagicMock()
        source_tree.root_path = "/nowhere"
        source_tree.ensure_available = AsyncMock(
            side_effect=RepositoryUnavailableError("/nowhere", "clone failed")
        )
        indexer = ComponentIndexer(source_tree, config=IndexConfig())

        with pytest.raises(RepositoryUnavailableError, match="clone failed"):
            await indexer.build()

    @pytest.mark.asyncio
    async def test_empty_tree_builds_empty_index(self, tmp_path):
        indexer = ComponentIndexer(LocalSourceTree(tmp_path), config=IndexConfig())
        snapshot = await indexer.build()

        assert snapshot.components == ()
        assert indexer.search("button") == []


class TestConcurrentBuilds:
    @pytest.mark.asyncio
    async def test_overlapping_builds_share_one_run(self, indexer):
        results = await asyncio.gather(indexer.build(), indexer.build(), indexer.build())

        assert all(r is results[0] for r in results)
        assert results[0].generation == 1

    @pytest.mark.asyncio
    async def test_cancelled_build_keeps_previous_snapshot(self, indexer):
        first = await indexer.build()
        gate = asyncio.Event()
        original = indexer._source_tree.ensure_available

        async def slow_ensure():
            await gate.wait()
            return await original()

        indexer._source_tree.ensure_available = slow_ensure
        task = asyncio.create_task(indexer.build())
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert indexer.state is IndexState.BUILDING

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert indexer.state is IndexState.INDEXED
        assert indexer.snapshot is first

    @pytest.mark.asyncio
    async def test_readers_see_complete_snapshot_during_build(self, indexer):
        first = await indexer.build()
        gate = asyncio.Event()
        original = indexer._source_tree.ensure_available

        async def slow_ensure():
            await gate.wait()
            return await original()

        indexer._source_tree.ensure_available = slow_ensure
        task = asyncio.create_task(indexer.build())
        await asyncio.sleep(0)

        # Still the first snapshot while the second build is held
        assert indexer.get_all_components() == list(first.components)
        gate.set()
        second = await task
        assert indexer.snapshot is second


class TestQueries:
    @pytest.mark.asyncio
    async def test_not_indexed_errors(self, indexer):
        with pytest.raises(NotIndexedError):
            indexer.search("button")
        with pytest.raises(NotIndexedError):
            indexer.get_component("MudButton")
        with pytest.raises(NotIndexedError):
            indexer.get_categories()
        with pytest.raises(NotIndexedError):
            indexer.get_related("MudButton")

    @pytest.mark.asyncio
    async def test_search_by_name(self, built):
        results = built.search("button", fields=SearchFields.NAME)
        assert _names(results) == ["MudBaseButton", "MudButton", "MudIconButton"]

        results = built.search("button", fields="name", max_results=1)
        assert _names(results) == ["MudBaseButton"]

    @pytest.mark.asyncio
    async def test_search_repeatable(self, built):
        first = built.search("button", fields="name,description", max_results=5)
        second = built.search("button", fields="name,description", max_results=5)

        assert first == second
        assert _names(first) == _names(second) != []

    @pytest.mark.asyncio
    async def test_search_examples(self, built):
        assert _names(built.search("Increment", fields=SearchFields.EXAMPLES)) == ["MudButton"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("kwargs", [
        {"query_text": ""},
        {"query_text": "   "},
        {"query_text": "x", "max_results": 0},
        {"query_text": "x", "max_results": 51},
        {"query_text": "x", "fields": "colour"},
    ])
    async def test_search_rejects_bad_arguments(self, built, kwargs):
        with pytest.raises(InvalidArgumentError):
            built.search(**kwargs)

    @pytest.mark.asyncio
    async def test_get_component_variants(self, built):
        assert built.get_component("MudButton").name == "MudButton"
        assert built.get_component("button").name == "MudButton"
        assert built.get_component("") is None
        assert built.get_component("Nope") is None

    @pytest.mark.asyncio
    async def test_require_component_unknown(self, built):
        with pytest.raises(UnknownComponentError, match="Nope"):
            built.require_component("Nope")
        with pytest.raises(UnknownComponentError):
            built.get_examples("Nope")

    @pytest.mark.asyncio
    async def test_get_by_category(self, built):
        assert _names(built.get_by_category("buttons")) == ["MudBaseButton", "MudButton", "MudIconButton"]
        assert built.get_by_category("") == []
        assert built.get_by_category("Nope") == []

    @pytest.mark.asyncio
    async def test_require_category_lists_available(self, built):
        with pytest.raises(UnknownCategoryError) as exc_info:
            built.require_category("Nope")
        assert "Buttons" in exc_info.value.available

    @pytest.mark.asyncio
    async def test_related(self, built):
        assert _names(built.get_related("MudButton", "parent")) == ["MudBaseButton"]
        assert _names(built.get_related("MudBaseButton", RelationshipKind.CHILD)) == [
            "MudButton", "MudIconButton",
        ]
        assert _names(built.get_related("MudButton")) == ["MudBaseButton", "MudIconButton", "MudCard"]

    @pytest.mark.asyncio
    async def test_related_results_are_cached_per_generation(self, built):
        first = built.get_related("MudButton", "sibling")
        key = "related:1:mudbutton:sibling"
        assert tuple(first) == built.cache.get(key)
        assert built.get_related("MudButton", "sibling") == first

    @pytest.mark.asyncio
    async def test_related_rejects_bad_kind(self, built):
        with pytest.raises(InvalidArgumentError):
            built.get_related("MudButton", "cousin")


class TestEnsureIndexed:
    @pytest.mark.asyncio
    async def test_reuses_cached_snapshot_until_expiry(self, source_root):
        now = [0.0]
        cache = DocumentationCache(
            sliding_expiration=timedelta(seconds=10),
            absolute_expiration=timedelta(seconds=30),
            timer=lambda: now[0],
        )
        indexer = ComponentIndexer(LocalSourceTree(source_root), config=IndexConfig(), cache=cache)

        first = await indexer.ensure_indexed()
        assert cache.get(SNAPSHOT_CACHE_KEY) is first
        assert (await indexer.ensure_indexed()) is first

        now[0] = 31.0
        second = await indexer.ensure_indexed()
        assert second.generation == first.generation + 1

    @pytest.mark.asyncio
    async def test_concurrent_callers_trigger_one_build(self, indexer):
        results = await asyncio.gather(*(indexer.ensure_indexed() for _ in range(5)))
        assert {r.generation for r in results} == {1}


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_close_disposes_owned_cache(self, source_root):
        async with ComponentIndexer(LocalSourceTree(source_root), config=IndexConfig()) as indexer:
            await indexer.build()
        assert indexer.cache.is_closed

    @pytest.mark.asyncio
    async def test_close_leaves_injected_cache(self, source_root):
        cache = DocumentationCache()
        indexer = ComponentIndexer(LocalSourceTree(source_root), config=IndexConfig(), cache=cache)
        await indexer.close()
        assert not cache.is_closed

    @pytest.mark.asyncio
    async def test_queries_work_after_cache_closed(self, built):
        built.cache.close()
        assert _names(built.get_related("MudButton", "parent")) == ["MudBaseButton"]

"""Orchestrates a full component index build and answers queries against it."""

import asyncio
import logging
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from mudblazor_index.cache.documentation_cache import MISS, DocumentationCache
from mudblazor_index.errors import RepositoryUnavailableError, UnknownCategoryError, UnknownComponentError
from mudblazor_index.indexing import query
from mudblazor_index.indexing.categories import CategoryMapper, CategoryTable
from mudblazor_index.indexing.extractors import DeclarationExtractor, DocPageExtractor, ExampleExtractor
from mudblazor_index.indexing.models import (
    DEFAULT_NAMESPACE,
    LIBRARY_PREFIX,
    ApiMember,
    ApiReference,
    Category,
    ComponentRecord,
    DeclarationResult,
    DocPageResult,
    EnumDeclarationResult,
    Example,
    IndexSnapshot,
    IndexState,
    RelationshipKind,
    SearchFields,
)
from mudblazor_index.indexing.store import SnapshotStore
from mudblazor_index.repository.git_repository import SourceTreeProvider
from mudblazor_index.utils.rich_logging import BuildLogAdapter
from mudblazor_index.utils.validators import require_in_range, require_non_empty

if TYPE_CHECKING:
    from mudblazor_index.core.config import IndexConfig

logger = logging.getLogger(__name__)

SNAPSHOT_CACHE_KEY = "index:snapshot"
DOCS_BASE_URL = "https://mudblazor.com/components"
MAX_SEARCH_RESULTS = 50


class ComponentIndexer:
    """Builds IndexSnapshots from a source tree and serves read-only queries.

    At most one build runs at a time. A build() call that arrives while one is
    running waits for it and returns the same snapshot (or raises the same
    error). Queries always read the last published snapshot.
    """

    def __init__(
        self,
        source_tree: SourceTreeProvider,
        config: Optional["IndexConfig"] = None,
        cache: Optional[DocumentationCache] = None,
        category_table: Optional[CategoryTable] = None,
    ) -> None:
        if config is None:
            from mudblazor_index.core.config import IndexConfig
            config = IndexConfig()
        self._source_tree = source_tree
        self._config = config
        self._owns_cache = cache is None
        self._cache = cache if cache is not None else DocumentationCache.from_config(config.cache)
        self._category_table = category_table or config.categories.to_table()

        self._declarations = DeclarationExtractor()
        self._doc_pages = DocPageExtractor()
        self._examples = ExampleExtractor()

        self._store = SnapshotStore()
        self._state = IndexState.NOT_INDEXED
        self._build_task: Optional[asyncio.Task] = None
        self._log = BuildLogAdapter(logger)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> IndexState:
        return self._state

    @property
    def is_indexed(self) -> bool:
        return self._store.current is not None

    @property
    def last_build_time(self) -> Optional[datetime]:
        snapshot = self._store.current
        return snapshot.built_at if snapshot else None

    @property
    def snapshot(self) -> Optional[IndexSnapshot]:
        return self._store.current

    @property
    def cache(self) -> DocumentationCache:
        return self._cache

    @property
    def source_tree(self) -> SourceTreeProvider:
        return self._source_tree

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    async def build(self) -> IndexSnapshot:
        """Run a full build and publish its snapshot.

        Raises:
            RepositoryUnavailableError: If the source tree cannot be acquired
            asyncio.CancelledError: If cancelled; the previous snapshot stays active
        """
        running = self._build_task
        if running is not None and not running.done():
            self._log.debug("Build already in progress, waiting for it")
            return await asyncio.shield(running)

        self._build_task = asyncio.ensure_future(self._run_build())
        return await self._build_task

    async def ensure_indexed(self) -> IndexSnapshot:
        """Return the active snapshot, rebuilding once the cached one has expired."""
        return await self._cache.get_or_create(SNAPSHOT_CACHE_KEY, self.build)

    async def _run_build(self) -> IndexSnapshot:
        generation = self._store.next_generation()
        self._state = IndexState.BUILDING
        self._log.build_started(generation, str(self._source_tree.root_path))
        started = time.monotonic()
        try:
            snapshot = await self._build_snapshot(generation)
        except asyncio.CancelledError:
            self._state = self._settled_state()
            self._log.info("Build cancelled, previous snapshot stays active")
            self._log.clear_context()
            raise
        except Exception as e:
            self._state = self._settled_state()
            self._log.build_failed(e)
            raise

        published = self._store.publish(snapshot)
        self._state = IndexState.INDEXED
        if not self._cache.is_closed:
            self._cache.set(SNAPSHOT_CACHE_KEY, published)
        self._log.build_completed(time.monotonic() - started, len(published.components))
        return published

    def _settled_state(self) -> IndexState:
        return IndexState.INDEXED if self._store.current is not None else IndexState.NOT_INDEXED

    async def _build_snapshot(self, generation: int) -> IndexSnapshot:
        await self._acquire_source_tree()
        tree = self._source_tree
        parsing = self._config.parsing

        mapper = CategoryMapper(self._category_table)
        mapper.initialize()

        self._log.phase_change("declarations")
        declarations = await self._extract_declarations(tree.get_path(parsing.components_dir))

        self._log.phase_change("doc_pages")
        doc_pages = await self._extract_doc_pages(tree.get_path(parsing.docs_pages_dir))

        self._log.phase_change("enums")
        enums = await self._extract_enums(tree.get_path(parsing.enums_dir))

        self._log.phase_change("merging")
        records = self._merge(declarations, doc_pages, mapper)

        self._log.phase_change("examples")
        records = await self._attach_examples(records, tree.get_path(parsing.docs_pages_dir))

        api_references = self._build_api_references(declarations, enums)
        return IndexSnapshot(
            components=tuple(records),
            categories=tuple(self._build_categories(records, mapper)),
            api_references=tuple(api_references),
            built_at=datetime.now(timezone.utc),
            generation=generation,
        )

    async def _acquire_source_tree(self) -> None:
        available = await self._source_tree.ensure_available()
        if not available or not self._source_tree.is_available:
            raise RepositoryUnavailableError(str(self._source_tree.root_path))

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    async def _extract_declarations(self, components_dir: Path) -> list[tuple[DeclarationResult, str]]:
        """Parse every component source; returns (declaration, component dir name) pairs."""
        if not components_dir.is_dir():
            self._log.warning("Components directory not found: %s", components_dir)
            return []

        results: list[tuple[DeclarationResult, str]] = []
        seen: set[str] = set()
        for component_dir in sorted(p for p in components_dir.iterdir() if p.is_dir()):
            for path in _component_source_files(component_dir):
                try:
                    declaration = await self._declarations.extract_file(path)
                except Exception:
                    self._log.warning("Failed to parse component source %s", path, exc_info=True)
                    continue
                if declaration is None:
                    continue
                key = declaration.class_name.lower()
                if key in seen:
                    self._log.debug("Duplicate component %s in %s, keeping the first", declaration.class_name, path)
                    continue
                seen.add(key)
                results.append((declaration, component_dir.name))

        self._log.debug("Parsed %d component declarations", len(results))
        return results

    async def _extract_doc_pages(self, docs_dir: Path) -> dict[str, DocPageResult]:
        if not docs_dir.is_dir():
            self._log.warning("Documentation directory not found: %s", docs_dir)
            return {}

        pages: dict[str, DocPageResult] = {}
        for path in sorted(docs_dir.rglob("*Page.razor")):
            try:
                page = await self._doc_pages.extract_file(path)
            except Exception:
                self._log.warning("Failed to parse documentation page %s", path, exc_info=True)
                continue
            if page is not None and page.component_name:
                pages.setdefault(page.component_name.lower(), page)

        self._log.debug("Parsed %d documentation pages", len(pages))
        return pages

    async def _extract_enums(self, enums_dir: Path) -> list[EnumDeclarationResult]:
        if not enums_dir.is_dir():
            self._log.debug("Enums directory not found: %s", enums_dir)
            return []

        enums: list[EnumDeclarationResult] = []
        for path in sorted(enums_dir.rglob("*.cs")):
            try:
                result = await self._declarations.extract_enum_file(path)
            except Exception:
                self._log.warning("Failed to parse enum source %s", path, exc_info=True)
                continue
            if result is not None:
                enums.append(result)
        return enums

    async def _attach_examples(self, records: list[ComponentRecord], examples_root: Path) -> list[ComponentRecord]:
        limit = self._config.parsing.max_examples_per_component
        if limit == 0 or not examples_root.is_dir():
            return records

        attached: list[ComponentRecord] = []
        for record in records:
            try:
                examples = await self._examples.extract_for_component(examples_root, record.name, limit)
            except Exception:
                self._log.warning("Failed to extract examples for %s", record.name, exc_info=True)
                examples = []
            attached.append(record.model_copy(update={"examples": tuple(examples)}) if examples else record)
        return attached

    # ------------------------------------------------------------------
    # Merging
    # ------------------------------------------------------------------

    def _merge(
        self,
        declarations: list[tuple[DeclarationResult, str]],
        doc_pages: dict[str, DocPageResult],
        mapper: CategoryMapper,
    ) -> list[ComponentRecord]:
        parsing = self._config.parsing
        kept = [
            (decl, dir_name) for decl, dir_name in declarations
            if (parsing.include_internal_components or not decl.is_internal)
            and (parsing.include_deprecated_components or not decl.is_deprecated)
        ]
        known = {decl.class_name.lower(): decl.class_name for decl, _ in kept}

        records = []
        for decl, dir_name in kept:
            page = doc_pages.get(decl.class_name.lower())
            records.append(ComponentRecord(
                name=decl.class_name,
                namespace=decl.namespace or DEFAULT_NAMESPACE,
                summary=decl.summary or f"{decl.class_name} component",
                # Declaration remarks win; the page subtitle only fills a gap
                description=decl.remarks or (page.subtitle if page else None),
                category=mapper.resolve(decl.class_name),
                base_type=decl.base_type,
                parameters=tuple(decl.parameters),
                events=tuple(decl.events),
                methods=tuple(decl.methods),
                related_components=tuple(_resolve_links(page, decl.class_name, known)) if page else (),
                title=page.title if page else None,
                sections=tuple(page.sections) if page else (),
                usage_notes=tuple(page.usage_notes) if page else (),
                is_deprecated=decl.is_deprecated,
                is_internal=decl.is_internal,
                documentation_url=f"{DOCS_BASE_URL}/{dir_name.lower()}",
                source_url=self._source_url(dir_name),
            ))
        records.sort(key=lambda r: r.name.lower())
        return records

    def _source_url(self, dir_name: str) -> Optional[str]:
        repo = self._config.repository
        if not repo.url.startswith("https://github.com/"):
            return None
        base = repo.url[: -len(".git")] if repo.url.endswith(".git") else repo.url
        return f"{base}/tree/{repo.branch}/{self._config.parsing.components_dir}/{dir_name}"

    @staticmethod
    def _build_categories(records: list[ComponentRecord], mapper: CategoryMapper) -> list[Category]:
        members: dict[str, list[str]] = {}
        for record in records:
            members.setdefault(record.category, []).append(record.name)

        categories = []
        for spec in mapper.get_categories():
            categories.append(Category(
                name=spec.name,
                title=spec.title,
                description=spec.description,
                component_names=tuple(members.pop(spec.name, [])),
            ))
        # Inferred categories outside the curated table, in first-seen order
        for name, names in members.items():
            categories.append(Category(name=name, title=name, component_names=tuple(names)))
        return categories

    @staticmethod
    def _build_api_references(
        declarations: list[tuple[DeclarationResult, str]],
        enums: list[EnumDeclarationResult],
    ) -> list[ApiReference]:
        references: dict[str, ApiReference] = {}
        for decl, _ in declarations:
            members = [
                ApiMember(name=p.name, member_type="Property", return_type=p.type, description=p.description)
                for p in decl.parameters
            ]
            members.extend(
                ApiMember(name=e.name, member_type="Event", return_type=e.type, description=e.description)
                for e in decl.events
            )
            members.extend(
                ApiMember(
                    name=m.name,
                    member_type="Method",
                    return_type=m.return_type,
                    description=m.description,
                    parameter_signature=", ".join(f"{p.type} {p.name}" for p in m.parameters) or None,
                )
                for m in decl.methods
            )
            references.setdefault(decl.class_name.lower(), ApiReference(
                type_name=decl.class_name,
                namespace=decl.namespace or DEFAULT_NAMESPACE,
                summary=decl.summary,
                base_type=decl.base_type,
                kind="class",
                members=tuple(members),
            ))

        for enum in enums:
            references.setdefault(enum.enum_name.lower(), ApiReference(
                type_name=enum.enum_name,
                namespace=enum.namespace or DEFAULT_NAMESPACE,
                summary=enum.summary,
                kind="enum",
                enum_values=tuple(enum.values),
            ))
        return list(references.values())

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def search(
        self, query_text: str, fields: Any = SearchFields.ALL, max_results: int = 10
    ) -> list[ComponentRecord]:
        snapshot = self._store.require()
        needle = require_non_empty(query_text, "query")
        selected = SearchFields.parse(fields)
        limit = require_in_range(max_results, 1, MAX_SEARCH_RESULTS, "max_results")
        return query.search(snapshot, needle, selected, limit)

    def get_by_category(self, category_name: str) -> list[ComponentRecord]:
        snapshot = self._store.require()
        if not category_name or not category_name.strip():
            return []
        return query.get_by_category(snapshot, category_name)

    def require_category(self, category_name: str) -> list[ComponentRecord]:
        """Like get_by_category, but an unknown name is an error listing the valid ones."""
        snapshot = self._store.require()
        name = require_non_empty(category_name, "category")
        if name.lower() not in snapshot.categories_by_name:
            raise UnknownCategoryError(name, [c.name for c in snapshot.categories])
        return query.get_by_category(snapshot, name)

    def get_categories(self) -> list[Category]:
        return list(self._store.require().categories)

    def get_component(self, name: str) -> Optional[ComponentRecord]:
        snapshot = self._store.require()
        if not name or not name.strip():
            return None
        return query.find_component(snapshot, name)

    def require_component(self, name: str) -> ComponentRecord:
        snapshot = self._store.require()
        component = query.find_component(snapshot, require_non_empty(name, "component"))
        if component is None:
            raise UnknownComponentError(name.strip())
        return component

    def get_all_components(self) -> list[ComponentRecord]:
        return list(self._store.require().components)

    def get_examples(self, name: str) -> list[Example]:
        return list(self.require_component(name).examples)

    def get_related(self, name: str, kind: Any = RelationshipKind.ALL) -> list[ComponentRecord]:
        snapshot = self._store.require()
        relationship = RelationshipKind.parse(kind)
        component = self.require_component(name)

        if self._cache.is_closed:
            return query.get_related(snapshot, component, relationship)

        key = f"related:{snapshot.generation}:{component.name.lower()}:{relationship.value}"
        cached = self._cache.get(key)
        if cached is not MISS:
            return list(cached)
        related = query.get_related(snapshot, component, relationship)
        self._cache.set(key, tuple(related))
        return related

    def get_api_reference(self, type_name: str) -> Optional[ApiReference]:
        snapshot = self._store.require()
        if not type_name or not type_name.strip():
            return None
        return query.find_api_reference(snapshot, type_name)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        task = self._build_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                self._log.debug("Build failed during shutdown", exc_info=True)
        if self._owns_cache:
            self._cache.close()

    async def __aenter__(self) -> "ComponentIndexer":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


def _component_source_files(component_dir: Path) -> list[Path]:
    """Mud*.razor.cs files, plus Mud*.cs files without a .razor.cs counterpart."""
    razor_cs = sorted(component_dir.glob(f"{LIBRARY_PREFIX}*.razor.cs"))
    stems = {p.name[: -len(".razor.cs")] for p in razor_cs}
    plain = sorted(
        p for p in component_dir.glob(f"{LIBRARY_PREFIX}*.cs")
        if not p.name.endswith(".razor.cs") and p.stem not in stems
    )
    return razor_cs + plain


def _resolve_links(page: DocPageResult, own_name: str, known: dict[str, str]) -> list[str]:
    """Map "/components/{name}" link targets onto indexed component names."""
    prefix = LIBRARY_PREFIX.lower()
    resolved: list[str] = []
    for link in page.related_components:
        key = link.lower()
        name = known.get(key) or known.get(prefix + key)
        if name and name != own_name and name not in resolved:
            resolved.append(name)
    return resolved

"""In-memory component documentation index."""

from .models import (
    ApiReference,
    Category,
    ComponentRecord,
    Example,
    IndexSnapshot,
    IndexState,
    RelationshipKind,
    SearchFields,
)
from .extractors import BaseExtractor, get_extractor_for_format
from .categories import CategoryMapper, CategoryTable, default_category_table
from .store import SnapshotStore
from .indexer import ComponentIndexer

__all__ = [
    "ApiReference",
    "Category",
    "ComponentRecord",
    "Example",
    "IndexSnapshot",
    "IndexState",
    "RelationshipKind",
    "SearchFields",
    "BaseExtractor",
    "get_extractor_for_format",
    "CategoryMapper",
    "CategoryTable",
    "default_category_table",
    "SnapshotStore",
    "ComponentIndexer",
]

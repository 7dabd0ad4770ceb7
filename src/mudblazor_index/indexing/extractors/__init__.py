"""Source-format extractors: component declarations, doc pages, examples."""

from typing import Optional

from .base import BaseExtractor, RuleMatcher, TagRule, read_source
from .declaration_extractor import DeclarationExtractor, MemberRole, classify_member
from .doc_page_extractor import DocPageExtractor
from .example_extractor import ExampleExtractor

_EXTRACTOR_MAP: dict[str, type[BaseExtractor]] = {
    "declaration": DeclarationExtractor,
    "doc_page": DocPageExtractor,
    "example": ExampleExtractor,
}


def get_extractor_for_format(source_format: str) -> Optional[BaseExtractor]:
    cls = _EXTRACTOR_MAP.get(source_format.lower())
    return cls() if cls else None


__all__ = [
    "BaseExtractor",
    "DeclarationExtractor",
    "DocPageExtractor",
    "ExampleExtractor",
    "MemberRole",
    "RuleMatcher",
    "TagRule",
    "classify_member",
    "get_extractor_for_format",
    "read_source",
]

"""Documentation cache fronting index builds and derived queries."""

from .documentation_cache import MISS, CacheStatistics, DocumentationCache

__all__ = ["MISS", "CacheStatistics", "DocumentationCache"]

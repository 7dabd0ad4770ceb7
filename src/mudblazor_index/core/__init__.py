"""Configuration for the component index."""

from .config import (
    CacheConfig,
    CategoriesConfig,
    IndexConfig,
    ParsingConfig,
    RepositoryConfig,
    clear_config_cache,
    load_config,
)

__all__ = [
    "CacheConfig",
    "CategoriesConfig",
    "IndexConfig",
    "ParsingConfig",
    "RepositoryConfig",
    "clear_config_cache",
    "load_config",
]

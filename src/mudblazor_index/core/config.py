"""Configuration loading and validation."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from mudblazor_index.indexing.categories import (
    DEFAULT_CATEGORY,
    CategorySpec,
    CategoryTable,
    category_table_from_specs,
    default_category_table,
)
from mudblazor_index.utils.validators import validate_branch_name

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("mudblazor-index.yaml")


class RepositoryConfig(BaseModel):
    """Where the component library sources come from."""
    url: str = "https://github.com/MudBlazor/MudBlazor.git"
    branch: str = "dev"
    local_path: Path = Path("./data/mudblazor-repo")
    clone_timeout: int = 600  # seconds; a shallow clone of the full repo is slow

    @field_validator('branch')
    @classmethod
    def validate_branch(cls, v: str) -> str:
        return validate_branch_name(v)


class CacheConfig(BaseModel):
    """Expiry settings for the documentation cache."""
    sliding_expiration_minutes: int = 60
    absolute_expiration_minutes: int = 1440
    max_entries: int = 1024

    @field_validator('sliding_expiration_minutes', 'absolute_expiration_minutes', 'max_entries')
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be >= 1, got {v}")
        return v

    @model_validator(mode='after')
    def validate_window(self) -> 'CacheConfig':
        if self.sliding_expiration_minutes > self.absolute_expiration_minutes:
            raise ValueError(
                "sliding_expiration_minutes cannot exceed absolute_expiration_minutes "
                f"({self.sliding_expiration_minutes} > {self.absolute_expiration_minutes})"
            )
        return self


class ParsingConfig(BaseModel):
    """What the build includes and where it looks inside the source tree."""
    include_internal_components: bool = False
    include_deprecated_components: bool = True
    max_examples_per_component: int = 20

    # Relative to the source tree root
    components_dir: str = "src/MudBlazor/Components"
    docs_pages_dir: str = "src/MudBlazor.Docs/Pages/Components"
    enums_dir: str = "src/MudBlazor/Enums"

    @field_validator('max_examples_per_component')
    @classmethod
    def validate_max_examples(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_examples_per_component must be >= 0, got {v}")
        return v


class CategoriesConfig(BaseModel):
    """Optional replacement for the built-in category table."""
    default_category: str = DEFAULT_CATEGORY
    categories: List[CategorySpec] = Field(default_factory=list)

    def to_table(self) -> CategoryTable:
        if not self.categories:
            table = default_category_table()
            if self.default_category == table.default_category:
                return table
            return category_table_from_specs(table.categories, self.default_category)
        return category_table_from_specs(self.categories, self.default_category)


class IndexConfig(BaseSettings):
    """Main configuration."""
    repository: RepositoryConfig = Field(default_factory=RepositoryConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    parsing: ParsingConfig = Field(default_factory=ParsingConfig)
    categories: CategoriesConfig = Field(default_factory=CategoriesConfig)
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    class Config:
        env_prefix = "MUDINDEX_"
        env_nested_delimiter = "__"
        extra = "ignore"


# Module-level mtime-based config cache: path -> (parsed_config, file_mtime)
_config_cache: Dict[str, tuple] = {}


def _get_cached_or_load(resolved_path: Path, loader):
    """Return cached config if file mtime unchanged, else reload."""
    key = str(resolved_path)
    try:
        current_mtime = resolved_path.stat().st_mtime
    except FileNotFoundError:
        _config_cache.pop(key, None)
        return None

    cached = _config_cache.get(key)
    if cached is not None:
        cached_result, cached_mtime = cached
        if cached_mtime == current_mtime:
            return cached_result

    result = loader(resolved_path)
    _config_cache[key] = (result, current_mtime)
    return result


def _load_config_from_file(config_path: Path) -> IndexConfig:
    """Internal loader (no caching)."""
    with open(config_path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping at the top level")

    data = _expand_env_vars(data)
    return IndexConfig(**data)


def load_config(config_path: Path = DEFAULT_CONFIG_PATH) -> IndexConfig:
    """Load configuration from a YAML file.

    Uses mtime-based caching; returns the cached config if the file hasn't changed.
    A missing file yields the defaults (plus any MUDINDEX_* environment overrides).
    """
    if not config_path.exists():
        logger.debug("Config file not found: %s. Using default configuration.", config_path)
        return IndexConfig()

    result = _get_cached_or_load(config_path.resolve(), _load_config_from_file)
    return result if result is not None else IndexConfig()


def clear_config_cache() -> None:
    """Clear the module-level config cache. Useful for tests."""
    _config_cache.clear()


def _expand_env_vars(data: Any, _path: str = "") -> Any:
    """Recursively expand ``${VAR}`` references in config data.

    Args:
        data: Config data to process
        _path: Internal tracking for error messages (e.g., "repository.url")
    """
    if isinstance(data, dict):
        return {k: _expand_env_vars(v, f"{_path}.{k}" if _path else k) for k, v in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item, f"{_path}[{i}]") for i, item in enumerate(data)]
    elif isinstance(data, str) and data.startswith("${") and data.endswith("}"):
        env_var = data[2:-1]
        value = os.environ.get(env_var)
        if value is None:
            logger.warning(
                "Environment variable '%s' not set (referenced at config path: %s). "
                "The literal string '%s' will be used.",
                env_var, _path or "root", data,
            )
            return data
        return value
    return data

"""Exception types raised by the indexer, the query surface and the cache."""

from typing import Iterable, Optional


class MudIndexError(Exception):
    """Base class for every error raised by mudblazor_index."""


class NotIndexedError(MudIndexError):
    """A query was issued before the first successful build."""

    def __init__(self, message: str = "Component index has not been built yet. Run a build first."):
        super().__init__(message)


class RepositoryUnavailableError(MudIndexError):
    """The source tree could not be acquired, so no build can run."""

    def __init__(self, root_path: str, reason: Optional[str] = None):
        self.root_path = root_path
        self.reason = reason
        message = f"Repository is not available for indexing: {root_path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidArgumentError(MudIndexError, ValueError):
    """A query parameter was empty, out of range, or not a recognised option."""


class UnknownComponentError(InvalidArgumentError):
    """A component that the caller expected to exist is not in the index."""

    def __init__(self, component_name: str):
        self.component_name = component_name
        super().__init__(
            f"Component '{component_name}' not found. "
            "Use the component listing to see available components."
        )


class UnknownCategoryError(InvalidArgumentError):
    """A category that the caller expected to exist is not in the index."""

    def __init__(self, category_name: str, available: Optional[Iterable[str]] = None):
        self.category_name = category_name
        self.available = list(available) if available is not None else []
        message = f"Category '{category_name}' not found."
        if self.available:
            message += f" Available categories: {', '.join(self.available)}"
        else:
            message += " Use the category listing to see available categories."
        super().__init__(message)


class InvalidKeyError(InvalidArgumentError):
    """A cache key was empty or blank."""

    def __init__(self, key: object):
        self.key = key
        super().__init__(f"Cache key must be a non-empty string, got {key!r}")


class CacheDisposedError(MudIndexError):
    """The cache was used after close()."""

    def __init__(self) -> None:
        super().__init__("Cache has been disposed")

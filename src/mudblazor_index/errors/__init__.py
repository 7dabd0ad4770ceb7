"""Error taxonomy and user-facing translation."""

from .exceptions import (
    CacheDisposedError,
    InvalidArgumentError,
    InvalidKeyError,
    MudIndexError,
    NotIndexedError,
    RepositoryUnavailableError,
    UnknownCategoryError,
    UnknownComponentError,
)
from .translator import ErrorTranslator, UserFriendlyError

__all__ = [
    "CacheDisposedError",
    "ErrorTranslator",
    "InvalidArgumentError",
    "InvalidKeyError",
    "MudIndexError",
    "NotIndexedError",
    "RepositoryUnavailableError",
    "UnknownCategoryError",
    "UnknownComponentError",
    "UserFriendlyError",
]

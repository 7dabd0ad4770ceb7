"""Validation helpers for query arguments and repository settings."""

import re
from typing import Iterable, TypeVar

from mudblazor_index.errors import InvalidArgumentError

T = TypeVar("T")


def require_non_empty(value: str, name: str = "value") -> str:
    """
    Validate that a query argument is a non-blank string.

    Args:
        value: Argument value to validate
        name: Argument name (for error messages)

    Returns:
        The value with surrounding whitespace removed

    Raises:
        InvalidArgumentError: If the value is empty or whitespace only
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgumentError(f"{name} cannot be empty")
    return value.strip()


def require_in_range(value: int, minimum: int, maximum: int, name: str = "value") -> int:
    """
    Validate that an integer argument lies within [minimum, maximum].

    Raises:
        InvalidArgumentError: If the value is not an int or is out of range
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < minimum or value > maximum:
        raise InvalidArgumentError(f"{name} must be between {minimum} and {maximum}, got {value}")
    return value


def require_valid_option(value: T, options: Iterable[T], name: str = "value") -> T:
    """Validate that *value* is one of *options*."""
    allowed = list(options)
    if value not in allowed:
        raise InvalidArgumentError(
            f"Invalid {name}: {value!r}. Expected one of: {', '.join(str(o) for o in allowed)}"
        )
    return value


def validate_branch_name(branch_name: str) -> str:
    """
    Validate git branch name before it reaches a git command line.

    Args:
        branch_name: Branch name to validate

    Returns:
        Validated branch name

    Raises:
        ValueError: If branch name is invalid
    """
    if not branch_name:
        raise ValueError("Branch name cannot be empty")

    # Strict whitelist
    if not re.match(r'^[a-zA-Z0-9._/-]+$', branch_name):
        raise ValueError(f"Invalid branch name: {branch_name}")

    if branch_name.startswith(('/', '-')) or branch_name.endswith('/'):
        raise ValueError("Branch name cannot start with / or - or end with /")

    if '..' in branch_name:
        raise ValueError("Branch name contains invalid sequence")

    if len(branch_name) > 255:
        raise ValueError("Branch name too long")

    return branch_name

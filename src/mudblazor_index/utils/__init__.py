"""Shared utility functions."""

from .rich_logging import BuildLogAdapter, BuildLogFormatter, setup_logging
from .subprocess_utils import (
    SubprocessError,
    check_command_exists,
    run_command,
    run_git_command,
    run_git_with_retry,
)
from .validators import (
    require_in_range,
    require_non_empty,
    require_valid_option,
    validate_branch_name,
)

__all__ = [
    # Logging
    "BuildLogAdapter",
    "BuildLogFormatter",
    "setup_logging",
    # Subprocess utilities
    "SubprocessError",
    "check_command_exists",
    "run_command",
    "run_git_command",
    "run_git_with_retry",
    # Validators
    "require_in_range",
    "require_non_empty",
    "require_valid_option",
    "validate_branch_name",
]

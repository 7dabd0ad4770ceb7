"""Translate index and cache errors to user-friendly messages."""

import re
from dataclasses import dataclass
from typing import List, Optional


@dataclass
class UserFriendlyError:
    """User-friendly error representation."""
    original_error: Exception
    title: str
    explanation: str
    actions: List[str]
    show_technical: bool = False


class ErrorTranslator:
    """Translate technical errors to user-friendly messages."""

    # Matched against "<ExceptionType>: <message>"; first match wins.
    ERROR_PATTERNS = {
        r"NotIndexedError": {
            "title": "Component index not ready",
            "explanation": "No index has been built yet, or the last build failed before publishing.",
            "actions": [
                "Build the index: mudindex build",
                "Check that the source repository is reachable",
            ],
        },
        r"RepositoryUnavailableError": {
            "title": "Source repository unavailable",
            "explanation": "The component library sources could not be cloned or updated.",
            "actions": [
                "Check repository.url and repository.branch in the config file",
                "Verify network access and that git is installed",
                "Index a local checkout instead: mudindex --source <path> build",
            ],
        },
        r"UnknownComponentError": {
            "title": "Component not found",
            "explanation": "The requested component is not in the index.",
            "actions": [
                "List available components: mudindex components",
                "Try the short name (e.g. 'Button' for 'MudButton')",
            ],
        },
        r"UnknownCategoryError": {
            "title": "Category not found",
            "explanation": "The requested category is not in the index.",
            "actions": [
                "List available categories: mudindex categories",
            ],
        },
        r"InvalidArgumentError|InvalidKeyError": {
            "title": "Invalid argument",
            "explanation": "One of the query parameters was empty, out of range, or not a recognised option.",
            "actions": [
                "Check the command's --help output for accepted values",
            ],
        },
        r"CacheDisposedError": {
            "title": "Cache already closed",
            "explanation": "The documentation cache was used after it was torn down.",
            "actions": [
                "Create a new indexer instance",
            ],
        },
        r"config.*not.*found|no such file.*config|ValidationError": {
            "title": "Configuration problem",
            "explanation": "The configuration file is missing or contains invalid values.",
            "actions": [
                "Check the YAML file passed with --config",
                "Remove invalid keys to fall back to defaults",
            ],
        },
    }

    def translate(self, error: Exception) -> UserFriendlyError:
        error_str = str(error)
        error_type = type(error).__name__
        full_error = f"{error_type}: {error_str}"

        for pattern, translation in self.ERROR_PATTERNS.items():
            if re.search(pattern, full_error, re.IGNORECASE):
                explanation = translation["explanation"]
                # Domain errors carry a precise message worth showing verbatim
                if error_str and error_type != "ValidationError":
                    explanation = f"{error_str}\n{explanation}"
                return UserFriendlyError(
                    original_error=error,
                    title=translation["title"],
                    explanation=explanation,
                    actions=list(translation["actions"]),
                    show_technical=False,
                )

        return UserFriendlyError(
            original_error=error,
            title="Unexpected error",
            explanation=str(error),
            actions=[
                "Re-run with --verbose for a full log",
            ],
            show_technical=True,
        )

    def format_for_cli(self, friendly_error: UserFriendlyError) -> str:
        output = f"[bold red]{friendly_error.title}[/]\n\n"
        output += f"{friendly_error.explanation}\n\n"

        output += "[bold]How to fix:[/]\n"
        for i, action in enumerate(friendly_error.actions, 1):
            output += f"  {i}. {action}\n"

        if friendly_error.show_technical:
            output += f"\n[dim]Technical details:[/]\n[dim]{friendly_error.original_error!r}[/]"

        return output

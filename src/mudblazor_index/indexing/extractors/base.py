"""Shared pieces for the source-format extractors."""

import asyncio
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Optional, Pattern, Union

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 500_000
DESCRIPTION_MAX_LEN = 500

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class TagRule:
    """A (pattern, tag) pair; the tag is emitted when the pattern matches."""

    pattern: Pattern[str]
    tag: str

    @classmethod
    def of(cls, pattern: str, tag: str, flags: int = 0) -> "TagRule":
        return cls(re.compile(pattern, flags), tag)


class RuleMatcher:
    """Evaluates an ordered table of TagRules against text.

    Tags come back in rule order with duplicates collapsed, so two rules may
    share a tag (e.g. "AnchorOrigin=" and "TransformOrigin=" both map to Origin).
    """

    def __init__(self, rules: Iterable[TagRule]):
        self._rules = tuple(rules)

    @property
    def rules(self) -> tuple[TagRule, ...]:
        return self._rules

    def match_all(self, text: str) -> list[str]:
        seen: set[str] = set()
        tags: list[str] = []
        for rule in self._rules:
            if rule.tag in seen:
                continue
            if rule.pattern.search(text):
                seen.add(rule.tag)
                tags.append(rule.tag)
        return tags

    def match_first(self, text: str) -> Optional[str]:
        for rule in self._rules:
            if rule.pattern.search(text):
                return rule.tag
        return None


class BaseExtractor(ABC):
    """One extractor per source format; each is usable on raw text alone."""

    @abstractmethod
    def extract(self, source: str, file_path: str) -> Any:
        ...

    async def extract_file(self, path: Union[str, Path]) -> Any:
        """Read *path* and run extract(); None when the file can't be read."""
        source = await read_source(path)
        if source is None:
            return None
        return self.extract(source, str(path))

    @staticmethod
    def _collapse_whitespace(text: str) -> str:
        return _WHITESPACE_RE.sub(" ", text).strip()

    @staticmethod
    def _truncate(text: str, max_len: int = DESCRIPTION_MAX_LEN) -> str:
        if len(text) <= max_len:
            return text
        return text[: max_len - 3] + "..."


async def read_source(path: Union[str, Path]) -> Optional[str]:
    """Read a source file off the event loop.

    Missing, unreadable and oversized files return None; speculative lookups
    rely on that instead of catching exceptions.
    """
    file_path = Path(path)
    try:
        size = await asyncio.to_thread(lambda: file_path.stat().st_size)
    except OSError:
        return None
    if size > MAX_FILE_SIZE:
        logger.debug("Skipping oversized file %s (%d bytes)", file_path, size)
        return None
    try:
        return await asyncio.to_thread(file_path.read_text, encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Could not read %s: %s", file_path, exc)
        return None


def split_top_level(text: str, separator: str = ",") -> list[str]:
    """Split on *separator* outside of <>, (), [] and string literals."""
    parts: list[str] = []
    depth = 0
    in_string = False
    current: list[str] = []
    prev = ""
    for ch in text:
        if ch == '"' and prev != "\\":
            in_string = not in_string
        elif not in_string:
            if ch in "<([{":
                depth += 1
            elif ch in ">)]}":
                depth = max(0, depth - 1)
            elif ch == separator and depth == 0:
                parts.append("".join(current).strip())
                current = []
                prev = ch
                continue
        current.append(ch)
        prev = ch
    tail = "".join(current).strip()
    if tail:
        parts.append(tail)
    return parts

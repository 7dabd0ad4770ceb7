"""Documentation page extractor for ``*Page.razor`` files.

The pages are loosely structured Razor markup; every piece is matched
independently so a page missing its header still yields sections and links.
"""

import html
import logging
import re
from pathlib import Path
from typing import Optional

from mudblazor_index.indexing.extractors.base import BaseExtractor
from mudblazor_index.indexing.models import LIBRARY_PREFIX, DocPageResult, DocSection

logger = logging.getLogger(__name__)

RE_PAGE_HEADER = re.compile(r"<DocsPageHeader\b([^>]*)>", re.IGNORECASE)
RE_TITLE_ATTR = re.compile(r'\bTitle\s*=\s*"([^"]*)"', re.IGNORECASE)
RE_SUBTITLE_ATTR = re.compile(r'\bSubTitle\s*=\s*"([^"]*)"', re.IGNORECASE)
RE_SECTION = re.compile(r"<DocsPageSection\b([^>]*)>(.*?)</DocsPageSection>", re.DOTALL | re.IGNORECASE)
RE_SECTION_HEADER = re.compile(r"<SectionHeader\b([^>]*)>", re.IGNORECASE)
RE_DESCRIPTION = re.compile(r"<Description>(.*?)</Description>", re.DOTALL | re.IGNORECASE)
RE_COMPONENT_LINK = re.compile(r'href\s*=\s*"/components/([^"]+)"', re.IGNORECASE)
RE_ALERT = re.compile(r"<MudAlert\b[^>]*>(.*?)</MudAlert>", re.DOTALL)

# Readable-text cleanup, applied in order
RE_CODE_BLOCK = re.compile(r"@code\s*\{.*?\}|@\{.*?\}|<code>.*?</code>", re.DOTALL)
RE_SELF_CLOSING = re.compile(r"<[A-Za-z][^>]*/>")
RE_TAG = re.compile(r"</?[A-Za-z][^>]*>")
RE_RAZOR_COMMENT = re.compile(r"@\*.*?\*@", re.DOTALL)
RE_RAZOR_EXPR = re.compile(r"@\([^)]*\)|@[A-Za-z_][\w.]*")

PAGE_SUFFIX = "Page"


class DocPageExtractor(BaseExtractor):

    def extract(self, source: str, file_path: str) -> DocPageResult:
        component_name = component_name_from_page(file_path)
        title, subtitle = self._extract_header(source)
        return DocPageResult(
            file_path=file_path,
            component_name=component_name,
            title=title,
            subtitle=subtitle,
            sections=self._extract_sections(source, file_path),
            related_components=self._extract_related(source, component_name),
            usage_notes=self._extract_usage_notes(source),
        )

    def _extract_header(self, source: str) -> tuple[Optional[str], Optional[str]]:
        header = RE_PAGE_HEADER.search(source)
        if not header:
            return None, None
        attrs = header.group(1)
        title = RE_TITLE_ATTR.search(attrs)
        subtitle = RE_SUBTITLE_ATTR.search(attrs)
        return (
            html.unescape(title.group(1)).strip() or None if title else None,
            html.unescape(subtitle.group(1)).strip() or None if subtitle else None,
        )

    def _extract_sections(self, source: str, file_path: str) -> list[DocSection]:
        sections: list[DocSection] = []
        for match in RE_SECTION.finditer(source):
            attrs, content = match.group(1), match.group(2)
            heading = RE_TITLE_ATTR.search(attrs)
            if not heading:
                nested = RE_SECTION_HEADER.search(content)
                heading = RE_TITLE_ATTR.search(nested.group(1)) if nested else None
            if not heading or not heading.group(1).strip():
                logger.debug("Skipping section without a heading in %s", file_path)
                continue

            description = RE_DESCRIPTION.search(content)
            body = readable_text(description.group(1) if description else content)
            sections.append(DocSection(
                heading=html.unescape(heading.group(1)).strip(),
                body=self._truncate(body),
                has_example="SectionSource" in content or "Example" in content,
            ))
        return sections

    def _extract_related(self, source: str, component_name: Optional[str]) -> list[str]:
        own = component_name.lower() if component_name else None
        own_short = own[len(LIBRARY_PREFIX):] if own and own.startswith(LIBRARY_PREFIX.lower()) else own
        seen: set[str] = set()
        related: list[str] = []
        for match in RE_COMPONENT_LINK.finditer(source):
            name = re.split(r"[?#/]", match.group(1), maxsplit=1)[0].strip()
            key = name.lower()
            if not name or key in seen or key in (own, own_short):
                continue
            seen.add(key)
            related.append(name)
        return related

    def _extract_usage_notes(self, source: str) -> list[str]:
        notes = []
        for match in RE_ALERT.finditer(source):
            text = readable_text(match.group(1))
            if text:
                notes.append(text)
        return notes


def component_name_from_page(file_path: str) -> Optional[str]:
    """'ButtonPage.razor' -> 'MudButton'; None for files not following the convention."""
    stem = Path(file_path).name.split(".", 1)[0]
    if not stem.endswith(PAGE_SUFFIX) or len(stem) == len(PAGE_SUFFIX):
        return None
    return f"{LIBRARY_PREFIX}{stem[: -len(PAGE_SUFFIX)]}"


def readable_text(markup: str) -> str:
    """Flatten Razor markup to plain text: code and comments dropped, tags unwrapped."""
    text = RE_RAZOR_COMMENT.sub(" ", markup)
    text = RE_CODE_BLOCK.sub(" ", text)
    text = RE_SELF_CLOSING.sub(" ", text)
    text = RE_TAG.sub(" ", text)
    text = RE_RAZOR_EXPR.sub(" ", text)
    text = html.unescape(re.sub(r"\s+", " ", text)).strip()
    return re.sub(r"\s+([.,;:!?])", r"\1", text)

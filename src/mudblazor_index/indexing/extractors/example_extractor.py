"""Example extractor for the ``*Example*.razor`` files of the documentation site."""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from mudblazor_index.indexing.extractors.base import BaseExtractor, RuleMatcher, TagRule, read_source
from mudblazor_index.indexing.models import Example, strip_library_prefix

logger = logging.getLogger(__name__)

EXAMPLE_GLOB = "*Example*.razor"

RE_CODE_BLOCK = re.compile(r"@code\s*\{(.*)\}", re.DOTALL)
RE_DIRECTIVE_LINE = re.compile(
    r"^[ \t]*@(?:page|using|namespace|inject|inherits|implements|layout|attribute)\b[^\n]*(?:\n|$)",
    re.MULTILINE,
)
RE_BLANK_RUN = re.compile(r"\n[ \t]*\n(?:[ \t]*\n)+")
RE_RAZOR_COMMENT = re.compile(r"^\s*@\*\s*(.+?)\s*\*@", re.DOTALL)
RE_LINE_COMMENT = re.compile(r"^\s*//\s*(.+?)\s*$", re.MULTILINE)


def _enum_family(family: str) -> TagRule:
    # Matches Color="Color.Primary" as well as IconColor="@Color.Error"
    return TagRule.of(rf'=\s*"@?\(?\s*{family}\.\w+', family)


FEATURE_RULES: tuple[TagRule, ...] = (
    _enum_family("Color"),
    _enum_family("Size"),
    _enum_family("Variant"),
    _enum_family("Typo"),
    _enum_family("Align"),
    _enum_family("Edge"),
    _enum_family("Origin"),
    _enum_family("Adornment"),
    _enum_family("Orientation"),
    _enum_family("Position"),
    _enum_family("Justify"),
    TagRule.of(r"\bElevation\s*=", "Elevation"),
    TagRule.of(r"@bind\b|@bind-", "Two-way binding"),
    TagRule.of(r"@on[a-z]+\s*=|\bEventCallback\b|\bOn[A-Z]\w*\s*=\s*\"", "Event handling"),
)


class ExampleExtractor(BaseExtractor):
    """Splits example files into markup and ``@code`` and tags the features they show."""

    def __init__(self, rules: tuple[TagRule, ...] = FEATURE_RULES):
        self._features = RuleMatcher(rules)

    def extract(self, source: str, file_path: str) -> Optional[Example]:
        name = Path(file_path).name.split(".", 1)[0]
        code_match = RE_CODE_BLOCK.search(source)
        if code_match:
            markup_part = source[: code_match.start()]
            code = code_match.group(1).strip() or None
        else:
            markup_part = source
            code = None

        markup = self.clean_markup(markup_part) or None
        if markup is None and code is None:
            logger.debug("Example %s has no content", file_path)
            return None

        features = self._features.match_all(markup or "")
        # Event handling declared only in @code still counts
        if code and "EventCallback" in code and "Event handling" not in features:
            features.append("Event handling")

        return Example(
            name=name,
            description=self._extract_description(source),
            markup=markup,
            code=code,
            source_file=Path(file_path).name,
            features=tuple(features),
        )

    async def extract_file(
        self, path: Union[str, Path], component_name: Optional[str] = None
    ) -> Optional[Example]:
        source = await read_source(path)
        if source is None:
            logger.debug("Example file %s for %s is not readable", path, component_name or "?")
            return None
        return self.extract(source, str(path))

    async def extract_for_component(
        self, examples_root: Union[str, Path], component_name: str, limit: int
    ) -> list[Example]:
        """Collect up to *limit* examples from the component's docs folder."""
        folder = Path(examples_root) / strip_library_prefix(component_name)
        if not folder.is_dir():
            logger.debug("No examples folder for %s at %s", component_name, folder)
            return []

        examples: list[Example] = []
        for path in sorted(folder.rglob(EXAMPLE_GLOB)):
            if len(examples) >= limit:
                break
            try:
                example = await self.extract_file(path, component_name)
            except Exception:
                logger.warning("Failed to extract example %s", path, exc_info=True)
                continue
            if example is not None:
                examples.append(example)

        logger.debug("Found %d examples for %s", len(examples), component_name)
        return examples

    @staticmethod
    def clean_markup(markup: str) -> str:
        """Drop directive lines (@page, @using, ...) and collapse blank-line runs."""
        text = RE_DIRECTIVE_LINE.sub("", markup)
        text = RE_BLANK_RUN.sub("\n\n", text)
        return text.strip()

    def _extract_description(self, source: str) -> Optional[str]:
        body = RE_DIRECTIVE_LINE.sub("", source)
        comment = RE_RAZOR_COMMENT.match(body)
        if comment:
            return self._truncate(self._collapse_whitespace(comment.group(1))) or None
        line = RE_LINE_COMMENT.match(body)
        if line:
            return self._truncate(line.group(1)) or None
        return None


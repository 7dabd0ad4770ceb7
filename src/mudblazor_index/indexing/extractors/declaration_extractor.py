"""C# component declaration extractor using regex-based line scanning.

Reads the first public class of a component source file (``MudButton.razor.cs``)
and turns its ``[Parameter]`` properties, ``EventCallback`` parameters and
public methods into a DeclarationResult. Enum sources are handled by
``extract_enum`` and feed the API reference table.
"""

import html
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from mudblazor_index.indexing.extractors.base import BaseExtractor, read_source, split_top_level
from mudblazor_index.indexing.models import (
    DeclarationResult,
    EnumDeclarationResult,
    EnumValue,
    EventDescriptor,
    MethodDescriptor,
    MethodParameter,
    Parameter,
)

logger = logging.getLogger(__name__)

_MODIFIERS = (
    "public|protected|internal|private|static|virtual|override|new|required|"
    "sealed|abstract|readonly|unsafe|async|extern|partial"
)
_TYPE = r"[\w.]+(?:\s*<[^;{}=]*>)?(?:\[\])?\??"

RE_NAMESPACE = re.compile(r"^\s*namespace\s+([\w.]+)")
RE_CLASS = re.compile(
    rf"^\s*(?P<mods>(?:(?:{_MODIFIERS})\s+)*)(?:class|record)\s+(?P<name>\w+)"
    r"(?P<generics>\s*<[^>]*>)?(?P<rest>.*)$"
)
RE_ENUM = re.compile(
    rf"^\s*(?P<mods>(?:(?:{_MODIFIERS})\s+)*)enum\s+(?P<name>\w+)(?P<rest>.*)$"
)
RE_PROPERTY = re.compile(
    rf"^(?P<mods>(?:(?:{_MODIFIERS})\s+)*)(?P<type>{_TYPE})\s+(?P<name>[A-Za-z_]\w*)"
    r"\s*(?P<tail>\{.*|=>.*)?$"
)
RE_METHOD = re.compile(
    rf"^(?P<mods>(?:(?:{_MODIFIERS})\s+)*)(?P<ret>{_TYPE}|\([^)]*\))\s+(?P<name>[A-Za-z_]\w*)"
    r"\s*(?:<[^>]*>)?\s*\((?P<rest>.*)$"
)
RE_PROPERTY_DEFAULT = re.compile(r"\}\s*=\s*(?P<default>.+?);\s*$")
RE_EVENT_CALLBACK = re.compile(r"^EventCallback\b\s*(?:<(?P<arg>.+)>)?\s*\??$")
RE_ASYNC_RETURN = re.compile(r"^(?:System\.Threading\.Tasks\.)?(?:Task|ValueTask)\b")
RE_CATEGORY_VALUE = re.compile(r"CategoryTypes(?:\.\w+)*\.(\w+)")
RE_ATTRIBUTE = re.compile(r"^(?P<name>[\w.]+)\s*(?:\((?P<args>.*)\))?$", re.DOTALL)
RE_METHOD_PARAM = re.compile(r"^(?P<type>.+?)\s+(?P<name>@?\w+)\s*(?:=\s*(?P<default>.+))?$", re.DOTALL)
RE_PARAM_MODIFIERS = re.compile(r"^(?:(?:this|params|ref|out|in|scoped)\s+)+")
RE_STRING_LITERAL = re.compile(r'@?"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)\'')
RE_ENUM_MEMBER = re.compile(r"^(?P<name>[A-Za-z_]\w*)\s*(?:=\s*(?P<value>.+))?$", re.DOTALL)

# Lifecycle and disposal members every component inherits; not part of its API.
EXCLUDED_METHODS = frozenset({
    "Dispose", "DisposeAsync", "SetParametersAsync",
    "OnInitialized", "OnInitializedAsync",
    "OnParametersSet", "OnParametersSetAsync",
    "OnAfterRender", "OnAfterRenderAsync",
    "ShouldRender", "BuildRenderTree",
})

# Words that RE_METHOD would otherwise take as a return type
_NOT_A_TYPE = frozenset({"class", "record", "struct", "interface", "enum", "return", "new", "delegate", "event"})


class MemberRole(str, Enum):
    PARAMETER = "parameter"
    CASCADING_PARAMETER = "cascading_parameter"
    EVENT = "event"


@dataclass(frozen=True)
class Attribute:
    name: str
    args: str = ""


# (marker attribute, role) evaluated in order; the first marker present wins.
MARKER_ROLES: tuple[tuple[str, MemberRole], ...] = (
    ("CascadingParameter", MemberRole.CASCADING_PARAMETER),
    ("Parameter", MemberRole.PARAMETER),
)


def classify_member(attributes: Sequence[Attribute], type_text: str) -> Optional[MemberRole]:
    """Decide how a property is exposed, or None when it isn't a parameter at all."""
    names = {a.name for a in attributes}
    for marker, role in MARKER_ROLES:
        if marker not in names:
            continue
        if role is MemberRole.PARAMETER and RE_EVENT_CALLBACK.match(type_text.strip()):
            return MemberRole.EVENT
        return role
    return None


@dataclass
class _Pending:
    docs: list[str] = field(default_factory=list)
    attributes: list[Attribute] = field(default_factory=list)

    def clear(self) -> None:
        self.docs.clear()
        self.attributes.clear()


@dataclass(frozen=True)
class _DocComment:
    summary: Optional[str] = None
    remarks: Optional[str] = None
    params: tuple[tuple[str, str], ...] = ()

    def param(self, name: str) -> Optional[str]:
        for param_name, text in self.params:
            if param_name == name:
                return text
        return None


class DeclarationExtractor(BaseExtractor):

    def extract(self, source: str, file_path: str) -> Optional[DeclarationResult]:
        if not source.strip():
            return None
        try:
            return self._extract_class(source, file_path)
        except (ValueError, IndexError, re.error) as exc:
            logger.debug("Could not parse declaration in %s: %s", file_path, exc)
            return None

    async def extract_enum_file(self, path: Union[str, Path]) -> Optional[EnumDeclarationResult]:
        source = await read_source(path)
        if source is None:
            return None
        return self.extract_enum(source, str(path))

    def extract_enum(self, source: str, file_path: str) -> Optional[EnumDeclarationResult]:
        if not source.strip():
            return None
        try:
            return self._extract_enum(source, file_path)
        except (ValueError, IndexError, re.error) as exc:
            logger.debug("Could not parse enum in %s: %s", file_path, exc)
            return None

    # ------------------------------------------------------------------
    # Class scanning
    # ------------------------------------------------------------------

    def _extract_class(self, source: str, file_path: str) -> Optional[DeclarationResult]:
        raw_lines = source.splitlines()
        code_lines, depths = _prepare_lines(raw_lines)
        namespace = _find_namespace(code_lines)

        pending = _Pending()
        i = 0
        while i < len(raw_lines):
            stripped = raw_lines[i].strip()
            if stripped.startswith("///"):
                pending.docs.append(stripped)
                i += 1
                continue
            code = code_lines[i].strip()
            if not code:
                i += 1
                continue
            code, span = _collect_attributes(code, i, code_lines)
            code = _peel_attributes(code, pending.attributes)
            i += span - 1
            if not code:
                i += 1
                continue
            m = RE_CLASS.match(code)
            if m and "public" in m.group("mods").split():
                return self._read_class(
                    m, i, raw_lines, code_lines, depths, pending, namespace, file_path
                )
            pending.clear()
            i += 1

        logger.debug("No public class found in %s", file_path)
        return None

    def _read_class(
        self,
        match: re.Match,
        start: int,
        raw_lines: list[str],
        code_lines: list[str],
        depths: list[int],
        pending: _Pending,
        namespace: Optional[str],
        file_path: str,
    ) -> DeclarationResult:
        class_doc = _parse_doc_comment(pending.docs)
        class_attrs = {a.name: a for a in pending.attributes}
        pending.clear()

        # The base list may continue on following lines up to the opening brace
        header = match.group("rest")
        j = start
        while "{" not in code_lines[j] and j + 1 < len(code_lines) and j - start < 5:
            j += 1
            header += " " + code_lines[j].strip()
        base_type = _parse_base_type(header.split("{", 1)[0])

        class_depth = depths[start]
        body_depth = class_depth + 1
        result = DeclarationResult(
            class_name=match.group("name"),
            file_path=file_path,
            namespace=namespace,
            summary=class_doc.summary,
            remarks=class_doc.remarks,
            base_type=base_type,
            is_deprecated="Obsolete" in class_attrs,
            is_internal=_is_internal(class_attrs, file_path),
        )

        seen_parameters: set[str] = set()
        i = j + 1
        while i < len(raw_lines):
            depth = depths[i]
            if depth <= class_depth and i > j:
                break
            if depth != body_depth:
                i += 1
                continue

            stripped = raw_lines[i].strip()
            if stripped.startswith("///"):
                pending.docs.append(stripped)
                i += 1
                continue
            code = code_lines[i].strip()
            if not code or code.startswith("#"):
                i += 1
                continue
            if code == "}":
                break
            code, span = _collect_attributes(code, i, code_lines)
            code = _peel_attributes(code, pending.attributes)
            i += span - 1
            if not code:
                i += 1
                continue

            consumed = self._read_member(code, i, code_lines, pending, result, seen_parameters)
            pending.clear()
            i += consumed
        return result

    def _read_member(
        self,
        code: str,
        index: int,
        code_lines: list[str],
        pending: _Pending,
        result: DeclarationResult,
        seen_parameters: set[str],
    ) -> int:
        """Handle one member line; returns how many lines it consumed."""
        prop = RE_PROPERTY.match(code)
        if prop and prop.group("type").split("<", 1)[0] not in _NOT_A_TYPE:
            role = classify_member(pending.attributes, prop.group("type"))
            if role is not None:
                self._add_parameter(prop, role, pending, result, seen_parameters)
            return 1

        method = RE_METHOD.match(code)
        if method and "public" in method.group("mods").split():
            ret = method.group("ret").strip()
            if ret.split("<", 1)[0] in _NOT_A_TYPE:
                return 1
            params_text, consumed = _collect_parenthesized(method.group("rest"), index, code_lines)
            name = method.group("name")
            if name.startswith("_") or name in EXCLUDED_METHODS:
                return consumed
            doc = _parse_doc_comment(pending.docs)
            result.methods.append(MethodDescriptor(
                name=name,
                return_type=ret,
                description=doc.summary,
                parameters=tuple(_parse_method_parameters(params_text, doc)),
                is_async="async" in method.group("mods").split() or bool(RE_ASYNC_RETURN.match(ret)),
            ))
            return consumed
        return 1

    def _add_parameter(
        self,
        prop: re.Match,
        role: MemberRole,
        pending: _Pending,
        result: DeclarationResult,
        seen_parameters: set[str],
    ) -> None:
        name = prop.group("name")
        type_text = _normalize_type(prop.group("type"))
        doc = _parse_doc_comment(pending.docs)

        if role is MemberRole.EVENT:
            callback = RE_EVENT_CALLBACK.match(type_text)
            args_type = callback.group("arg") if callback else None
            result.events.append(EventDescriptor(
                name=name,
                event_args_type=args_type.strip() if args_type else None,
                description=doc.summary,
            ))
            return

        if name in seen_parameters:
            logger.debug("Duplicate parameter %s in %s", name, result.file_path)
            return
        seen_parameters.add(name)

        attrs = {a.name: a for a in pending.attributes}
        tail = prop.group("tail") or ""
        default = RE_PROPERTY_DEFAULT.search(tail) if tail.startswith("{") else None
        category = None
        if "Category" in attrs:
            cat = RE_CATEGORY_VALUE.search(attrs["Category"].args)
            category = cat.group(1) if cat else None

        result.parameters.append(Parameter(
            name=name,
            type=type_text,
            description=doc.summary,
            default_value=default.group("default").strip() if default else None,
            is_required="EditorRequired" in attrs,
            is_cascading=role is MemberRole.CASCADING_PARAMETER,
            category=category,
        ))

    # ------------------------------------------------------------------
    # Enum scanning
    # ------------------------------------------------------------------

    def _extract_enum(self, source: str, file_path: str) -> Optional[EnumDeclarationResult]:
        raw_lines = source.splitlines()
        code_lines, depths = _prepare_lines(raw_lines)

        pending = _Pending()
        start = None
        match = None
        for i, code in enumerate(code_lines):
            stripped = raw_lines[i].strip()
            if stripped.startswith("///"):
                pending.docs.append(stripped)
                continue
            code = _peel_attributes(code.strip(), pending.attributes)
            if not code:
                continue
            match = RE_ENUM.match(code)
            if match and "public" in match.group("mods").split():
                start = i
                break
            pending.clear()
        if start is None or match is None:
            return None

        enum_doc = _parse_doc_comment(pending.docs)
        pending.clear()
        result = EnumDeclarationResult(
            enum_name=match.group("name"),
            file_path=file_path,
            namespace=_find_namespace(code_lines),
            summary=enum_doc.summary,
        )

        enum_depth = depths[start]
        opened = False
        for i in range(start, len(raw_lines)):
            code = code_lines[i]
            if not opened:
                if "{" in code:
                    opened = True
                    code = code.split("{", 1)[1]
                else:
                    continue
            elif depths[i] <= enum_depth:
                break
            stripped = raw_lines[i].strip()
            if stripped.startswith("///"):
                pending.docs.append(stripped)
                continue
            code = _peel_attributes(code.split("}", 1)[0].strip(), pending.attributes)
            if not code:
                continue
            doc = _parse_doc_comment(pending.docs)
            fallback = _description_attribute(pending.attributes)
            for item in split_top_level(code):
                member = RE_ENUM_MEMBER.match(item.strip())
                if not member:
                    continue
                value = member.group("value")
                result.values.append(EnumValue(
                    name=member.group("name"),
                    value=value.strip() if value else None,
                    description=doc.summary or fallback,
                ))
            pending.clear()
            if "}" in code_lines[i] and depths[i] == enum_depth + 1 and code_lines[i].strip().endswith("}"):
                break
        return result


# ----------------------------------------------------------------------
# Line preparation
# ----------------------------------------------------------------------


def _prepare_lines(raw_lines: list[str]) -> tuple[list[str], list[int]]:
    """Strip comments and return (code_lines, brace depth at each line start)."""
    code_lines: list[str] = []
    depths: list[int] = []
    depth = 0
    in_block_comment = False
    for raw in raw_lines:
        line = raw
        if in_block_comment:
            end = line.find("*/")
            if end < 0:
                code_lines.append("")
                depths.append(depth)
                continue
            line = line[end + 2:]
            in_block_comment = False
        line = _strip_line_comment(line)
        while "/*" in line:
            before, _, after = line.partition("/*")
            if "*/" in after:
                line = before + after.split("*/", 1)[1]
            else:
                line = before
                in_block_comment = True
        code_lines.append(line)
        depths.append(depth)
        bare = RE_STRING_LITERAL.sub('""', line)
        depth += bare.count("{") - bare.count("}")
        depth = max(depth, 0)
    return code_lines, depths


def _strip_line_comment(line: str) -> str:
    in_string = False
    prev = ""
    for idx, ch in enumerate(line):
        if ch == '"' and prev != "\\":
            in_string = not in_string
        elif not in_string and ch == "/" and prev == "/":
            return line[: idx - 1]
        prev = ch
    return line


def _find_namespace(code_lines: list[str]) -> Optional[str]:
    for line in code_lines:
        m = RE_NAMESPACE.match(line)
        if m:
            return m.group(1)
    return None


def _collect_attributes(code: str, index: int, code_lines: list[str]) -> tuple[str, int]:
    """Join an attribute list that spans lines; returns (text, lines consumed)."""
    text = code
    consumed = 1
    while text.startswith("[") and index + consumed < len(code_lines) and consumed <= 20:
        bare = RE_STRING_LITERAL.sub('""', text)
        if bare.count("[") <= bare.count("]"):
            break
        text += " " + code_lines[index + consumed].strip()
        consumed += 1
    return text, consumed


def _peel_attributes(code: str, attributes: list[Attribute]) -> str:
    """Move leading [Attr, Attr(..)] groups from *code* into *attributes*."""
    while code.startswith("["):
        depth = 0
        end = -1
        for idx, ch in enumerate(code):
            if ch == "[":
                depth += 1
            elif ch == "]":
                depth -= 1
                if depth == 0:
                    end = idx
                    break
        if end < 0:
            # Attribute continues on the next line; keep what we have
            attributes.extend(_parse_attribute_list(code[1:]))
            return ""
        attributes.extend(_parse_attribute_list(code[1:end]))
        code = code[end + 1:].strip()
    return code


def _parse_attribute_list(text: str) -> list[Attribute]:
    text = re.sub(r"^\s*\w+\s*:\s*(?!:)", "", text)  # target specifiers like "return:"
    attrs: list[Attribute] = []
    for part in split_top_level(text):
        m = RE_ATTRIBUTE.match(part.strip())
        if not m:
            continue
        name = m.group("name").rsplit(".", 1)[-1]
        if name.endswith("Attribute") and name != "Attribute":
            name = name[: -len("Attribute")]
        attrs.append(Attribute(name=name, args=(m.group("args") or "").strip()))
    return attrs


def _is_internal(class_attrs: dict[str, Attribute], file_path: str) -> bool:
    browsable = class_attrs.get("EditorBrowsable")
    if browsable is not None and "Never" in browsable.args:
        return True
    return "Internal" in Path(file_path).parts


def _parse_base_type(header: str) -> Optional[str]:
    header = header.strip()
    if header.startswith("("):
        # Primary constructor parameter list
        header = header[_matching_paren(header) + 1:].strip()
    if not header.startswith(":"):
        return None
    base_list = re.split(r"\bwhere\b", header[1:], maxsplit=1)[0]
    bases = split_top_level(base_list)
    if not bases:
        return None
    return _normalize_type(bases[0].split("(", 1)[0])


def _matching_paren(text: str) -> int:
    depth = 0
    for idx, ch in enumerate(text):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return idx
    return len(text) - 1


def _normalize_type(type_text: str) -> str:
    text = re.sub(r"\s+", " ", type_text.strip())
    text = re.sub(r"\s*<\s*", "<", text)
    text = re.sub(r"\s*>", ">", text)
    return re.sub(r"\s*,\s*", ", ", text)


def _collect_parenthesized(rest: str, index: int, code_lines: list[str]) -> tuple[str, int]:
    """Gather a parameter list that may span lines; returns (text, lines consumed)."""
    text = rest
    consumed = 1
    while True:
        depth = 1
        for pos, ch in enumerate(text):
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    return text[:pos], consumed
        if index + consumed >= len(code_lines) or consumed > 20:
            return text, consumed
        text += " " + code_lines[index + consumed].strip()
        consumed += 1


def _parse_method_parameters(text: str, doc: _DocComment) -> list[MethodParameter]:
    params: list[MethodParameter] = []
    for part in split_top_level(text):
        part = re.sub(r"^\[[^\]]*\]\s*", "", part.strip())
        part = RE_PARAM_MODIFIERS.sub("", part)
        m = RE_METHOD_PARAM.match(part)
        if not m:
            continue
        name = m.group("name").lstrip("@")
        default = m.group("default")
        params.append(MethodParameter(
            name=name,
            type=_normalize_type(m.group("type")),
            description=doc.param(name),
            default_value=default.strip() if default else None,
        ))
    return params


def _description_attribute(attributes: Sequence[Attribute]) -> Optional[str]:
    for attr in attributes:
        if attr.name == "Description":
            m = re.search(r'"([^"]*)"', attr.args)
            if m and m.group(1).strip():
                return m.group(1).strip()
    return None


# ----------------------------------------------------------------------
# XML documentation comments
# ----------------------------------------------------------------------

RE_DOC_PREFIX = re.compile(r"^\s*///\s?")
RE_SEE_CREF = re.compile(r'<(?:see|seealso)\s+cref="(?:\w:)?([^"]+)"\s*/>')
RE_SEE_LANGWORD = re.compile(r'<see\s+langword="([^"]+)"\s*/>')
RE_PARAMREF = re.compile(r'<(?:paramref|typeparamref)\s+name="([^"]+)"\s*/>')
RE_TAG = re.compile(r"</?[^>]+>")


def _parse_doc_comment(doc_lines: Sequence[str]) -> _DocComment:
    if not doc_lines:
        return _DocComment()
    text = "\n".join(RE_DOC_PREFIX.sub("", line) for line in doc_lines)
    params = tuple(
        (m.group(1), cleaned)
        for m in re.finditer(r'<param\s+name="([^"]+)"\s*>(.*?)</param>', text, re.DOTALL)
        if (cleaned := _clean_doc_text(m.group(2)))
    )
    return _DocComment(
        summary=_element(text, "summary"),
        remarks=_element(text, "remarks"),
        params=params,
    )


def _element(text: str, name: str) -> Optional[str]:
    m = re.search(rf"<{name}>(.*?)</{name}>", text, re.DOTALL)
    return _clean_doc_text(m.group(1)) if m else None


def _clean_doc_text(content: str) -> Optional[str]:
    text = RE_SEE_CREF.sub(lambda m: m.group(1).rsplit(".", 1)[-1], content)
    text = RE_SEE_LANGWORD.sub(r"\1", text)
    text = RE_PARAMREF.sub(r"\1", text)
    text = RE_TAG.sub("", text)
    text = html.unescape(re.sub(r"\s+", " ", text)).strip()
    return text or None

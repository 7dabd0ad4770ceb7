"""Data models for the in-memory component documentation index."""

import re
from datetime import datetime
from enum import Enum, IntFlag
from functools import cached_property
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from mudblazor_index.errors import InvalidArgumentError
from mudblazor_index.utils.validators import require_valid_option

LIBRARY_PREFIX = "Mud"
DEFAULT_NAMESPACE = "MudBlazor"
UNCATEGORIZED = "Uncategorized"


def strip_library_prefix(name: str) -> str:
    """'MudButton' -> 'Button'. Names without the prefix are returned unchanged."""
    if name.startswith(LIBRARY_PREFIX) and len(name) > len(LIBRARY_PREFIX):
        return name[len(LIBRARY_PREFIX):]
    return name


def strip_generic_arguments(type_name: str) -> str:
    """'MudBaseInput<T>' -> 'MudBaseInput'."""
    return type_name.split("<", 1)[0].strip()


class SearchFields(IntFlag):
    NAME = 1
    DESCRIPTION = 2
    PARAMETERS = 4
    EXAMPLES = 8
    ALL = NAME | DESCRIPTION | PARAMETERS | EXAMPLES

    @classmethod
    def parse(cls, value: "str | int | SearchFields") -> "SearchFields":
        """Accept a flag, its integer value, or names like "name,description"."""
        if isinstance(value, str):
            result = cls(0)
            for part in re.split(r"[,|\s]+", value.strip()):
                if not part:
                    continue
                name = require_valid_option(part.lower(), [m.lower() for m in cls.__members__], "search field")
                result |= cls[name.upper()]
            value = result
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidArgumentError(f"Invalid search field selector: {value!r}")
        if value <= 0 or value & ~int(cls.ALL):
            raise InvalidArgumentError(f"Invalid search field selector: {int(value)}")
        return cls(value)


class RelationshipKind(str, Enum):
    ALL = "all"
    PARENT = "parent"
    CHILD = "child"
    SIBLING = "sibling"
    COMMONLY_USED_WITH = "commonly_used_with"

    @classmethod
    def parse(cls, value: "str | RelationshipKind") -> "RelationshipKind":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            normalized = re.sub(r"[\s\-]+", "_", value.strip()).lower()
            # Accept PascalCase spellings such as "CommonlyUsedWith"
            if normalized not in cls._value2member_map_:
                normalized = re.sub(r"(?<!^)(?=[A-Z])", "_", value.strip()).lower()
            if normalized in cls._value2member_map_:
                return cls(normalized)
        return cls(require_valid_option(value, [m.value for m in cls], "relationship kind"))


class IndexState(str, Enum):
    NOT_INDEXED = "not_indexed"
    BUILDING = "building"
    INDEXED = "indexed"


class Parameter(BaseModel):
    name: str
    type: str
    description: Optional[str] = None
    default_value: Optional[str] = None
    is_required: bool = False
    is_cascading: bool = False
    category: Optional[str] = None

    class Config:
        frozen = True


class EventDescriptor(BaseModel):
    name: str
    event_args_type: Optional[str] = None
    description: Optional[str] = None

    class Config:
        frozen = True

    @property
    def type(self) -> str:
        if self.event_args_type is None:
            return "EventCallback"
        return f"EventCallback<{self.event_args_type}>"


class MethodParameter(BaseModel):
    name: str
    type: str
    description: Optional[str] = None
    default_value: Optional[str] = None

    class Config:
        frozen = True


class MethodDescriptor(BaseModel):
    name: str
    return_type: str
    description: Optional[str] = None
    parameters: tuple[MethodParameter, ...] = ()
    is_async: bool = False

    class Config:
        frozen = True

    @property
    def signature(self) -> str:
        params = ", ".join(f"{p.type} {p.name}" for p in self.parameters)
        return f"{self.return_type} {self.name}({params})"


class Example(BaseModel):
    """A documentation example; at least one of markup/code is non-empty."""

    name: str
    description: Optional[str] = None
    markup: Optional[str] = None
    code: Optional[str] = None
    source_file: Optional[str] = None
    features: tuple[str, ...] = ()

    class Config:
        frozen = True

    @model_validator(mode="after")
    def _require_content(self) -> "Example":
        if not (self.markup or self.code):
            raise ValueError(f"Example '{self.name}' has neither markup nor code")
        return self

    @property
    def title(self) -> str:
        name = self.name[:-len("Example")] if self.name.endswith("Example") else self.name
        return re.sub(r"(?<!^)(?=[A-Z])", " ", name).strip() or self.name

    @property
    def full_code(self) -> str:
        if not self.code:
            return self.markup or ""
        return f"{self.markup or ''}\n\n@code {{\n{self.code}\n}}".lstrip()


class DocSection(BaseModel):
    heading: str
    body: str = ""
    has_example: bool = False

    class Config:
        frozen = True


class ComponentRecord(BaseModel):
    name: str
    namespace: str = DEFAULT_NAMESPACE
    summary: str = ""
    description: Optional[str] = None
    category: Optional[str] = None
    base_type: Optional[str] = None
    parameters: tuple[Parameter, ...] = ()
    events: tuple[EventDescriptor, ...] = ()
    methods: tuple[MethodDescriptor, ...] = ()
    examples: tuple[Example, ...] = ()
    related_components: tuple[str, ...] = ()
    title: Optional[str] = None
    sections: tuple[DocSection, ...] = ()
    usage_notes: tuple[str, ...] = ()
    is_deprecated: bool = False
    is_internal: bool = False
    documentation_url: Optional[str] = None
    source_url: Optional[str] = None

    class Config:
        frozen = True

    @property
    def display_name(self) -> str:
        return strip_library_prefix(self.name)

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def base_type_name(self) -> Optional[str]:
        """Base type without generic arguments, used to match parents by name."""
        return strip_generic_arguments(self.base_type) if self.base_type else None


class Category(BaseModel):
    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    component_names: tuple[str, ...] = ()

    class Config:
        frozen = True


class ApiMember(BaseModel):
    name: str
    member_type: str  # Property, Event, Method
    return_type: str
    description: Optional[str] = None
    parameter_signature: Optional[str] = None

    class Config:
        frozen = True


class EnumValue(BaseModel):
    name: str
    value: Optional[str] = None
    description: Optional[str] = None

    class Config:
        frozen = True


class ApiReference(BaseModel):
    type_name: str
    namespace: Optional[str] = None
    summary: Optional[str] = None
    base_type: Optional[str] = None
    kind: str = "class"  # class, interface, enum, struct
    members: tuple[ApiMember, ...] = ()
    enum_values: tuple[EnumValue, ...] = ()

    class Config:
        frozen = True

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.type_name}" if self.namespace else self.type_name


class IndexSnapshot(BaseModel):
    """Immutable result of one full build; replaced wholesale by the next build."""

    components: tuple[ComponentRecord, ...] = ()
    categories: tuple[Category, ...] = ()
    api_references: tuple[ApiReference, ...] = ()
    built_at: datetime
    generation: int = 0

    class Config:
        frozen = True

    @cached_property
    def components_by_name(self) -> dict[str, ComponentRecord]:
        return {c.name.lower(): c for c in self.components}

    @cached_property
    def categories_by_name(self) -> dict[str, Category]:
        return {c.name.lower(): c for c in self.categories}

    @cached_property
    def api_references_by_name(self) -> dict[str, ApiReference]:
        return {r.type_name.lower(): r for r in self.api_references}


# ---------------------------------------------------------------------------
# Partial records produced by the extractors
# ---------------------------------------------------------------------------


class DeclarationResult(BaseModel):
    class_name: str
    file_path: str
    namespace: Optional[str] = None
    summary: Optional[str] = None
    remarks: Optional[str] = None
    base_type: Optional[str] = None
    parameters: list[Parameter] = Field(default_factory=list)
    events: list[EventDescriptor] = Field(default_factory=list)
    methods: list[MethodDescriptor] = Field(default_factory=list)
    is_deprecated: bool = False
    is_internal: bool = False


class EnumDeclarationResult(BaseModel):
    enum_name: str
    file_path: str
    namespace: Optional[str] = None
    summary: Optional[str] = None
    values: list[EnumValue] = Field(default_factory=list)


class DocPageResult(BaseModel):
    file_path: str
    component_name: Optional[str] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    sections: list[DocSection] = Field(default_factory=list)
    related_components: list[str] = Field(default_factory=list)
    usage_notes: list[str] = Field(default_factory=list)

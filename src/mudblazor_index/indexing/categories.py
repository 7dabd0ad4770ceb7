"""Category table and mapper.

The table is a curated listing of the library's documentation menu, not
something derived from the source tree. It is built once per build and handed
to a CategoryMapper; nothing here is process-wide state.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from pydantic import BaseModel

from mudblazor_index.indexing.extractors.base import RuleMatcher, TagRule
from mudblazor_index.indexing.models import UNCATEGORIZED, strip_library_prefix
from mudblazor_index.utils.validators import require_non_empty

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "Other"


class CategorySpec(BaseModel):
    name: str
    title: Optional[str] = None
    description: Optional[str] = None
    seed_members: tuple[str, ...] = ()

    class Config:
        frozen = True


def _contains(*words: str) -> str:
    return "|".join(re.escape(w) for w in words)


# Evaluated in order against the lower-cased name without the "Mud" prefix.
DEFAULT_INFERENCE_RULES: tuple[TagRule, ...] = (
    TagRule.of(_contains("button"), "Buttons"),
    TagRule.of(
        _contains("input", "field", "select", "checkbox", "switch", "radio",
                  "slider", "rating", "autocomplete", "form", "mask"),
        "Form Inputs & Controls",
    ),
    TagRule.of(_contains("nav", "drawer", "appbar", "tab", "menu", "breadcrumb", "link"), "Navigation"),
    TagRule.of(_contains("grid", "container", "stack", "spacer", "divider", "expansion", "hidden"), "Layout"),
    TagRule.of(_contains("table", "list", "tree", "chip", "badge", "virtualize", "highlight"), "Data Display"),
    TagRule.of(
        _contains("alert", "snackbar", "progress", "skeleton", "overlay", "dialog",
                  "tooltip", "popover", "message"),
        "Feedback",
    ),
    TagRule.of(_contains("chart", "sparkline"), "Charts"),
    TagRule.of(_contains("picker"), "Pickers"),
    TagRule.of(_contains("card", "paper"), "Cards"),
    TagRule.of(r"^(?!.*field).*text", "Typography"),
    TagRule.of(_contains("icon", "avatar"), "Icons"),
    TagRule.of(_contains("image", "carousel"), "Media"),
)


@dataclass(frozen=True)
class CategoryTable:
    categories: tuple[CategorySpec, ...]
    rules: tuple[TagRule, ...] = DEFAULT_INFERENCE_RULES
    default_category: str = DEFAULT_CATEGORY
    lookup: dict[str, str] = field(init=False, repr=False, compare=False, hash=False)

    def __post_init__(self) -> None:
        lookup: dict[str, str] = {}
        for spec in self.categories:
            for member in spec.seed_members:
                # A component listed under two categories stays with the first
                lookup.setdefault(member.lower(), spec.name)
        object.__setattr__(self, "lookup", lookup)


def _spec(name: str, description: str, *members: str) -> CategorySpec:
    return CategorySpec(name=name, title=name, description=description, seed_members=members)


def default_category_table() -> CategoryTable:
    """The documentation-site menu structure of the component library."""
    return CategoryTable(categories=(
        _spec(
            "Form Inputs & Controls", "Components for user input and form handling",
            "MudAutocomplete", "MudCheckBox", "MudSwitch", "MudTextField", "MudNumericField",
            "MudSelect", "MudSlider", "MudRating", "MudRadio", "MudRadioGroup",
            "MudDatePicker", "MudTimePicker", "MudColorPicker", "MudField",
            "MudInput", "MudInputLabel", "MudFileUpload", "MudForm", "MudMask",
        ),
        _spec(
            "Buttons", "Interactive button components",
            "MudButton", "MudButtonGroup", "MudIconButton", "MudFab", "MudToggleIconButton",
        ),
        _spec(
            "Navigation", "Components for navigation and routing",
            "MudNavMenu", "MudNavGroup", "MudNavLink", "MudBreadcrumbs",
            "MudDrawer", "MudAppBar", "MudTabs", "MudTabPanel", "MudLink",
            "MudMenu", "MudMenuItem", "MudMenuList",
        ),
        _spec(
            "Layout", "Components for page structure and layout",
            "MudContainer", "MudGrid", "MudItem", "MudHidden", "MudBreakpointProvider",
            "MudSpacer", "MudStack", "MudDivider", "MudExpansionPanels", "MudExpansionPanel",
        ),
        _spec(
            "Data Display", "Components for displaying data and content",
            "MudTable", "MudSimpleTable", "MudDataGrid", "MudTreeView", "MudTreeViewItem",
            "MudList", "MudListItem", "MudListSubheader", "MudVirtualize",
            "MudChip", "MudChipSet", "MudBadge", "MudHighlighter",
        ),
        _spec(
            "Feedback", "Components for user feedback and notifications",
            "MudAlert", "MudSnackbar", "MudProgressLinear", "MudProgressCircular",
            "MudSkeleton", "MudOverlay", "MudDialog", "MudDialogInstance", "MudDialogProvider",
            "MudMessageBox", "MudTooltip", "MudPopover",
        ),
        _spec(
            "Charts", "Data visualization components",
            "MudChart", "MudTimeSeriesChart", "MudSparkLine",
            "MudBarChart", "MudLineChart", "MudPieChart", "MudDonutChart",
        ),
        _spec(
            "Pickers", "Selection and picker components",
            "MudDatePicker", "MudTimePicker", "MudDateRangePicker", "MudColorPicker",
        ),
        _spec(
            "Cards", "Card-based layout components",
            "MudCard", "MudCardActions", "MudCardContent", "MudCardHeader", "MudCardMedia",
            "MudPaper",
        ),
        _spec("Typography", "Text and typography components", "MudText", "MudLink"),
        _spec("Icons", "Icon display components", "MudIcon", "MudAvatar", "MudAvatarGroup"),
        _spec("Media", "Media display components", "MudImage", "MudCarousel", "MudCarouselItem"),
        _spec(
            "Utilities", "Utility components and helpers",
            "MudElement", "MudRender", "MudRTLProvider", "MudPopoverProvider",
            "MudScrollToTop", "MudFocusTrap", "MudSwipeArea",
        ),
        _spec(
            "Services", "Injectable library services",
            "ISnackbar", "IDialogService", "IScrollManager", "IBreakpointService",
            "IJsApiService", "IKeyInterceptor", "IScrollListener", "IScrollSpy",
            "IResizeObserver", "IResizeService",
        ),
    ))


def category_table_from_specs(
    specs: Iterable[CategorySpec], default_category: str = DEFAULT_CATEGORY
) -> CategoryTable:
    return CategoryTable(categories=tuple(specs), default_category=default_category)


class CategoryMapper:
    """Assigns every component name to exactly one category."""

    def __init__(self, table: Optional[CategoryTable] = None) -> None:
        self._table = table or default_category_table()
        self._matcher = RuleMatcher(self._table.rules)
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def default_category(self) -> str:
        return self._table.default_category

    def initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        logger.info("Category mapper initialized with %d categories", len(self._table.categories))

    def get_category_name(self, component_name: str) -> Optional[str]:
        """Category listing *component_name* in the table, or None."""
        self._require_initialized()
        name = require_non_empty(component_name, "component_name")
        return self._table.lookup.get(name.lower())

    def infer_category_from_name(self, component_name: str) -> str:
        self._require_initialized()
        name = require_non_empty(component_name, "component_name")
        return self._matcher.match_first(strip_library_prefix(name).lower()) or self._table.default_category

    def resolve(self, component_name: str) -> str:
        """Table lookup first, then name inference; never None."""
        return (
            self.get_category_name(component_name)
            or self.infer_category_from_name(component_name)
            or UNCATEGORIZED
        )

    def get_categories(self) -> tuple[CategorySpec, ...]:
        self._require_initialized()
        return self._table.categories

    def get_components_in_category(self, category_name: str) -> tuple[str, ...]:
        self._require_initialized()
        wanted = require_non_empty(category_name, "category_name").lower()
        for spec in self._table.categories:
            if spec.name.lower() == wanted or (spec.title or "").lower() == wanted:
                return spec.seed_members
        return ()

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("CategoryMapper.initialize() must be called before lookups")

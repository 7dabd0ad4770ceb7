"""Query functions over a published IndexSnapshot.

Everything here is pure and synchronous: a snapshot never changes once
published, so no locking or I/O is involved.
"""

import logging
from typing import Iterable, Optional

from mudblazor_index.indexing.models import (
    LIBRARY_PREFIX,
    ApiReference,
    ComponentRecord,
    IndexSnapshot,
    RelationshipKind,
    SearchFields,
    strip_generic_arguments,
)

logger = logging.getLogger(__name__)


def find_component(snapshot: IndexSnapshot, name: str) -> Optional[ComponentRecord]:
    """Exact case-insensitive match, then the name with or without the "Mud" prefix."""
    key = name.strip().lower()
    prefix = LIBRARY_PREFIX.lower()
    by_name = snapshot.components_by_name
    found = by_name.get(key)
    if found is None and not key.startswith(prefix):
        found = by_name.get(prefix + key)
    if found is None and key.startswith(prefix):
        found = by_name.get(key[len(prefix):])
    return found


def find_api_reference(snapshot: IndexSnapshot, type_name: str) -> Optional[ApiReference]:
    key = strip_generic_arguments(type_name).lower()
    key = key.rsplit(".", 1)[-1]
    prefix = LIBRARY_PREFIX.lower()
    by_name = snapshot.api_references_by_name
    return by_name.get(key) or (by_name.get(prefix + key) if not key.startswith(prefix) else None)


def search(
    snapshot: IndexSnapshot, query: str, fields: SearchFields, max_results: int
) -> list[ComponentRecord]:
    needle = query.strip().lower()
    results: list[ComponentRecord] = []
    for component in snapshot.components:
        if _matches(component, needle, fields):
            results.append(component)
            if len(results) >= max_results:
                break
    return results


def _matches(component: ComponentRecord, needle: str, fields: SearchFields) -> bool:
    if fields & SearchFields.NAME and needle in component.name.lower():
        return True
    if fields & SearchFields.DESCRIPTION and _any_contains(
        needle, (component.summary, component.description)
    ):
        return True
    if fields & SearchFields.PARAMETERS and any(
        _any_contains(needle, (p.name, p.description)) for p in component.parameters
    ):
        return True
    if fields & SearchFields.EXAMPLES and any(
        _any_contains(needle, (e.name, e.description, e.code, e.markup)) for e in component.examples
    ):
        return True
    return False


def _any_contains(needle: str, values: Iterable[Optional[str]]) -> bool:
    return any(v and needle in v.lower() for v in values)


def get_by_category(snapshot: IndexSnapshot, category_name: str) -> list[ComponentRecord]:
    wanted = category_name.strip().lower()
    return [c for c in snapshot.components if c.category and c.category.lower() == wanted]


def get_related(
    snapshot: IndexSnapshot, component: ComponentRecord, kind: RelationshipKind
) -> list[ComponentRecord]:
    """Derive relationships for *component*.

    Parent and children come from base types, siblings from the category, and
    "commonly used with" from the documentation page links. A component placed
    in an earlier group is never listed again in a later one.
    """
    own = component.name.lower()

    parent = None
    if component.base_type_name:
        candidate = snapshot.components_by_name.get(component.base_type_name.lower())
        if candidate is not None and candidate.name.lower() != own:
            parent = candidate

    children = [
        c for c in snapshot.components
        if c.base_type_name and c.base_type_name.lower() == own and c.name.lower() != own
    ]

    excluded = {own}
    if parent is not None:
        excluded.add(parent.name.lower())
    excluded.update(c.name.lower() for c in children)

    siblings = []
    if kind in (RelationshipKind.SIBLING, RelationshipKind.COMMONLY_USED_WITH, RelationshipKind.ALL):
        siblings = [
            c for c in snapshot.components
            if component.category
            and c.category == component.category
            and c.name.lower() not in excluded
        ]

    if kind is RelationshipKind.PARENT:
        return [parent] if parent is not None else []
    if kind is RelationshipKind.CHILD:
        return children
    if kind is RelationshipKind.SIBLING:
        return siblings

    excluded.update(c.name.lower() for c in siblings)
    commonly_used = []
    for related_name in component.related_components:
        related = find_component(snapshot, related_name)
        if related is None or related.name.lower() in excluded:
            continue
        excluded.add(related.name.lower())
        commonly_used.append(related)

    if kind is RelationshipKind.COMMONLY_USED_WITH:
        return commonly_used
    return ([parent] if parent is not None else []) + children + siblings + commonly_used

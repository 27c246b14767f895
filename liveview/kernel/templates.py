"""
LiveView Kernel -- Template Table

A diff may ship a template table under "p" and reference its entries by
index from any "s" inside the same diff, instead of resending identical
fragment arrays. The table lives for one message only.

Pure functions. Inputs are never mutated.
"""

from __future__ import annotations

from typing import Any

from liveview.kernel.types import COMPONENTS, STATIC, TEMPLATES, is_reference


def template_fragments(templates: Any, index: int) -> list[str] | None:
    """
    Look up one entry of a template table.

    Tables arrive either as a JSON array or as an object keyed by the stringified
    index. Returns None when the index is absent or the entry is not a fragment array.
    """
    entry: Any = None
    if isinstance(templates, list):
        if 0 <= index < len(templates):
            entry = templates[index]
    elif isinstance(templates, dict):
        entry = templates.get(str(index), templates.get(index))

    if isinstance(entry, list):
        return ["" if fragment is None else str(fragment) for fragment in entry]
    if isinstance(entry, str):
        return [entry]
    return None


def resolve_templates(fragment: Any, templates: Any = None) -> Any:
    """
    Substitute every integer "s" inside fragment with its template table entry.

    - A "p" found on a nested object becomes the active table for that subtree.
    - Indices missing from the table resolve to an empty fragment array.
    - Without any table in scope, integer statics are left alone; they may be
      component references resolved later by the registry or the resolver.
    - The component table is not descended into here. A component's own "s"
      integer names another component; ComponentRegistry.upsert_many applies
      the message table to the rest of each entry.
    """
    if isinstance(fragment, list):
        return [resolve_templates(item, templates) for item in fragment]
    if not isinstance(fragment, dict):
        return fragment

    if TEMPLATES in fragment:
        nested = fragment[TEMPLATES]
        rest = {key: value for key, value in fragment.items() if key != TEMPLATES}
        return resolve_templates(rest, nested)

    resolved: dict[Any, Any] = {}
    for key, value in fragment.items():
        if key == COMPONENTS:
            resolved[key] = value
        elif key == STATIC:
            if templates is not None and is_reference(value):
                resolved[key] = template_fragments(templates, value) or []
            else:
                resolved[key] = value
        else:
            resolved[key] = resolve_templates(value, templates)
    return resolved

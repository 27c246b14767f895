"""
LiveView Kernel -- Diff Merge Engine

Pure function: (node, diff) → node
No IO. Never raises on malformed input; problems are appended to `warnings`.

Rules, first match wins:
1. The diff carries a template table ("p") → substitute it, then continue.
2. The diff carries statics ("s") → it replaces the target outright.
3. The diff carries keyed entries ("k") → keyed reconciliation.
   A legacy "d" list replaces every entry of the comprehension.
4. Otherwise merge key by key. Keys absent from the diff are left untouched.

Merges are copy-on-write: the target is never mutated, unchanged subtrees are
shared with the result. Component registry entries rely on this to inherit
subtrees from each other safely.
"""

from __future__ import annotations

import copy
from typing import Any

from liveview.kernel.templates import resolve_templates
from liveview.kernel.tree import (
    parse_entry,
    parse_legacy_comprehension,
    parse_node,
    parse_statics,
)
from liveview.kernel.types import (
    DYNAMICS,
    KEYED,
    KEYED_COUNT,
    METADATA_KEYS,
    STATIC,
    TEMPLATES,
    Composite,
    Comprehension,
    Node,
    Opaque,
    Warning,
    add_warning,
    is_reference,
    slot_index,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def merge(target: Node | None, source: Any, warnings: list[Warning] | None = None) -> Node:
    """
    Apply one diff fragment to a render node and return the resulting node.
    The input node is never modified.
    """
    if isinstance(source, dict) and TEMPLATES in source:
        source = resolve_templates(source)

    if not isinstance(source, dict):
        return parse_node(source, warnings)

    if STATIC in source:
        if KEYED in source:
            fresh = Comprehension(statics=parse_statics(source[STATIC]))
            return reconcile(fresh, source[KEYED], warnings)
        return parse_node(source, warnings)

    if KEYED in source:
        base = target if isinstance(target, Comprehension) else Comprehension()
        return reconcile(base, source[KEYED], warnings)

    if isinstance(source.get(DYNAMICS), list):
        inherited = target.statics if isinstance(target, (Composite, Comprehension)) else None
        return parse_legacy_comprehension(source, inherited, warnings)

    if target is not None and all(key in METADATA_KEYS for key in source):
        return target

    if isinstance(target, Composite):
        return Composite(
            statics=target.statics,
            dynamics=merge_dynamics(target.dynamics, source, warnings),
        )

    if isinstance(target, Opaque):
        fields = dict(target.fields)
        for key, value in source.items():
            if key in METADATA_KEYS:
                continue
            fields[str(key)] = merge(fields.get(str(key)), value, warnings)
        return Opaque(fields)

    return parse_node(source, warnings)


def merge_dynamics(
    dynamics: dict[int, Node],
    source: dict[Any, Any],
    warnings: list[Warning] | None = None,
) -> dict[int, Node]:
    """Merge the numeric slots of a diff into a copy of a dynamics map."""
    merged = dict(dynamics)
    for key, value in source.items():
        index = slot_index(key)
        if index is None:
            continue
        merged[index] = merge(dynamics.get(index), value, warnings)
    return merged


def reconcile(base: Comprehension, keyed: Any, warnings: list[Warning] | None = None) -> Comprehension:
    """
    Keyed reconciliation of a comprehension against a "k" object.

    Descriptors, per position:
      {}              static-only entry (shared statics, no per-item data)
      [old, diff]     entry moved from `old`, then `diff` merged onto it
      old             entry moved from `old` verbatim
      {...}           diff merged onto the entry currently at this position

    Moves read from a deep clone of the entries as they were before this call,
    so the order in which positions are visited never matters.
    """
    if not isinstance(keyed, dict):
        add_warning(warnings, "MALFORMED_KEYED", "keyed entries are not an object", {"value": keyed})
        return base

    result = Comprehension(statics=base.statics, entries=dict(base.entries), count=base.count)
    prior = copy.deepcopy(base.entries)

    for key, descriptor in keyed.items():
        if key == KEYED_COUNT:
            continue
        position = slot_index(key)
        if position is None:
            add_warning(warnings, "MALFORMED_KEYED", f"non-numeric keyed position {key!r}")
            continue
        entry = _reconcile_entry(position, descriptor, result.entries.get(position), prior, warnings)
        if entry is not None:
            result.entries[position] = entry

    if KEYED_COUNT in keyed:
        count = keyed[KEYED_COUNT]
        if is_reference(count) and count >= 0:
            result.count = count
        else:
            add_warning(warnings, "MALFORMED_KEYED", "keyed count is not a non-negative integer", {"value": count})

    return result


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _reconcile_entry(
    position: int,
    descriptor: Any,
    current: Composite | None,
    prior: dict[int, Composite],
    warnings: list[Warning] | None,
) -> Composite | None:
    """Resolve one keyed descriptor. None means: skip, leave the position as it is."""
    if isinstance(descriptor, dict):
        if not descriptor:
            return Composite()
        return _merge_entry(current, descriptor, warnings)

    if isinstance(descriptor, list):
        if len(descriptor) != 2 or not is_reference(descriptor[0]):
            add_warning(warnings, "MALFORMED_ENTRY", f"bad move descriptor at position {position}", {"descriptor": descriptor})
            return None
        old, diff = descriptor
        moved = prior.get(old)
        if moved is None:
            add_warning(warnings, "UNRESOLVED_MOVE", f"position {position} moves from missing position {old}")
            return None
        if not isinstance(diff, dict):
            add_warning(warnings, "MALFORMED_ENTRY", f"move diff at position {position} is not an object")
            return moved
        return _merge_entry(moved, diff, warnings)

    if is_reference(descriptor):
        moved = prior.get(descriptor)
        if moved is None:
            add_warning(warnings, "UNRESOLVED_MOVE", f"position {position} moves from missing position {descriptor}")
        return moved

    add_warning(warnings, "MALFORMED_ENTRY", f"unexpected descriptor at position {position}", {"descriptor": descriptor})
    return None


def _merge_entry(entry: Composite | None, diff: dict[Any, Any], warnings: list[Warning] | None) -> Composite:
    if entry is None or STATIC in diff:
        return parse_entry(diff, warnings)
    return Composite(statics=entry.statics, dynamics=merge_dynamics(entry.dynamics, diff, warnings))

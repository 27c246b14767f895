"""
LiveView Kernel -- Wire Tree Conversion

parse_node: decoded JSON (as sent by the server) -> typed render node
to_wire:    typed render node -> JSON-shaped value (inspection, debugging, tests)

Classification of a JSON object, first match wins:
  has "k"                      → Comprehension (keyed, LiveView 1.1)
  has "d" holding a list       → Comprehension (legacy, LiveView 1.0)
  has "s" or any numeric key   → Composite
  anything else                → Opaque
"""

from __future__ import annotations

from typing import Any

from liveview.kernel.templates import resolve_templates
from liveview.kernel.types import (
    DYNAMICS,
    KEYED,
    KEYED_COUNT,
    METADATA_KEYS,
    STATIC,
    TEMPLATES,
    Composite,
    ComponentRef,
    Comprehension,
    Literal,
    Node,
    Opaque,
    Statics,
    TemplateRef,
    Warning,
    add_warning,
    is_reference,
    slot_index,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse_node(value: Any, warnings: list[Warning] | None = None) -> Node:
    """
    Build a render node from a decoded JSON value.
    Never raises: unknown shapes become Opaque or Literal nodes.
    """
    if isinstance(value, str):
        return Literal(value)
    if value is None:
        return Literal("")
    if isinstance(value, bool):
        return Literal("true" if value else "false")
    if isinstance(value, int):
        return TemplateRef(value)
    if isinstance(value, float):
        return Literal(_format_number(value))
    if isinstance(value, list):
        return Opaque({str(i): parse_node(item, warnings) for i, item in enumerate(value)})
    if isinstance(value, dict):
        return _parse_mapping(value, warnings)
    return Literal(str(value))


def parse_statics(value: Any) -> Statics | None:
    """Normalize an "s" value. Fragment arrays are copied so the tree never aliases a message."""
    if value is None:
        return None
    if isinstance(value, list):
        return ["" if fragment is None else str(fragment) for fragment in value]
    if isinstance(value, str) or is_reference(value):
        return value
    return []


def parse_dynamics(mapping: dict[Any, Any], warnings: list[Warning] | None = None) -> dict[int, Node]:
    """Collect the numeric slots of a JSON object as typed nodes."""
    dynamics: dict[int, Node] = {}
    for key, value in mapping.items():
        index = slot_index(key)
        if index is not None:
            dynamics[index] = parse_node(value, warnings)
    return dynamics


def parse_entry(descriptor: dict[Any, Any], warnings: list[Warning] | None = None) -> Composite:
    """A keyed entry: per-item dynamics, plus statics only when the entry carries its own."""
    statics = parse_statics(descriptor.get(STATIC)) if STATIC in descriptor else None
    return Composite(statics=statics, dynamics=parse_dynamics(descriptor, warnings))


def to_wire(node: Node | None) -> Any:
    """Convert a render node back to its JSON-shaped form."""
    if node is None:
        return None
    if isinstance(node, Literal):
        return node.text
    if isinstance(node, TemplateRef):
        return node.index
    if isinstance(node, ComponentRef):
        return node.cid
    if isinstance(node, Composite):
        wire: dict[str, Any] = {str(i): to_wire(child) for i, child in sorted(node.dynamics.items())}
        if node.statics is not None:
            wire[STATIC] = _statics_to_wire(node.statics)
        return wire
    if isinstance(node, Comprehension):
        keyed: dict[str, Any] = {str(pos): to_wire(entry) for pos, entry in sorted(node.entries.items())}
        keyed[KEYED_COUNT] = node.count
        wire = {KEYED: keyed}
        if node.statics is not None:
            wire[STATIC] = _statics_to_wire(node.statics)
        return wire
    if isinstance(node, Opaque):
        return {key: to_wire(child) for key, child in node.fields.items()}
    return None


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _parse_mapping(mapping: dict[Any, Any], warnings: list[Warning] | None) -> Node:
    if TEMPLATES in mapping:
        mapping = resolve_templates(mapping)
    if KEYED in mapping:
        return _parse_keyed(mapping, warnings)
    if isinstance(mapping.get(DYNAMICS), list):
        return parse_legacy_comprehension(mapping, None, warnings)
    if STATIC in mapping or any(slot_index(key) is not None for key in mapping):
        return Composite(
            statics=parse_statics(mapping.get(STATIC)),
            dynamics=parse_dynamics(mapping, warnings),
        )
    return Opaque(
        {str(key): parse_node(value, warnings) for key, value in mapping.items() if key not in METADATA_KEYS}
    )


def _parse_keyed(mapping: dict[Any, Any], warnings: list[Warning] | None) -> Comprehension:
    """
    A keyed comprehension rendered from scratch. Only object descriptors can
    be honored; move descriptors have no prior list to move from.
    """
    node = Comprehension(statics=parse_statics(mapping.get(STATIC)))
    keyed = mapping[KEYED]
    if not isinstance(keyed, dict):
        add_warning(warnings, "MALFORMED_KEYED", "keyed entries are not an object", {"value": keyed})
        return node

    for key, descriptor in keyed.items():
        if key == KEYED_COUNT:
            continue
        position = slot_index(key)
        if position is None:
            add_warning(warnings, "MALFORMED_KEYED", f"non-numeric keyed position {key!r}")
            continue
        if isinstance(descriptor, dict):
            node.entries[position] = parse_entry(descriptor, warnings)
        else:
            add_warning(
                warnings,
                "UNRESOLVED_MOVE",
                f"move descriptor at position {position} has no prior list",
                {"descriptor": descriptor},
            )

    count = keyed.get(KEYED_COUNT, 0)
    node.count = count if is_reference(count) and count >= 0 else 0
    return node


def parse_legacy_comprehension(
    mapping: dict[Any, Any],
    inherited_statics: Statics | None,
    warnings: list[Warning] | None = None,
) -> Comprehension:
    """
    LiveView 1.0 comprehension: {"s": [...], "d": [[dyn0, dyn1], [], ...]}.
    The whole "d" list is authoritative; statics fall back to inherited_statics.
    """
    statics = parse_statics(mapping.get(STATIC)) if STATIC in mapping else inherited_statics
    node = Comprehension(statics=statics, count=len(mapping[DYNAMICS]))
    for position, item in enumerate(mapping[DYNAMICS]):
        if isinstance(item, list):
            node.entries[position] = Composite(
                statics=None,
                dynamics={i: parse_node(value, warnings) for i, value in enumerate(item)},
            )
        elif isinstance(item, dict):
            node.entries[position] = parse_entry(item, warnings)
        else:
            add_warning(warnings, "MALFORMED_ENTRY", f"legacy entry at position {position} is not a list")
    return node


def _statics_to_wire(statics: Statics) -> Any:
    return list(statics) if isinstance(statics, list) else statics


def _format_number(value: float) -> str:
    # JSON numbers render the way a browser prints them: 3.0 -> "3"
    return str(int(value)) if value.is_integer() else repr(value)

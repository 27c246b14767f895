"""
LiveView Kernel -- Resolver / Interleaver

Pure function: (node, components, templates?) → markup string
No IO. Deterministic: same input → same output, always.

Interleaving: statics [f0, f1, ..., fn] with dynamics {0: d0, 1: d1, ...}
render as f0 d0 f1 d1 ... fn. Unresolvable references render as "".
"""

from __future__ import annotations

from dataclasses import dataclass, field

from liveview.kernel.components import ComponentRegistry
from liveview.kernel.templates import template_fragments
from liveview.kernel.types import (
    MAX_REFERENCE_DEPTH,
    METADATA_KEYS,
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


@dataclass
class RenderContext:
    """Everything a render pass reads besides the node itself."""

    components: ComponentRegistry = field(default_factory=ComponentRegistry)
    templates: list | dict | None = None
    warnings: list[Warning] | None = None
    max_reference_depth: int = MAX_REFERENCE_DEPTH
    # Per-pass memo of chained statics lookups and the components currently being rendered.
    statics_cache: dict[int, Statics | None] = field(default_factory=dict)
    active: list[int] = field(default_factory=list)


def render(
    node: Node | None,
    components: ComponentRegistry | None = None,
    templates: list | dict | None = None,
    *,
    warnings: list[Warning] | None = None,
    max_reference_depth: int = MAX_REFERENCE_DEPTH,
) -> str:
    """
    Render a node to markup.
    Pure function. Never raises for unresolved references.
    """
    ctx = RenderContext(
        components=components if components is not None else ComponentRegistry(),
        templates=templates,
        warnings=warnings,
        max_reference_depth=max_reference_depth,
    )
    return render_node(node, ctx)


def render_node(node: Node | None, ctx: RenderContext) -> str:
    if node is None:
        return ""
    if isinstance(node, Literal):
        return node.text
    if isinstance(node, TemplateRef):
        return _render_template_ref(node.index, ctx)
    if isinstance(node, ComponentRef):
        return render_component(node.cid, ctx)
    if isinstance(node, Composite):
        return _render_composite(node.statics, node, ctx)
    if isinstance(node, Comprehension):
        return _render_comprehension(node, ctx)
    if isinstance(node, Opaque):
        return "".join(render_node(node.fields[key], ctx) for key in _ordered_keys(node.fields))
    return ""


def render_component(cid: int, ctx: RenderContext) -> str:
    """Render a registry entry. Missing entries and render cycles produce ""."""
    key = abs(cid)
    entry = ctx.components.get(key)
    if entry is None:
        add_warning(ctx.warnings, "UNRESOLVED_COMPONENT", f"component {key} is not registered")
        return ""
    if key in ctx.active or len(ctx.active) >= ctx.max_reference_depth:
        add_warning(ctx.warnings, "COMPONENT_CYCLE", f"component {key} renders itself")
        return ""
    ctx.active.append(key)
    try:
        return render_node(entry, ctx)
    finally:
        ctx.active.pop()


def interleave(fragments: list[str], dynamics: dict[int, Node], ctx: RenderContext) -> str:
    """f0 d0 f1 d1 ... fn. The last fragment has no trailing dynamic; missing slots render as ""."""
    if not fragments:
        return ""
    parts = [fragments[0]]
    for i, fragment in enumerate(fragments[1:]):
        dynamic = dynamics.get(i)
        if dynamic is not None:
            parts.append(render_node(dynamic, ctx))
        parts.append(fragment)
    return "".join(parts)


def resolve_statics(statics: Statics | None, ctx: RenderContext) -> list[str] | str | None:
    """
    Turn a statics value into concrete fragments.
    Integers resolve through the active template table, then the component chain.
    """
    if not is_reference(statics):
        return statics
    if ctx.templates is not None:
        fragments = template_fragments(ctx.templates, statics)
        if fragments is not None:
            return fragments
    resolved = ctx.components.statics_for(statics, ctx.statics_cache)
    if resolved is None:
        add_warning(ctx.warnings, "UNRESOLVED_STATICS", f"statics reference {statics} does not resolve")
    return resolved


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _render_template_ref(index: int, ctx: RenderContext) -> str:
    if ctx.templates is not None:
        fragments = template_fragments(ctx.templates, index)
        if fragments is not None:
            return "".join(fragments)
    return render_component(index, ctx)


def _render_composite(statics: Statics | None, node: Composite, ctx: RenderContext) -> str:
    if statics is None:
        # No template at all: the dynamics are all there is.
        return "".join(render_node(node.dynamics[i], ctx) for i in sorted(node.dynamics))
    fragments = resolve_statics(statics, ctx)
    if fragments is None:
        return ""
    if isinstance(fragments, str):
        return fragments
    return interleave(fragments, node.dynamics, ctx)


def _render_comprehension(node: Comprehension, ctx: RenderContext) -> str:
    parts: list[str] = []
    for position in range(node.count):
        entry = node.entries.get(position)
        if entry is None:
            continue
        statics = entry.statics if entry.statics is not None else node.statics
        if statics is None:
            add_warning(ctx.warnings, "MISSING_STATICS", f"comprehension entry {position} has no statics")
            continue
        parts.append(_render_composite(statics, entry, ctx))
    return "".join(parts)


def _ordered_keys(fields: dict[str, Node]) -> list[str]:
    """Numeric keys in numeric order first, then the rest lexically. Metadata keys are skipped."""
    numeric = sorted((key for key in fields if slot_index(key) is not None), key=int)
    named = sorted(key for key in fields if slot_index(key) is None and key not in METADATA_KEYS)
    return numeric + named

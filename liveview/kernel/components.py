"""
LiveView Kernel -- Component Registry

Components are independently addressable subtrees keyed by a small integer id
(cid). The server ships a component table under "c"; each entry is either a
full render, a partial diff against the component's previous render, or a
diff expressed against another component's template:

  {"s": [...], ...}   full render, stored verbatim
  {"0": ...}          merged onto this component's previous entry
  {"s": 3, ...}       template shared with component 3 of this same table
                      (or of the registry when the table does not carry it)
  {"s": -3, ...}      template shared with component 3 as it was before
                      this table was applied

Entries are never deleted.
"""

from __future__ import annotations

import dataclasses
from typing import Any

from liveview.kernel.merge import merge
from liveview.kernel.templates import resolve_templates
from liveview.kernel.tree import parse_node
from liveview.kernel.types import (
    MAX_REFERENCE_DEPTH,
    STATIC,
    Composite,
    Comprehension,
    Node,
    Statics,
    Warning,
    add_warning,
    is_reference,
)


class ComponentRegistry:
    """Persistent cid → render node table, updated one component table at a time."""

    def __init__(
        self,
        entries: dict[int, Node] | None = None,
        *,
        max_reference_depth: int = MAX_REFERENCE_DEPTH,
    ) -> None:
        self.entries: dict[int, Node] = entries if entries is not None else {}
        self.max_reference_depth = max_reference_depth

    def __contains__(self, cid: object) -> bool:
        return cid in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, cid: int) -> Node | None:
        """The stored node, or None when the cid was never set."""
        return self.entries.get(cid)

    def upsert(
        self,
        cid: int,
        diff: dict[str, Any],
        warnings: list[Warning] | None = None,
        *,
        templates: Any = None,
    ) -> Node | None:
        """Apply a single component diff. Same rules as one entry of a component table."""
        return self.upsert_many({cid: diff}, warnings, templates=templates).get(cid)

    def upsert_many(
        self,
        table: Any,
        warnings: list[Warning] | None = None,
        *,
        templates: Any = None,
    ) -> dict[int, Node]:
        """
        Apply a whole component table as one pass.

        Every entry of the table is resolved against the same pre-pass snapshot,
        with a per-pass lookup cache so shared templates resolve once and
        self-references terminate. Returns the resolved entries.

        `templates` is the message's template table. It resolves integer statics
        nested inside each entry; an entry's own "s" stays a component id, and
        an entry's own "p" takes over for that entry.
        """
        if not isinstance(table, dict):
            add_warning(warnings, "MALFORMED_COMPONENTS", "component table is not an object", {"value": table})
            return {}

        pending: dict[int, dict[str, Any]] = {}
        for key, cdiff in table.items():
            cid = _parse_cid(key)
            if cid is None or not isinstance(cdiff, dict):
                add_warning(warnings, "MALFORMED_COMPONENT", f"skipping component entry {key!r}")
                continue
            pending[cid] = cdiff

        previous = dict(self.entries)
        cache: dict[int, Node] = {}
        for cid in pending:
            self._find(cid, pending, previous, cache, set(), warnings, templates)

        resolved = {cid: cache[cid] for cid in pending if cid in cache}
        self.entries.update(resolved)
        return resolved

    def statics_for(self, ref: int, cache: dict[int, Statics | None] | None = None) -> Statics | None:
        """
        Follow a chain of integer statics through the registry until a fragment
        array (or string) is found. Negative refs address the same cid.

        Returns None for dead ends and cycles. Results are memoized in `cache`
        for every cid on the chain.
        """
        if cache is None:
            cache = {}
        chain: list[int] = []
        current: Any = ref
        result: Statics | None = None

        while is_reference(current):
            cid = abs(current)
            if cid in cache:
                result = cache[cid]
                break
            if cid in chain or len(chain) >= self.max_reference_depth:
                break
            chain.append(cid)
            node = self.entries.get(cid)
            current = node.statics if isinstance(node, (Composite, Comprehension)) else None
        else:
            result = current

        for cid in chain:
            cache[cid] = result
        return result

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    def _find(
        self,
        cid: int,
        pending: dict[int, dict[str, Any]],
        previous: dict[int, Node],
        cache: dict[int, Node],
        visiting: set[int],
        warnings: list[Warning] | None,
        templates: Any = None,
    ) -> Node | None:
        if cid in cache:
            return cache[cid]
        if cid in visiting or len(visiting) >= self.max_reference_depth:
            add_warning(warnings, "COMPONENT_CYCLE", f"component {cid} references itself through its template chain")
            return None

        visiting.add(cid)
        cdiff = pending[cid]
        statics = cdiff.get(STATIC)
        body = resolve_templates({key: value for key, value in cdiff.items() if key != STATIC}, templates)

        if is_reference(statics):
            base = self._base(statics, pending, previous, cache, visiting, warnings, templates)
            if base is None:
                add_warning(warnings, "UNRESOLVED_COMPONENT", f"component {cid} shares template of unknown component {statics}")
                node = parse_node({**body, STATIC: statics}, warnings)
            else:
                node = _inherit_statics(merge(base, body, warnings), base)
        elif STATIC in cdiff or cid not in previous:
            node = parse_node({**body, STATIC: statics} if STATIC in cdiff else body, warnings)
        else:
            node = merge(previous[cid], body, warnings)

        visiting.discard(cid)
        cache[cid] = node
        return node

    def _base(
        self,
        ref: int,
        pending: dict[int, dict[str, Any]],
        previous: dict[int, Node],
        cache: dict[int, Node],
        visiting: set[int],
        warnings: list[Warning] | None,
        templates: Any = None,
    ) -> Node | None:
        if ref < 0:
            return previous.get(-ref)
        if ref in pending:
            return self._find(ref, pending, previous, cache, visiting, warnings, templates)
        return previous.get(ref)


def _parse_cid(key: Any) -> int | None:
    if is_reference(key):
        return key
    if isinstance(key, str):
        try:
            return int(key)
        except ValueError:
            return None
    return None


def _inherit_statics(node: Node, base: Node) -> Node:
    """The merged node keeps the template it was derived from."""
    if isinstance(node, (Composite, Comprehension)) and isinstance(base, (Composite, Comprehension)):
        return dataclasses.replace(node, statics=base.statics)
    return node

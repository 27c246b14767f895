"""
LiveView Kernel -- Rendered

Owns the state of one LiveView connection: render tree, component registry,
document shell, server-pushed events, last reply. Drives one cycle per
message: consume metadata → upsert components → merge → render → splice.

Single-threaded and synchronous. One diff is processed to completion before
the next is handed in; callers sharing an instance across threads serialize
access themselves. On reconnect, build a new instance from a fresh initial
payload.
"""

from __future__ import annotations

import logging
from typing import Any

from liveview.kernel.components import ComponentRegistry
from liveview.kernel.merge import merge
from liveview.kernel.resolver import RenderContext, render, render_component
from liveview.kernel.shell import Shell
from liveview.kernel.tree import to_wire
from liveview.kernel.types import (
    COMPONENTS,
    EVENTS,
    MAX_REFERENCE_DEPTH,
    REPLY,
    TEMPLATES,
    TITLE,
    EngineState,
    EventRecord,
    Warning,
    add_warning,
    now_iso,
)

logger = logging.getLogger(__name__)


def extract(message: dict[str, Any]) -> tuple[dict[str, Any], str | None, Any, list[Any]]:
    """Split a server message into (tree diff, title, reply, events)."""
    diff = {key: value for key, value in message.items() if key not in (REPLY, EVENTS, TITLE)}
    title = message.get(TITLE)
    if not isinstance(title, str):
        title = None
    events = message.get(EVENTS)
    if not isinstance(events, list):
        events = []
    return diff, title, message.get(REPLY), events


class Rendered:
    """
    Client-side renderer for one LiveView.

    rendered = Rendered(page_html)
    rendered.apply_initial(join_reply["rendered"])
    rendered.apply_diff(diff)          # → full document
    rendered.current_events()          # → [{action, payload, timestamp}, ...]
    """

    def __init__(self, document_html: str = "", *, max_reference_depth: int = MAX_REFERENCE_DEPTH) -> None:
        self.max_reference_depth = max_reference_depth
        self.shell = Shell(document_html)
        self.state = EngineState()
        self.registry = ComponentRegistry(self.state.components, max_reference_depth=max_reference_depth)
        self.last_reply: Any = None
        self.warnings: list[Warning] = []
        self._events: list[EventRecord] = []
        self._content = ""

    @property
    def view_id(self) -> str | None:
        return self.shell.view_id

    @property
    def title(self) -> str | None:
        return self.shell.title

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------

    def apply_initial(self, payload: Any) -> str:
        """Discard any prior state and build the tree from a full render."""
        self.state = EngineState()
        self.registry = ComponentRegistry(self.state.components, max_reference_depth=self.max_reference_depth)
        return self._cycle(payload, initial=True)

    def apply_diff(self, diff: Any) -> str:
        """Fold one diff into the current state and return the full document."""
        return self._cycle(diff, initial=False)

    def current_html(self) -> str:
        return self.shell.splice(self._content)

    def content_html(self) -> str:
        """The mount element's inner markup only."""
        return self._content

    def current_events(self) -> list[dict[str, Any]]:
        """Events pushed by the server since the last clear_events(), oldest first."""
        return [event.to_dict() for event in self._events]

    def clear_events(self) -> None:
        self._events.clear()

    def render_component(self, cid: int) -> str:
        """Render one registry entry on its own."""
        ctx = RenderContext(components=self.registry, max_reference_depth=self.max_reference_depth)
        return render_component(cid, ctx)

    def to_dict(self) -> dict[str, Any]:
        """Wire-shaped view of the current tree with its component table."""
        tree = to_wire(self.state.tree)
        wire: dict[str, Any] = dict(tree) if isinstance(tree, dict) else {}
        if self.state.components:
            wire[COMPONENTS] = {str(cid): to_wire(node) for cid, node in sorted(self.state.components.items())}
        return wire

    # -----------------------------------------------------------------------
    # Internal
    # -----------------------------------------------------------------------

    def _cycle(self, message: Any, *, initial: bool) -> str:
        self.warnings = []
        if message is None:
            return self.current_html()
        if not isinstance(message, dict):
            add_warning(self.warnings, "MALFORMED_DIFF", f"ignoring {type(message).__name__} message")
            self._log_warnings()
            return self.current_html()

        diff, title, reply, events = extract(message)
        if title is not None:
            self.shell.put_title(title)
        self.last_reply = reply
        self._record_events(events)

        if COMPONENTS in diff:
            self.registry.upsert_many(diff.pop(COMPONENTS), self.warnings, templates=diff.get(TEMPLATES))

        self.state.tree = merge(None if initial else self.state.tree, diff, self.warnings)

        self._content = render(
            self.state.tree,
            self.registry,
            warnings=self.warnings,
            max_reference_depth=self.max_reference_depth,
        )
        self._log_warnings()
        return self.current_html()

    def _record_events(self, events: list[Any]) -> None:
        timestamp = now_iso()
        for event in events:
            if isinstance(event, (list, tuple)) and len(event) == 2 and isinstance(event[0], str):
                self._events.append(EventRecord(action=event[0], payload=event[1], timestamp=timestamp))
            else:
                add_warning(self.warnings, "MALFORMED_EVENT", "skipping event that is not an [action, payload] pair", {"event": event})

    def _log_warnings(self) -> None:
        for warning in self.warnings:
            logger.debug("rendered: %s %s (view=%s)", warning.code, warning.message, self.view_id)

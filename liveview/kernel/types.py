"""
LiveView Kernel -- Shared Types

Data classes used across tree, templates, components, merge, resolver, and shell.
These are the contracts that bind the kernel together.

Render nodes are a closed tagged union:
- Literal        opaque text
- TemplateRef    bare integer in a dynamic slot (template table, else component id)
- ComponentRef   explicit indirection through the component registry
- Composite      statics interleaved with indexed dynamics
- Comprehension  keyed list sharing one statics array across entries
- Opaque         any shape the protocol does not define; rendered key by key
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Union

# ---------------------------------------------------------------------------
# Wire keys
# ---------------------------------------------------------------------------

COMPONENTS = "c"
STATIC = "s"
TEMPLATES = "p"
DYNAMICS = "d"
EVENTS = "e"
REPLY = "r"
TITLE = "t"
KEYED = "k"
KEYED_COUNT = "kc"
STREAM = "stream"
ROOT = "root"

# Keys that describe the message rather than the tree. Never rendered.
METADATA_KEYS: frozenset[str] = frozenset({COMPONENTS, TEMPLATES, EVENTS, REPLY, TITLE, STREAM, ROOT})

# Bound on chained template/component lookups. Turns reference cycles into "".
MAX_REFERENCE_DEPTH = 32


# ---------------------------------------------------------------------------
# Render nodes
# ---------------------------------------------------------------------------

# list[str] is a fragment array, str is pre-joined markup, int is an unresolved reference.
Statics = Union[list[str], str, int]


@dataclass
class Literal:
    text: str


@dataclass
class TemplateRef:
    index: int


@dataclass
class ComponentRef:
    cid: int


@dataclass
class Composite:
    """
    Static fragments interleaved with dynamic slots.

    statics is None only for comprehension entries, which then inherit the
    comprehension's shared statics.
    """

    statics: Statics | None = None
    dynamics: dict[int, Node] = field(default_factory=dict)


@dataclass
class Comprehension:
    """
    Keyed, positionally addressed list.

    Entries at positions >= count stay in storage but are never rendered.
    """

    statics: Statics | None = None
    entries: dict[int, Composite] = field(default_factory=dict)
    count: int = 0


@dataclass
class Opaque:
    fields: dict[str, Node] = field(default_factory=dict)


Node = Union[Literal, TemplateRef, ComponentRef, Composite, Comprehension, Opaque]


# ---------------------------------------------------------------------------
# Engine records
# ---------------------------------------------------------------------------


@dataclass
class EngineState:
    """The render tree plus the component registry entries it references."""

    tree: Node | None = None
    components: dict[int, Node] = field(default_factory=dict)


@dataclass
class EventRecord:
    """A server-pushed event drained from a diff's event list."""

    action: str
    payload: Any
    timestamp: str  # ISO 8601 UTC

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "payload": self.payload,
            "timestamp": self.timestamp,
        }


@dataclass
class Warning:
    """A non-fatal issue encountered while merging or rendering."""

    code: str
    message: str
    details: dict[str, Any] | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def slot_index(key: Any) -> int | None:
    """
    Parse a dynamic slot key. JSON object keys arrive as strings ("0", "12");
    Python callers may pass ints. Returns None for anything that is not a
    non-negative integer index.
    """
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key if key >= 0 else None
    if isinstance(key, str) and key.isascii() and key.isdigit():
        return int(key)
    return None


def is_reference(value: Any) -> bool:
    """True for JSON integers (bools excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


def now_iso() -> str:
    """Current UTC time as ISO 8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def add_warning(
    warnings: list[Warning] | None,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> None:
    """Append a Warning when the caller collects them. Callers that pass None opt out."""
    if warnings is not None:
        warnings.append(Warning(code=code, message=message, details=details))

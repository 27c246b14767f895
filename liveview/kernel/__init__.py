"""
LiveView Kernel -- the pure diff-rendering engine.

Components:
  templates   -- per-message template table substitution
  components  -- persistent component registry with template inheritance
  merge       -- (node, diff) → node  (copy-on-write, never raises)
  resolver    -- (node, registry) → markup string
  shell       -- splices rendered markup into the document shell
  rendered    -- owns one connection's state and drives merge → render → splice
"""

from liveview.kernel.components import ComponentRegistry
from liveview.kernel.merge import merge, reconcile
from liveview.kernel.rendered import Rendered
from liveview.kernel.resolver import render
from liveview.kernel.shell import Shell, locate_spans
from liveview.kernel.templates import resolve_templates
from liveview.kernel.tree import parse_node, to_wire

__all__ = [
    "ComponentRegistry",
    "Rendered",
    "Shell",
    "locate_spans",
    "merge",
    "parse_node",
    "reconcile",
    "render",
    "resolve_templates",
    "to_wire",
]

"""LiveView diff-rendering engine and channel client."""

from liveview.kernel.rendered import Rendered

__all__ = ["Rendered"]

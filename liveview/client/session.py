"""
LiveView session.

Ties one page's metadata, a Channel on its lv:<id> topic and a Rendered
engine together. Every push returns the frame to send; every frame the
caller receives goes through receive(), which feeds rendered joins, reply
diffs and broadcast diffs into the engine.
"""

from __future__ import annotations

import logging
from typing import Any

from liveview.client.channel import Callback, Channel, ChannelMessage
from liveview.client.config import settings
from liveview.client.page import LiveViewMetadata, extract_metadata, websocket_url
from liveview.kernel.rendered import Rendered

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class MissingMetadata(Exception):
    """Page lacks the CSRF token or the LiveView element's id/session/static."""

    pass


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class LiveViewSession:
    def __init__(self, page_url: str, document_html: str, *, mounts: int = 0) -> None:
        metadata = extract_metadata(document_html)
        if not metadata.is_complete:
            missing = [name for name, value in metadata.model_dump().items() if not value]
            raise MissingMetadata(f"page {page_url} is missing LiveView data: {', '.join(missing)}")

        self.page_url = page_url
        self.metadata: LiveViewMetadata = metadata
        self.mounts = mounts
        self.rendered = Rendered(document_html, max_reference_depth=settings.MAX_REFERENCE_DEPTH)
        self.channel = Channel(metadata.topic, broadcast=self._on_broadcast)
        logger.debug("session: parsed LiveView id=%s for %s", metadata.phx_id, page_url)

    @property
    def topic(self) -> str:
        return self.channel.topic

    @property
    def websocket_url(self) -> str:
        return websocket_url(self.page_url, self.metadata.csrf_token)

    @property
    def html(self) -> str:
        return self.rendered.current_html()

    # -----------------------------------------------------------------------
    # Outgoing frames
    # -----------------------------------------------------------------------

    def join(self, callback: Callback | None = None) -> str:
        payload = {
            "url": self.page_url,
            "session": self.metadata.phx_session,
            "static": self.metadata.phx_static,
            "params": {"_csrf_token": self.metadata.csrf_token, "_mounts": self.mounts},
        }
        return self.channel.join(payload, self._wrap(callback))

    def push_click(self, event: str, value: Any = None, callback: Callback | None = None) -> str:
        return self._push_event("click", event, {} if value is None else value, callback)

    def push_form(self, event: str, form_data: Any, callback: Callback | None = None) -> str:
        return self._push_event("form", event, form_data, callback)

    def push_blur(self, event: str, value: Any = None, callback: Callback | None = None) -> str:
        return self._push_event("blur", event, value, callback)

    def push_keyup(self, event: str, key: str, value: Any = None, callback: Callback | None = None) -> str:
        return self._push_event("keyup", event, {"key": key, "value": value}, callback)

    def heartbeat(self) -> str:
        return self.channel.heartbeat()

    def leave(self) -> str:
        return self.channel.leave()

    # -----------------------------------------------------------------------
    # Incoming frames
    # -----------------------------------------------------------------------

    def receive(self, raw: str | bytes) -> ChannelMessage | None:
        return self.channel.dispatch(raw)

    def _push_event(self, kind: str, event: str, value: Any, callback: Callback | None) -> str:
        payload = {"type": kind, "event": event, "value": value}
        return self.channel.push("event", payload, self._wrap(callback))

    def _wrap(self, callback: Callback | None) -> Callback:
        def on_reply(message: ChannelMessage) -> Any:
            if message.is_ok_reply:
                response = message.payload.get("response")
                if isinstance(response, dict):
                    if response.get("rendered"):
                        self.rendered.apply_initial(response["rendered"])
                    elif response.get("diff"):
                        self.rendered.apply_diff(response["diff"])
            elif message.event == "phx_reply":
                logger.warning("session: %s replied %r", self.topic, message.payload)
            return callback(message) if callback is not None else None

        return on_reply

    def _on_broadcast(self, message: ChannelMessage) -> None:
        if message.event == "diff" and message.payload:
            self.rendered.apply_diff(message.payload)
        else:
            logger.debug("session: ignoring broadcast %s on %s", message.event, message.topic)

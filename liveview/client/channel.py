"""
Phoenix channel framing (serializer v2).

Every frame is a JSON array: [join_ref, ref, topic, event, payload].
Channel keeps the bookkeeping a client needs around those frames: the join
ref, a monotonically increasing message ref, and the callback waiting on each
ref. It produces and consumes frame strings; the caller owns the socket.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

PHX_JOIN = "phx_join"
PHX_LEAVE = "phx_leave"
PHX_REPLY = "phx_reply"
HEARTBEAT = "heartbeat"
PHOENIX_TOPIC = "phoenix"

Callback = Callable[["ChannelMessage"], Any]


class ChannelMessage(BaseModel):
    """One decoded channel frame."""

    join_ref: str | None = None
    ref: str | None = None
    topic: str
    event: str
    payload: Any = None

    @classmethod
    def from_frame(cls, raw: str | bytes) -> ChannelMessage | None:
        """Decode a frame. Malformed frames are skipped with a warning."""
        try:
            decoded = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError):
            logger.warning("channel: skipping malformed frame: %r", raw[:200])
            return None
        if not isinstance(decoded, list) or len(decoded) != 5:
            logger.warning("channel: skipping frame that is not a 5-element array: %r", raw[:200])
            return None

        join_ref, ref, topic, event, payload = decoded
        try:
            return cls(
                join_ref=None if join_ref is None else str(join_ref),
                ref=None if ref is None else str(ref),
                topic=topic,
                event=event,
                payload=payload,
            )
        except ValidationError:
            logger.warning("channel: skipping frame with invalid topic/event: %r", raw[:200])
            return None

    def to_frame(self) -> str:
        return json.dumps([self.join_ref, self.ref, self.topic, self.event, self.payload])

    @property
    def is_ok_reply(self) -> bool:
        return self.event == PHX_REPLY and isinstance(self.payload, dict) and self.payload.get("status") == "ok"


class Channel:
    """Ref bookkeeping for one channel topic."""

    def __init__(self, topic: str, broadcast: Callback | None = None) -> None:
        self.topic = topic
        self.join_ref: str | None = None
        self.message_ref = 1
        self.callbacks: dict[str, Callback] = {}
        self.broadcast = broadcast

    def join(self, payload: dict[str, Any], callback: Callback | None = None) -> str:
        self.join_ref = str(self.message_ref)
        return self.push(PHX_JOIN, payload, callback)

    def leave(self) -> str:
        return self.push(PHX_LEAVE, {})

    def heartbeat(self) -> str:
        return self.push(HEARTBEAT, {}, topic=PHOENIX_TOPIC)

    def push(
        self,
        event: str,
        payload: Any,
        callback: Callback | None = None,
        *,
        topic: str | None = None,
    ) -> str:
        """Encode a frame for this channel and remember its callback under the frame's ref."""
        ref = str(self.message_ref)
        self.message_ref += 1
        if callback is not None:
            self.callbacks[ref] = callback
        message = ChannelMessage(join_ref=self.join_ref, ref=ref, topic=topic or self.topic, event=event, payload=payload)
        return message.to_frame()

    def dispatch(self, raw: str | bytes) -> ChannelMessage | None:
        """
        Route one incoming frame. Replies go to the callback registered for their
        ref (dropped after the phx_reply); frames without a ref go to the
        broadcast handler.
        """
        message = ChannelMessage.from_frame(raw)
        if message is None:
            return None

        if message.ref is not None:
            callback = self.callbacks.get(message.ref)
            if message.event == PHX_REPLY:
                self.callbacks.pop(message.ref, None)
            if callback is not None:
                callback(message)
            else:
                logger.debug("channel: no callback for ref=%s event=%s", message.ref, message.event)
        elif self.broadcast is not None:
            self.broadcast(message)
        return message

"""
LiveView client glue -- drives the kernel from a Phoenix channel.

Components:
  config   -- environment-driven settings, logging setup
  page     -- join metadata scraped from the dead render
  channel  -- v2 frame codec and ref bookkeeping
  session  -- one LiveView: frames out, replies and broadcasts into Rendered
"""

from liveview.client.channel import Channel, ChannelMessage
from liveview.client.page import LiveViewMetadata, extract_metadata, websocket_url
from liveview.client.session import LiveViewSession, MissingMetadata

__all__ = [
    "Channel",
    "ChannelMessage",
    "LiveViewMetadata",
    "LiveViewSession",
    "MissingMetadata",
    "extract_metadata",
    "websocket_url",
]

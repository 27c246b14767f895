"""
LiveView page metadata.

A dead (HTTP) render of a LiveView page carries everything needed to join
its channel: the CSRF token in a meta tag, and the LiveView element's id,
session, and static tokens as data attributes.
"""

from __future__ import annotations

from html.parser import HTMLParser
from urllib.parse import urlencode, urlsplit, urlunsplit

from pydantic import BaseModel

from liveview.client.config import settings


class LiveViewMetadata(BaseModel):
    """Join parameters scraped from the initial page."""

    csrf_token: str | None = None
    phx_id: str | None = None
    phx_session: str | None = None
    phx_static: str | None = None

    @property
    def is_complete(self) -> bool:
        return all((self.csrf_token, self.phx_id, self.phx_session, self.phx_static))

    @property
    def topic(self) -> str:
        return f"lv:{self.phx_id}"


def extract_metadata(html: str) -> LiveViewMetadata:
    """
    Scrape join parameters from a page.
    Prefers the data-phx-main element; falls back to the first data-phx-view element.
    """
    parser = _MetadataParser()
    parser.feed(html)
    parser.close()

    element = parser.main or parser.view or {}
    return LiveViewMetadata(
        csrf_token=parser.csrf_token,
        phx_id=element.get("id"),
        phx_session=element.get("data-phx-session"),
        phx_static=element.get("data-phx-static"),
    )


def websocket_url(
    page_url: str,
    csrf_token: str | None,
    *,
    socket_path: str | None = None,
    vsn: str | None = None,
) -> str:
    """
    Build the LiveView socket URL for a page.

    http://localhost:4000/lists/1 → ws://localhost:4000/live/websocket?vsn=2.0.0&_csrf_token=...
    """
    parts = urlsplit(page_url)
    scheme = "wss" if parts.scheme in ("https", "wss") else "ws"
    query = {"vsn": vsn or settings.VSN}
    if csrf_token:
        query["_csrf_token"] = csrf_token
    return urlunsplit((scheme, parts.netloc, socket_path or settings.SOCKET_PATH, urlencode(query), ""))


class _MetadataParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.csrf_token: str | None = None
        self.main: dict[str, str | None] | None = None
        self.view: dict[str, str | None] | None = None

    def handle_starttag(self, tag, attrs):
        attributes = dict(attrs)
        if tag == "meta" and attributes.get("name") == "csrf-token" and self.csrf_token is None:
            self.csrf_token = attributes.get("content")
            return
        if not attributes.get("id"):
            return
        if self.main is None and "data-phx-main" in attributes:
            self.main = attributes
        elif self.view is None and "data-phx-view" in attributes:
            self.view = attributes

"""
LiveView Kernel -- Shell Splicer

Keeps the static document around the LiveView mount element and splices
freshly rendered content into it. The mount is found once, at construction,
by tokenizing the document and tracking character spans; the rendered
content itself is never scanned, so whatever markup it contains cannot move
the mount boundaries.

Mount element: the first element carrying data-phx-main and an id, else the
first carrying data-phx-view and an id.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from html.parser import HTMLParser

# "Home | Todo Lister" → suffix " | Todo Lister"
TITLE_SUFFIX_PATTERN = re.compile(r"^(.+?)(\s*\|\s*.+)$")

_WHITESPACE = re.compile(r"\s+")

# Leading separator of a suffix: " | Site" → "Site"
_SUFFIX_SEPARATOR = re.compile(r"^\s*[|·:-]\s*")

_MOUNT = object()
_TITLE = object()


@dataclass
class DocumentSpans:
    """Character spans of the interesting regions of a document. Spans are (start, end) of inner content."""

    mount_id: str | None = None
    mount_tag: str | None = None
    mount_inner: tuple[int, int] | None = None
    title_inner: tuple[int, int] | None = None
    title_prefix: str | None = None
    title_suffix: str | None = None


def locate_spans(html: str) -> DocumentSpans:
    """Tokenize a document and report where the mount element and the title live."""
    parser = _SpanParser(html)
    parser.feed(html)
    parser.close()
    return parser.result()


def normalize_title(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


class Shell:
    """
    The document shell of one LiveView connection.

    splice(content) returns the full document with `content` as the mount's
    inner markup. Without a mount element it returns `content` alone.
    """

    def __init__(self, document_html: str = "") -> None:
        spans = locate_spans(document_html)
        self.view_id = spans.mount_id
        self.has_mount = spans.mount_inner is not None

        self.title: str | None = None
        self.title_prefix = spans.title_prefix or ""
        self.title_suffix = spans.title_suffix
        if spans.title_inner is not None:
            start, end = spans.title_inner
            self.title = normalize_title(document_html[start:end])
            if self.title_suffix is None:
                self.title_suffix = detect_title_suffix(self.title)

        self._segments = _split(document_html, spans)

    def splice(self, content: str) -> str:
        if not self.has_mount:
            return content
        parts: list[str] = []
        for segment in self._segments:
            if segment is _MOUNT:
                parts.append(content)
            elif segment is _TITLE:
                parts.append(self.title or "")
            else:
                parts.append(segment)
        return "".join(parts)

    def put_title(self, title: str) -> str:
        """
        Track a title pushed by the server. Servers may send only the variable
        part after the first message; a known prefix or suffix missing from the
        new title is put back.

        The suffix is appended unless the title already ends with it, or the
        title is the bare site name the suffix carries ("Todo Lister" for
        " | Todo Lister").
        """
        if self.title_suffix is None and self.title:
            self.title_suffix = detect_title_suffix(self.title)

        full = title
        if self.title_prefix and not full.startswith(self.title_prefix):
            full = self.title_prefix + full
        if self.title_suffix and not _has_suffix(full, self.title_suffix):
            full = full + self.title_suffix
        self.title = full
        return full


def detect_title_suffix(title: str) -> str | None:
    match = TITLE_SUFFIX_PATTERN.match(title)
    return match.group(2) if match else None


def _has_suffix(title: str, suffix: str) -> bool:
    title = title.rstrip()
    return title.endswith(suffix.strip()) or title == _SUFFIX_SEPARATOR.sub("", suffix).strip()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _split(html: str, spans: DocumentSpans) -> list[object]:
    """Cut the document into literal segments and markers for the regions that get replaced."""
    cuts: list[tuple[int, int, object]] = []
    if spans.mount_inner is not None:
        cuts.append((*spans.mount_inner, _MOUNT))
    if spans.title_inner is not None:
        title_start, title_end = spans.title_inner
        inside_mount = spans.mount_inner is not None and spans.mount_inner[0] <= title_start < spans.mount_inner[1]
        if not inside_mount:
            cuts.append((title_start, title_end, _TITLE))
    cuts.sort(key=lambda cut: cut[0])

    segments: list[object] = []
    position = 0
    for start, end, marker in cuts:
        segments.append(html[position:start])
        segments.append(marker)
        position = end
    segments.append(html[position:])
    return segments


class _SpanParser(HTMLParser):
    """
    Records offsets while tokenizing. Nesting of the mount element is tracked by
    counting start/end tags of the mount's own tag name as the tokenizer reports
    them, which skips comments, script bodies, and attribute values.
    """

    def __init__(self, html: str) -> None:
        super().__init__(convert_charrefs=True)
        self._line_starts = [0]
        for index, char in enumerate(html):
            if char == "\n":
                self._line_starts.append(index + 1)

        self._candidates: list[dict] = []
        self._title_start: int | None = None
        self._spans = DocumentSpans()
        self._main: dict | None = None
        self._view: dict | None = None

    def result(self) -> DocumentSpans:
        chosen = self._main if self._main and self._main["inner"] else self._view
        if chosen and chosen["inner"]:
            self._spans.mount_id = chosen["id"]
            self._spans.mount_tag = chosen["tag"]
            self._spans.mount_inner = chosen["inner"]
        return self._spans

    def handle_starttag(self, tag, attrs):
        start = self._offset()
        end = start + len(self.get_starttag_text() or "")

        for candidate in self._candidates:
            if candidate["tag"] == tag and candidate["inner"] is None:
                candidate["depth"] += 1

        attributes = dict(attrs)
        element_id = attributes.get("id")
        if element_id and self._main is None and "data-phx-main" in attributes:
            self._main = self._track(tag, element_id, end)
        elif element_id and self._view is None and "data-phx-view" in attributes:
            self._view = self._track(tag, element_id, end)

        if tag == "title" and self._spans.title_inner is None:
            self._title_start = end
            self._spans.title_prefix = attributes.get("data-prefix")
            self._spans.title_suffix = attributes.get("data-suffix")

    def handle_endtag(self, tag):
        start = self._offset()
        for candidate in self._candidates:
            if candidate["tag"] != tag or candidate["inner"] is not None:
                continue
            candidate["depth"] -= 1
            if candidate["depth"] == 0:
                candidate["inner"] = (candidate["open_end"], start)

        if tag == "title" and self._title_start is not None and self._spans.title_inner is None:
            self._spans.title_inner = (self._title_start, start)

    def _track(self, tag: str, element_id: str, open_end: int) -> dict:
        candidate = {"tag": tag, "id": element_id, "open_end": open_end, "depth": 1, "inner": None}
        self._candidates.append(candidate)
        return candidate

    def _offset(self) -> int:
        line, column = self.getpos()
        return self._line_starts[line - 1] + column

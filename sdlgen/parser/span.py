"""
Source buffers and spans.

A Span is a (source, start, end) triple over an immutable header buffer.
Text is only materialised on demand, so slicing a large header never copies
it.
"""

from __future__ import annotations

import bisect
from dataclasses import dataclass, field
from typing import Optional

from ..errors import ParseError


_WHITESPACE = " \t\r\n\f\v"


@dataclass(eq=False)
class Source:
    """One header buffer. Compared by identity."""
    name: str
    text: str
    _line_starts: Optional[list[int]] = field(default=None, repr=False)

    @property
    def line_starts(self) -> list[int]:
        """Offsets of the first character of every line."""
        if self._line_starts is None:
            starts = [0]
            starts.extend(i + 1 for i, ch in enumerate(self.text) if ch == "\n")
            self._line_starts = starts
        return self._line_starts

    def span(self) -> "Span":
        """Span covering the whole buffer."""
        return Span(self, 0, len(self.text))


# Spans created by patches and other synthetic nodes point here
GENERATED = Source("<generated>", "")


@dataclass(frozen=True)
class Span:
    """Half-open range ``[start, end)`` of a Source."""
    source: Source
    start: int
    end: int

    @classmethod
    def of(cls, name: str, text: str) -> "Span":
        """Create a new Source and return a span over all of it."""
        return Source(name, text).span()

    @classmethod
    def synthetic(cls) -> "Span":
        return cls(GENERATED, 0, 0)

    # -------------------------------------------------------------------------
    # Text access
    # -------------------------------------------------------------------------

    @property
    def text(self) -> str:
        return self.source.text[self.start:self.end]

    def __len__(self) -> int:
        return self.end - self.start

    def __repr__(self) -> str:
        return f"Span({self.source.name}:{self.start}..{self.end} {self.text!r})"

    def is_empty(self) -> bool:
        return self.start >= self.end

    def char(self, i: int = 0) -> str:
        """Character at relative offset ``i``, or "" past the end."""
        pos = self.start + i
        if 0 <= i and pos < self.end:
            return self.source.text[pos]
        return ""

    def startswith(self, prefix: str) -> bool:
        return self.source.text.startswith(prefix, self.start, self.end)

    def endswith(self, suffix: str) -> bool:
        return self.source.text.endswith(suffix, self.start, self.end)

    def find(self, needle: str, offset: int = 0) -> int:
        """Relative index of ``needle`` or -1."""
        pos = self.source.text.find(needle, self.start + offset, self.end)
        return -1 if pos < 0 else pos - self.start

    def rfind(self, needle: str) -> int:
        pos = self.source.text.rfind(needle, self.start, self.end)
        return -1 if pos < 0 else pos - self.start

    def contains(self, needle: str) -> bool:
        return self.find(needle) >= 0

    # -------------------------------------------------------------------------
    # Slicing
    # -------------------------------------------------------------------------

    def slice(self, a: int, b: Optional[int] = None) -> "Span":
        """Sub-span by relative offsets (clamped to this span)."""
        length = len(self)
        a = max(0, min(a, length))
        b = length if b is None else max(a, min(b, length))
        return Span(self.source, self.start + a, self.start + b)

    def split_at(self, i: int) -> tuple["Span", "Span"]:
        return self.slice(0, i), self.slice(i)

    def join(self, other: "Span") -> "Span":
        """Smallest span covering both (must share a source)."""
        if other.source is not self.source:
            return self
        return Span(self.source, min(self.start, other.start), max(self.end, other.end))

    def start_span(self) -> "Span":
        return Span(self.source, self.start, self.start)

    def end_span(self) -> "Span":
        return Span(self.source, self.end, self.end)

    def until(self, rest: "Span") -> "Span":
        """Span from our start up to the start of ``rest``."""
        return Span(self.source, self.start, max(self.start, rest.start))

    def peek(self, n: int = 1) -> "Span":
        """First ``n`` characters, used to point diagnostics at input."""
        return self.slice(0, n)

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def line_col(self) -> tuple[int, int]:
        """1-based line and column of the span start."""
        starts = self.source.line_starts
        line = bisect.bisect_right(starts, self.start) - 1
        return line + 1, self.start - starts[line] + 1

    def line_text(self) -> str:
        """Full text of the line the span starts on."""
        starts = self.source.line_starts
        line = bisect.bisect_right(starts, self.start) - 1
        end = self.source.text.find("\n", starts[line])
        if end < 0:
            end = len(self.source.text)
        return self.source.text[starts[line]:end].rstrip("\r")

    # -------------------------------------------------------------------------
    # Whitespace and comments
    # -------------------------------------------------------------------------

    def skip_wsc(self) -> "Span":
        """
        Skip leading whitespace and comments.

        Line continuations, ``//`` comments and ``/* */`` comments are
        skipped. Doc comments (``/**`` and ``/**<``) are content and are
        never skipped.

        Raises:
            ParseError: On an unterminated block comment
        """
        text = self.source.text
        i, end = self.start, self.end
        while i < end:
            ch = text[i]
            if ch in _WHITESPACE:
                i += 1
            elif ch == "\\" and text.startswith("\n", i + 1, end):
                i += 2
            elif ch == "\\" and text.startswith("\r\n", i + 1, end):
                i += 3
            elif text.startswith("//", i, end):
                nl = text.find("\n", i, end)
                i = end if nl < 0 else nl + 1
            elif text.startswith("/*", i, end):
                if text.startswith("/**", i, end) and not text.startswith("/**/", i, end):
                    break
                close = text.find("*/", i + 2, end)
                if close < 0:
                    raise ParseError(Span(self.source, i, i + 2), "unterminated block comment")
                i = close + 2
            else:
                break
        return Span(self.source, i, end)

    def trim_wsc_end(self) -> "Span":
        """Trim trailing whitespace and non-doc comments."""
        text = self.source.text
        start, end = self.start, self.end
        while end > start:
            if text[end - 1] in _WHITESPACE:
                end -= 1
                continue
            if text.endswith("*/", start, end):
                open_ = text.rfind("/*", start, end - 2)
                if open_ >= 0 and not (
                    text.startswith("/**", open_, end) and not text.startswith("/**/", open_, end)
                ):
                    end = open_
                    continue
                break
            line_start = text.rfind("\n", start, end) + 1
            comment = _line_comment_start(text, max(start, line_start), end)
            if comment >= 0:
                end = comment
                continue
            break
        return Span(self.source, start, end)

    def trim_wsc(self) -> "Span":
        return self.skip_wsc().trim_wsc_end()

    def strip(self) -> "Span":
        """Trim plain whitespace only."""
        text = self.source.text
        start, end = self.start, self.end
        while start < end and text[start] in _WHITESPACE:
            start += 1
        while end > start and text[end - 1] in _WHITESPACE:
            end -= 1
        return Span(self.source, start, end)


def _line_comment_start(text: str, start: int, end: int) -> int:
    """Offset of a ``//`` comment outside string literals, or -1."""
    quote = ""
    i = start
    while i < end - 1:
        ch = text[i]
        if quote:
            if ch == "\\":
                i += 1
            elif ch == quote:
                quote = ""
        elif ch in "\"'":
            quote = ch
        elif ch == "/" and text[i + 1] == "/":
            return i
        i += 1
    return -1

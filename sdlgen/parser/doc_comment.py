"""
Documentation comments.

``/** ... */`` documents the declaration that follows it, ``/**< ... */``
documents the one before it. A doc comment followed by an empty line is not
attached to anything and documents the file.
"""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from typing import Optional

from ..errors import ParseError
from .base import ParseContext, Parser
from .span import Span


@dataclass(frozen=True)
class DocComment(Parser):
    span: Span
    raw: Span
    postfix: bool = False
    detached: bool = False
    desc = "documentation comment"

    @property
    def text(self) -> str:
        return normalize_doc(self.raw.text)

    @classmethod
    def _try_parse(cls, ctx: ParseContext, span: Span):
        s = span.skip_wsc()
        if not s.startswith("/**") or s.startswith("/**<") or s.startswith("/**/"):
            return span, None
        end = s.find("*/", 3)
        if end < 0:
            raise ParseError(s.peek(4), "doc comment with no end")
        raw = s.slice(3, end)
        rest = s.slice(end + 2)

        # blank line after the comment means it isn't attached
        text = rest.source.text
        newlines = 0
        i = rest.start
        while i < rest.end and text[i] in " \t\r\n":
            if text[i] == "\n":
                newlines += 1
            i += 1
        detached = newlines >= 2 or i >= rest.end
        return rest, cls(s.slice(0, end + 2), raw, False, detached)

    @classmethod
    def try_parse(cls, ctx: ParseContext, span: Span):
        """Match a doc comment attached to the following declaration."""
        rest, doc = cls._try_parse(ctx, span)
        if doc is None or doc.detached:
            return span, None
        return rest, doc

    @classmethod
    def try_parse_detached(cls, ctx: ParseContext, span: Span):
        """Match a free-standing (file level) doc comment."""
        rest, doc = cls._try_parse(ctx, span)
        if doc is None or not doc.detached:
            return span, None
        return rest, doc

    @classmethod
    def try_parse_postfix(cls, ctx: ParseContext, span: Span):
        """Match a ``/**< ... */`` comment."""
        s = span.skip_wsc()
        if not s.startswith("/**<"):
            return span, None
        end = s.find("*/", 4)
        if end < 0:
            raise ParseError(s.peek(4), "doc comment with no end")
        return s.slice(end + 2), cls(s.slice(0, end + 2), s.slice(4, end), True)

    @classmethod
    def split_postfix(cls, span: Span) -> tuple[Span, Optional["DocComment"]]:
        """Split a trailing ``/**< ... */`` off the end of ``span``."""
        body = span.trim_wsc_end()
        if not body.endswith("*/"):
            return span, None
        start = body.rfind("/**<")
        if start < 0:
            return span, None
        doc = body.slice(start)
        return body.slice(0, start), cls(doc, doc.slice(4, len(doc) - 2), True)


def combine(prefix: Optional[DocComment], postfix: Optional[DocComment]) -> Optional[DocComment]:
    """When both are present the prefix comment wins."""
    return prefix if prefix is not None else postfix


def normalize_doc(raw: str) -> str:
    """
    Strip comment decoration from the body of a doc comment.

    Removes the ``*`` gutter, the shared indentation, a leading
    ``# CategoryXxx`` line, leading and trailing blank lines, and collapses
    runs of blank lines.
    """
    lines = raw.split("\n")
    first = lines[0].strip()
    body = []
    for line in lines[1:]:
        stripped = line.lstrip()
        if stripped.startswith("*") and not stripped.startswith("*/"):
            stripped = stripped[1:]
            line = stripped
        body.append(line.rstrip())
    body = textwrap.dedent("\n".join(body)).split("\n") if body else []
    lines = [first] + body

    while lines and not lines[0].strip():
        lines.pop(0)
    if lines and lines[0].startswith("# Category"):
        lines.pop(0)
        while lines and not lines[0].strip():
            lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()

    out = []
    for line in lines:
        if not line.strip():
            if out and out[-1] == "":
                continue
            out.append("")
        else:
            out.append(line)
    return "\n".join(out)

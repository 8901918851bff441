"""
Error types for sdlgen.

Soft non-matches are never raised: parsers signal them by returning
``(span, None)``. Everything here is a hard failure that aborts the run.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .parser.span import Span


# =============================================================================
# ANSI styling for terminal diagnostics
# =============================================================================

_BOLD = "\x1b[1m"
_RED = "\x1b[1;31m"
_BLUE = "\x1b[1;34m"
_RESET = "\x1b[0m"


# =============================================================================
# Exception Classes
# =============================================================================

class SdlGenError(Exception):
    """Base exception for all generator errors."""

    def format(self, color: bool = False) -> str:
        """Render the error for display on the error stream."""
        if color:
            return f"{_RED}error{_RESET}{_BOLD}: {self}{_RESET}"
        return f"error: {self}"

    def compact(self) -> str:
        """Single-line form for non-interactive consumers."""
        return f"error: {self}"


class ParseError(SdlGenError):
    """
    A malformed construct in a header.

    Raised when input is recognisably an attempt at a known grammar rule
    but cannot be completed (unterminated literal, missing ``#endif``, ...).
    """

    def __init__(self, span: "Span", message: str):
        self.span = span
        self.message = message
        super().__init__(message)

    def __str__(self) -> str:
        line, col = self.span.line_col()
        return f"{self.span.source.name}:{line}:{col}: error: {self.message}"

    def compact(self) -> str:
        return str(self)

    def format(self, color: bool = False) -> str:
        """
        Render a rustc-style diagnostic with the offending source line.

        Args:
            color: Add ANSI colours (for interactive terminals)

        Returns:
            Multi-line diagnostic text
        """
        line, col = self.span.line_col()
        gutter = " " * len(str(line))
        source_line = self.span.line_text()
        width = max(1, min(len(self.span), len(source_line) - (col - 1)))
        carets = " " * (col - 1) + "^" * width

        if color:
            head = f"{_RED}error{_RESET}{_BOLD}: {self.message}{_RESET}"
            arrow = f"{_BLUE}{gutter}-->{_RESET}"
            bar = f"{_BLUE}{gutter} |{_RESET}"
            num = f"{_BLUE}{line} |{_RESET}"
            mark = f"{_RED}{carets} {self.message}{_RESET}"
        else:
            head = f"error: {self.message}"
            arrow = f"{gutter}-->"
            bar = f"{gutter} |"
            num = f"{line} |"
            mark = f"{carets} {self.message}"

        return "\n".join([
            head,
            f"{arrow} {self.span.source.name}:{line}:{col}",
            bar,
            f"{num} {source_line}",
            f"{bar} {mark}",
        ])


class ModelError(SdlGenError):
    """Cross-reference, duplicate or metadata failure while building the model."""

    def __init__(self, module: str, name: str, message: str):
        self.module = module
        self.name = name
        self.message = message
        super().__init__(f"{module}: `{name}`: {message}")


class EmitError(SdlGenError):
    """Internal invariant violation in the emitter (a generator bug)."""

    def __init__(self, module: str, name: Optional[str], message: str):
        self.module = module
        self.name = name
        self.message = message
        where = f"{module}: `{name}`" if name else module
        super().__init__(f"{where}: {message}")

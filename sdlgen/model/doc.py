"""
Doc comment rendering.

Turns SDL's doxygen-style commands into Markdown sections and links SDL
symbols mentioned in running text.
"""

from __future__ import annotations

import re
from typing import Optional

# command -> section heading, in the order sections are emitted
SECTIONS = {
    "param": "Parameters",
    "returns": "Return value",
    "threadsafety": "Thread safety",
    "since": "Availability",
    "sa": "See also",
}

_COMMAND_RE = re.compile(r"^\\(\w+)\s*(.*)$")


def link_symbols(text: str, sym_prefix: str = "SDL_") -> str:
    """``SDL_Foo()`` and `` `SDL_FOO` `` become ``[`SDL_Foo()`]`` links."""
    pattern = re.compile(rf"`?\b({re.escape(sym_prefix)}\w+(?:\(\))?)`?")
    return pattern.sub(lambda m: f"[`{m.group(1)}`]", text)


def _format_entry(command: str, lines: list[str], sym_prefix: str) -> list[str]:
    text = " ".join(line.strip() for line in lines if line.strip())
    if command == "param":
        name, _, desc = text.partition(" ")
        return [f"- `{name}`: {link_symbols(desc.strip(), sym_prefix)}"]
    if command == "sa":
        target = text.rstrip(".")
        return [f"- [`{target}`]"]
    if command == "returns":
        return [link_symbols(f"Returns {text}", sym_prefix)]
    return [link_symbols(text, sym_prefix)]


def render_doc(text: Optional[str], sym_prefix: str = "SDL_") -> Optional[str]:
    """
    Render normalised doc comment text as Markdown.

    Args:
        text: Doc text as produced by ``DocComment.text``
        sym_prefix: Prefix of symbols that get turned into links

    Returns:
        Markdown text (no trailing newline), or None for an empty doc
    """
    if not text or not text.strip():
        return None

    body: list[str] = []
    sections: dict[str, list[tuple[str, list[str]]]] = {}
    current: Optional[list[str]] = None

    for line in text.split("\n"):
        m = _COMMAND_RE.match(line.strip())
        if m is not None and m.group(1) in SECTIONS:
            current = [m.group(2)]
            sections.setdefault(m.group(1), []).append((m.group(1), current))
            continue
        if current is not None:
            if line.strip():
                current.append(line)
                continue
            current = None
        body.append(line)

    while body and not body[-1].strip():
        body.pop()
    out = [link_symbols(line, sym_prefix) for line in body]

    for command, heading in SECTIONS.items():
        entries = sections.get(command)
        if not entries:
            continue
        if out:
            out.append("")
        out.append(f"## {heading}")
        for cmd, lines in entries:
            out.extend(_format_entry(cmd, lines, sym_prefix))

    return "\n".join(out)

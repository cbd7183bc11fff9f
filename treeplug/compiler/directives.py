"""Extraction of reference directives from the head of module source.

A directive is a line of the form ``#r name`` or ``#r "name.py"``.  Only the
unbroken run of blank and directive lines at the start of the source is
scanned; the first line of code ends the scan, so a directive appearing
after code is ordinary comment text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

DIRECTIVE_MARKER = "#r"


@dataclass(frozen=True)
class DirectiveScan:
    """Result of scanning source for leading directives."""

    references: list[str] = field(default_factory=list)
    body: str = ""
    line_offset: int = 0


def parse_directive(line: str) -> str | None:
    """Return the reference name requested by a directive line, or None."""
    if not line.startswith(DIRECTIVE_MARKER):
        return None
    return line[len(DIRECTIVE_MARKER):].strip().strip('"')


def extract_directives(source: str) -> DirectiveScan:
    """Split source into its leading reference names and the remaining body."""
    # only \n ends a line for the tokenizer; \x0c, \x85 and \u2028 do not
    lines = [line for line in re.split(r"(?<=\n)", source) if line]
    references: list[str] = []

    index = 0
    while index < len(lines):
        line = lines[index]
        if line.strip():
            name = parse_directive(line.rstrip("\r\n"))
            if name is None:
                break
            if name:
                references.append(name)
        index += 1

    return DirectiveScan(
        references=references,
        body="".join(lines[index:]),
        line_offset=index,
    )

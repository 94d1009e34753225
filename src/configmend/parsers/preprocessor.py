"""
Configmend PREPROCESSOR
-----------------------
Whitespace normalization and the line helpers every repair stage shares.

Policy (fixed, not configurable):
- CRLF / CR line endings become LF
- each tab becomes exactly two spaces
- trailing whitespace is stripped from every line
"""

from typing import List, Optional

TAB_WIDTH = 2
LIST_MARKER = "- "


def preprocess(text: str) -> str:
    """Normalizes line endings, tabs and trailing whitespace. Idempotent."""
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = text.replace("\t", " " * TAB_WIDTH)
    return "\n".join(line.rstrip(" \t") for line in text.split("\n"))


def leading_indent(line: str) -> int:
    """Count of leading space characters."""
    return len(line) - len(line.lstrip(" "))


def even_indent(width: int) -> int:
    """Rounds odd widths down by one; never negative."""
    if width % 2 != 0:
        width -= 1
    return max(width, 0)


def is_blank(line: str) -> bool:
    return not line.strip()


def is_list_item(trimmed: str) -> bool:
    return trimmed.startswith(LIST_MARKER) or trimmed == "-"


def reindent(line: str, width: int) -> str:
    """Rewrites the leading whitespace of a line without touching its content."""
    return (" " * width) + line.strip()


def previous_non_blank(lines: List[str], index: int) -> Optional[int]:
    """Index of the closest non-blank line above `index`, or None."""
    prev = index - 1
    while prev >= 0 and is_blank(lines[prev]):
        prev -= 1
    return prev if prev >= 0 else None

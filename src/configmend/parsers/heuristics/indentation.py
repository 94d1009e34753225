"""
Configmend INDENTATION HEURISTICS
---------------------------------
Line-level building blocks for the deterministic Fixer and the
Suggestion Generator:

- reindent_document: whole-document snap-to-grid pass with the
  "children sit deeper than their key" floor.
- insert_list_marker: single-line rewrite for missing '-' indicators.
- candidate_indents / candidate_lines / windowed_search: bounded
  generate-and-test search that re-indents exactly one line at a time.

The search is a documented heuristic, not a grammar solver: a bounded
candidate set per line (at most a dozen widths, clamped to [0, 40]) and
a bounded window (±2 lines around the reported line, ±5 lines for
sibling widths). First candidate that parses wins, in generation order.
"""

import logging
from typing import Callable, Iterator, List, NamedTuple, Optional, Tuple

from configmend.models import Parsed, ParseOutcome
from configmend.parsers.preprocessor import (
    LIST_MARKER,
    even_indent,
    is_blank,
    is_list_item,
    leading_indent,
    previous_non_blank,
    reindent,
)

logger = logging.getLogger("configmend.heuristics.indentation")

BASE_INDENTS = (0, 2, 4, 6)
MAX_INDENT = 40
ERROR_WINDOW = 2
SIBLING_WINDOW = 5


class SearchHit(NamedTuple):
    index: int            # 0-based line that was re-indented
    width: int
    lines: List[str]      # full document with the substitution applied
    outcome: Parsed


# ============================================================================
# WHOLE-DOCUMENT PASS
# ============================================================================

def reindent_document(lines: List[str]) -> List[str]:
    """
    Rounds every non-blank line's indent down to an even width, then
    enforces a +2 floor below any line ending with a colon (mapping
    keys and `- item` entries alike). Blank lines are kept empty so
    line numbers stay aligned with the source.
    """
    fixed: List[str] = []
    prev_width: Optional[int] = None
    prev_trimmed = ""

    for raw in lines:
        if is_blank(raw):
            fixed.append("")
            continue

        trimmed = raw.strip()
        width = even_indent(leading_indent(raw))

        if prev_width is not None and prev_trimmed.endswith(":") and width < prev_width + 2:
            width = prev_width + 2

        fixed.append(reindent(trimmed, width))
        prev_width, prev_trimmed = width, trimmed

    return fixed


# ============================================================================
# MISSING LIST INDICATOR
# ============================================================================

def insert_list_marker(lines: List[str], line_no: int) -> Optional[List[str]]:
    """
    Rewrites the reported 1-based line as a list item indented two
    columns deeper than the previous non-blank line. Returns a new
    line list, or None when the rewrite does not apply.
    """
    idx = line_no - 1
    if idx < 0 or idx >= len(lines):
        return None

    trimmed = lines[idx].strip()
    if not trimmed or trimmed.startswith("-"):
        return None

    prev = previous_non_blank(lines, idx)
    prev_width = leading_indent(lines[prev]) if prev is not None else 0

    candidate = list(lines)
    candidate[idx] = (" " * (prev_width + 2)) + LIST_MARKER + trimmed
    return candidate


# ============================================================================
# WINDOWED SEARCH
# ============================================================================

def candidate_indents(lines: List[str], idx: int) -> List[int]:
    """
    Widths to try for line `idx`, in order:
    base grid, parent + 2, parent + 4 (list-item parent), then the width
    and width + 2 of every mapping-looking line within the sibling window.
    """
    widths = list(BASE_INDENTS)

    parent = previous_non_blank(lines, idx)
    if parent is not None:
        parent_width = leading_indent(lines[parent])
        widths.append(parent_width + 2)
        if is_list_item(lines[parent].strip()):
            widths.append(parent_width + 4)

    for k in range(idx - SIBLING_WINDOW, idx + SIBLING_WINDOW + 1):
        if k < 0 or k >= len(lines) or k == idx or is_blank(lines[k]):
            continue
        if ":" in lines[k]:
            sibling_width = leading_indent(lines[k])
            widths.extend((sibling_width, sibling_width + 2))

    seen = set()
    ordered = []
    for w in widths:
        if 0 <= w <= MAX_INDENT and w not in seen:
            seen.add(w)
            ordered.append(w)
    return ordered


def candidate_lines(lines: List[str], reported_line: Optional[int]) -> List[int]:
    """
    0-based indexes of lines to re-indent: the ±2 window around the
    reported 1-based line, or every line containing a colon when the
    parser did not report one.
    """
    if reported_line is not None:
        center = reported_line - 1
        return [j for j in range(center - ERROR_WINDOW, center + ERROR_WINDOW + 1) if 0 <= j < len(lines)]
    return [i for i, line in enumerate(lines) if ":" in line]


def iter_single_line_variants(lines: List[str], reported_line: Optional[int]) -> Iterator[Tuple[int, int, List[str]]]:
    """Yields (line index, width, variant lines) for every single-line substitution, in search order."""
    for idx in candidate_lines(lines, reported_line):
        trimmed = lines[idx].strip()
        if not trimmed or ":" not in trimmed:
            continue

        widths = candidate_indents(lines, idx)
        logger.debug(f"Windowed search: line {idx + 1} candidates {widths} ({trimmed!r})")
        for width in widths:
            variant = list(lines)
            variant[idx] = reindent(trimmed, width)
            yield idx, width, variant


def windowed_search(
    lines: List[str],
    reported_line: Optional[int],
    parse: Callable[[str], ParseOutcome],
) -> Optional[SearchHit]:
    """
    Returns the first single-line substitution whose text parses,
    or None when no candidate on any line works.
    """
    for idx, width, variant in iter_single_line_variants(lines, reported_line):
        outcome = parse("\n".join(variant))
        if outcome.ok:
            logger.info(f"Windowed search: success on line {idx + 1} with indent {width}")
            return SearchHit(idx, width, variant, outcome)
    return None

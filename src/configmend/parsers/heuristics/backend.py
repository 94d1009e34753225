from typing import Iterator, List, Tuple

from configmend.models import Confidence, Failed, Suggestion
from configmend.parsers.heuristics.base import SuggestionStrategy
from configmend.parsers.preprocessor import is_blank, leading_indent, reindent


def realign_children(lines: List[str], idx: int, desired: int) -> Tuple[List[str], int, bool]:
    """
    Scans forward from the parent at `idx` until a blank line or a list item
    at the parent's indent or shallower, moving every `key:` line found to
    `desired`. Returns (modified copy, first unscanned index, changed).
    """
    parent_width = leading_indent(lines[idx])
    modified = list(lines)
    changed = False

    j = idx + 1
    while j < len(lines):
        line = lines[j]
        if is_blank(line):
            break
        trimmed = line.strip()
        width = leading_indent(line)
        if trimmed.startswith("-") and width <= parent_width:
            break
        if ":" in trimmed and width != desired:
            modified[j] = reindent(trimmed, desired)
            changed = True
        j += 1

    return modified, j, changed


class ListItemBackendStrategy(SuggestionStrategy):
    """
    `- backend:` list items (ingress rule shape) whose fields sit at the
    list item's own indent instead of list indent + 4.
    """

    requires_indentation_error = True

    @property
    def name(self) -> str:
        return "list_item_backend"

    @property
    def confidence(self) -> Confidence:
        return Confidence.HIGH

    def candidates(self, lines: List[str], failure: Failed) -> Iterator[Suggestion]:
        for idx, line in enumerate(lines):
            trimmed = line.strip()
            if not (trimmed.startswith("- backend") and "backend:" in trimmed):
                continue

            modified, end, changed = realign_children(lines, idx, leading_indent(line) + 4)
            if not changed:
                continue

            # The ancestor `paths:` key is already visible to the reviewer
            snippet = [l for l in modified[idx:end] if l.strip() != "paths:"]
            yield self._suggestion(
                "Align mapping fields under `backend` list item", snippet, idx + 1, end
            )


class BackendFallbackStrategy(SuggestionStrategy):
    """Any `backend:` key, children realigned to parent + 2."""

    @property
    def name(self) -> str:
        return "backend_fallback"

    @property
    def confidence(self) -> Confidence:
        return Confidence.MEDIUM

    def candidates(self, lines: List[str], failure: Failed) -> Iterator[Suggestion]:
        for idx, line in enumerate(lines):
            if "backend:" not in line:
                continue

            modified, end, changed = realign_children(lines, idx, leading_indent(line) + 2)
            if not changed:
                continue

            # One line of context above the parent
            start = idx - 1 if idx >= 1 else idx
            yield self._suggestion("Align mapping fields under `backend`", modified[start:end], start + 1, end)

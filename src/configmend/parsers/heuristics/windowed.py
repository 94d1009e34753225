from typing import Iterator, List

from configmend.models import Confidence, Failed, Suggestion
from configmend.parsers.heuristics.base import SuggestionStrategy
from configmend.parsers.heuristics.indentation import ERROR_WINDOW, iter_single_line_variants


class WindowedIndentStrategy(SuggestionStrategy):
    """
    Same candidate generation as the Fixer's windowed search; every
    single-line variant is offered as a preview spanning two lines either
    side of the re-indented line.
    """

    requires_indentation_error = True

    @property
    def name(self) -> str:
        return "windowed_indent"

    @property
    def confidence(self) -> Confidence:
        return Confidence.HIGH

    def candidates(self, lines: List[str], failure: Failed) -> Iterator[Suggestion]:
        for idx, width, variant in iter_single_line_variants(lines, failure.line):
            start = max(idx - ERROR_WINDOW, 0)
            end = min(idx + ERROR_WINDOW, len(variant) - 1)
            yield self._suggestion(
                f"Align indent at line {idx + 1} to {width} spaces",
                variant[start:end + 1],
                start + 1,
                end + 1,
            )

from abc import ABC, abstractmethod
from typing import Iterator, List

from configmend.models import Confidence, Failed, Suggestion


class SuggestionStrategy(ABC):
    """
    Abstract strategy for one suggestion detector.
    Strategies look at a copy of the document lines and never apply anything.
    """

    # Only run when the parser failure is an indentation-class error
    requires_indentation_error: bool = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this strategy."""
        pass

    @property
    @abstractmethod
    def confidence(self) -> Confidence:
        """Fixed confidence label of every suggestion this strategy emits."""
        pass

    def applies_to(self, failure: Failed) -> bool:
        return not self.requires_indentation_error or failure.kind.is_indentation

    @abstractmethod
    def candidates(self, lines: List[str], failure: Failed) -> Iterator[Suggestion]:
        """
        Proposes suggestions lazily, in preference order.

        Args:
            lines: The preprocessed document lines (read-only)
            failure: The parse failure that triggered the suggestion run

        Yields:
            Unverified suggestions; the generator keeps the first one whose
            substitution reparses.
        """
        pass

    def _suggestion(self, description: str, snippet_lines: List[str], start: int, end: int) -> Suggestion:
        return Suggestion(
            description=description,
            confidence=self.confidence,
            snippet="\n".join(snippet_lines),
            start_line=start,
            end_line=end,
            strategy=self.name,
        )

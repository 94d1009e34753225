#!/usr/bin/env python3
"""
Configmend SUGGESTION GENERATOR
-------------------------------
Invoked when the Fixer gives up. Produces at most one human-reviewable
Suggestion and never touches the real document.

Strategy order (first verified suggestion wins):
  1. list_item_backend - `- backend:` fields realigned to list indent + 4 (high)
  2. windowed_indent   - Fixer windowed search, previewed ±2 lines (high)
  3. backend_fallback  - any `backend:` key, fields at parent + 2 (medium)

Strategies 1 and 2 only run for indentation-class parser errors.
A candidate is returned only if its snippet, substituted into its stated
line range, makes the whole document parse.
"""

import logging
from typing import List, Optional

from configmend.models import Failed, Suggestion
from configmend.parsers.heuristics.backend import BackendFallbackStrategy, ListItemBackendStrategy
from configmend.parsers.heuristics.base import SuggestionStrategy
from configmend.parsers.heuristics.windowed import WindowedIndentStrategy
from configmend.parsers.preprocessor import preprocess
from configmend.parsers.structural import parse_yaml

logger = logging.getLogger("configmend.suggestions")


class SuggestionGenerator:
    """Runs the registered strategies in order over a copy of the document lines."""

    def __init__(self, strategies: Optional[List[SuggestionStrategy]] = None):
        self.strategies = strategies if strategies is not None else [
            ListItemBackendStrategy(),
            WindowedIndentStrategy(),
            BackendFallbackStrategy(),
        ]

    def suggest(self, document_text: str, failure: Failed) -> List[Suggestion]:
        text = preprocess(document_text)
        lines = text.split("\n")

        for strategy in self.strategies:
            if not strategy.applies_to(failure):
                logger.debug(f"Suggestions: {strategy.name} skipped for {failure.kind.value} error")
                continue

            for suggestion in strategy.candidates(list(lines), failure):
                if parse_yaml(suggestion.apply_to(text), step="suggestion").ok:
                    logger.info(
                        f"Suggestions: {strategy.name} proposed lines "
                        f"{suggestion.start_line}-{suggestion.end_line} ({suggestion.confidence.value})"
                    )
                    return [suggestion]

        logger.info("Suggestions: no strategy produced a verified snippet")
        return []


_default_generator = SuggestionGenerator()


def suggest(document_text: str, failure: Failed) -> List[Suggestion]:
    """Suggestion entry point: 0 or 1 items, returned as a list."""
    return _default_generator.suggest(document_text, failure)

#!/usr/bin/env python3
"""
Configmend DETERMINISTIC REINDENT FIXER
---------------------------------------
Repairs one YAML document by rewriting leading whitespace only.

Fallback chain (first success wins):
  0. Safety gate      - multi-pair lines refuse repair outright
  1. Direct parse     - valid input comes back untouched
  2. Whole-document reindent (even widths, +2 floor under `key:` lines)
  3. Error-driven targeted search, entered only for known error classes:
     a. missing '-' indicator  -> insert a list marker on the reported line
     b. missing key / mapping values not allowed here
                                -> windowed single-line indent search

Normalization happens first and is validated once at the end of step 2,
not after each line. Step 3 works on the preprocessed source lines (not on
the step 2 output), guided by the line the step 2 parse reported.
"""

import logging
from typing import List

from configmend.core.safety import check_safety
from configmend.models import ErrorKind, Failed, ParseOutcome
from configmend.parsers.heuristics.indentation import (
    insert_list_marker,
    reindent_document,
    windowed_search,
)
from configmend.parsers.preprocessor import preprocess
from configmend.parsers.structural import parse_yaml

logger = logging.getLogger("configmend.fixer")


class ReindentFixer:
    """
    Runs the deterministic fallback chain over a single document.
    Stateless: every attempt works on its own copy of the lines.
    """

    def repair(self, document_text: str) -> ParseOutcome:
        # --- STEP 0: SAFETY GATE ---
        verdict = check_safety(document_text)
        if not verdict.safe:
            return Failed(f"auto-fix disabled: {verdict.reason}", verdict.line, ErrorKind.UNSAFE)

        # --- STEP 1: DIRECT PARSE ---
        outcome = parse_yaml(document_text, step="direct")
        if outcome.ok:
            return outcome

        # --- STEP 2: WHOLE-DOCUMENT REINDENT ---
        lines = preprocess(document_text).split("\n")
        outcome = parse_yaml("\n".join(reindent_document(lines)), step="reindent")
        if outcome.ok:
            logger.info("Fixer: whole-document reindent succeeded")
            return outcome

        failure: Failed = outcome
        logger.debug(f"Fixer: parser error after reindent: {failure.message} (line {failure.line})")

        # --- STEP 3a: MISSING LIST INDICATOR ---
        if failure.kind == ErrorKind.MISSING_LIST_INDICATOR and failure.line is not None:
            outcome = self._insert_marker(lines, failure.line)
            if outcome.ok:
                return outcome

        # --- STEP 3b: WINDOWED INDENT SEARCH ---
        if failure.kind in (ErrorKind.MISSING_KEY, ErrorKind.MAPPING_NOT_ALLOWED):
            hit = windowed_search(lines, failure.line, lambda text: parse_yaml(text, step="search"))
            if hit:
                return hit.outcome

        logger.info(f"Fixer: no deterministic repair found ({failure.message})")
        return failure

    def _insert_marker(self, lines: List[str], line_no: int) -> ParseOutcome:
        candidate = insert_list_marker(lines, line_no)
        if candidate is None:
            return Failed("list marker not applicable", line_no)
        outcome = parse_yaml("\n".join(candidate), step="list-marker")
        if outcome.ok:
            logger.info(f"Fixer: inserted list marker at line {line_no}")
        return outcome


_default_fixer = ReindentFixer()


def repair(document_text: str) -> ParseOutcome:
    """Repair entry point: one already-split document in, ParseOutcome out."""
    return _default_fixer.repair(document_text)

"""
Configmend LIGHTWEIGHT JSON REPAIRER
------------------------------------
Exactly two textual substitutions, then one reparse:
- a comma directly before a closing `}` or `]` is dropped
- single-quoted mapping keys become double-quoted
No search, no line-level reasoning.
"""

import logging
import re

from configmend.models import ParseOutcome
from configmend.parsers.structural import parse_json

logger = logging.getLogger("configmend.parsers.json_repair")

TRAILING_COMMA_RE = re.compile(r",(\s*[}\]])")
SINGLE_QUOTED_KEY_RE = re.compile(r"'([^']*)'(\s*):")


def repair_json(text: str) -> ParseOutcome:
    outcome = parse_json(text, step="direct")
    if outcome.ok:
        return outcome

    candidate = TRAILING_COMMA_RE.sub(r"\1", text)
    candidate = SINGLE_QUOTED_KEY_RE.sub(r'"\1"\2:', candidate)

    repaired = parse_json(candidate, step="json-repair")
    if repaired.ok:
        logger.info("JSON repair: substitutions produced a parseable payload")
        return repaired

    # Report the original failure, not the one from the rewritten text
    return outcome

"""
Configmend SAFETY GATE
----------------------
Refuses auto-fix for lines that carry more than one `key: value` pair.

Only `token:` followed by whitespace counts as a mapping pair, so colons
inside values such as image tags (`image: nginx:1.14.2`) are not flagged.
Flow mappings on one line (`a: {b: 1, c: 2}`) count as several pairs.
"""

import logging
import re

from configmend.models import SafetyVerdict

logger = logging.getLogger("configmend.safety")

MAPPING_PAIR_RE = re.compile(r"[A-Za-z0-9_.-]+:\s")


def count_mapping_pairs(line: str) -> int:
    return len(MAPPING_PAIR_RE.findall(line.strip()))


def check_safety(text: str) -> SafetyVerdict:
    """Scans every non-empty, non-comment line; the first multi-pair line makes the text unsafe."""
    for line_no, line in enumerate(text.split("\n"), start=1):
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue
        if count_mapping_pairs(trimmed) > 1:
            reason = f"line {line_no} contains multiple key:value pairs"
            logger.info(f"Safety gate: {reason}")
            return SafetyVerdict(safe=False, reason=reason, line=line_no)
    return SafetyVerdict(safe=True)

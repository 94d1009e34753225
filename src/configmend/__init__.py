"""
Configmend
----------
Structural auto-repair and suggestion engine for YAML/JSON configuration.
"""

__version__ = "0.1.0"

from configmend.core.fixer import repair
from configmend.core.safety import check_safety
from configmend.core.suggestions import suggest
from configmend.parsers.detector import detect_format
from configmend.parsers.json_repair import repair_json
from configmend.parsers.splitter import split_documents

__all__ = [
    "__version__",
    "check_safety",
    "detect_format",
    "repair",
    "repair_json",
    "split_documents",
    "suggest",
]

#!/usr/bin/env python3
"""
CONFIGMEND CORE MODELS
----------------------
Defines the data contract shared by the Fixer, the Suggestion Generator
and the Healing Pipeline.

- ParseOutcome: tagged result of a structural parse (Parsed | Failed).
- Suggestion:   a non-applied, human-reviewable replacement snippet.
- SafetyVerdict: result of the multi-mapping safety scan.
- HealReport:   the structured result handed to every caller (CLI, engine).

Author: Configmend Team
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# ============================================================================
# ENUMERATIONS
# ============================================================================

class Confidence(str, Enum):
    """Confidence label attached to every Suggestion."""
    LOW = "low"          # external suggester output, not produced by the search
    MEDIUM = "medium"    # broad fallback detectors, auto-fix disabled snippets
    HIGH = "high"        # pattern detectors and single-match windowed search


class ErrorKind(str, Enum):
    """Classification of a structural parser error."""
    MISSING_LIST_INDICATOR = "missing-list-indicator"
    MISSING_KEY = "missing-key"
    MAPPING_NOT_ALLOWED = "mapping-not-allowed"
    DUPLICATE_KEY = "duplicate-key"
    ROOT_TYPE = "root-type"
    UNSAFE = "unsafe"
    OTHER = "other"

    @property
    def is_indentation(self) -> bool:
        """True for the error classes the indentation search knows how to target."""
        return self in {
            ErrorKind.MISSING_LIST_INDICATOR,
            ErrorKind.MISSING_KEY,
            ErrorKind.MAPPING_NOT_ALLOWED,
        }


class Status:
    """Report status codes."""
    VALID = "VALID"
    FIXABLE = "FIXABLE"
    FIXED = "FIXED"
    SUGGESTED = "SUGGESTED"
    MANUAL_REVIEW = "MANUAL_REVIEW"
    REFUSED = "REFUSED"


# ============================================================================
# PARSE OUTCOME
# ============================================================================

@dataclass
class Parsed:
    """
    Successful structural parse.

    `text` is the exact text that parsed (the repaired document when a
    repair step produced it), `step` names the step that succeeded.
    """
    structure: Any
    text: str = ""
    step: str = "direct"

    @property
    def ok(self) -> bool:
        return True


@dataclass
class Failed:
    """Structural parse failure with the parser message and 1-based reported line."""
    message: str
    line: Optional[int] = None
    kind: ErrorKind = ErrorKind.OTHER

    @property
    def ok(self) -> bool:
        return False


ParseOutcome = Union[Parsed, Failed]


# ============================================================================
# SUGGESTIONS & VERDICTS
# ============================================================================

@dataclass
class Suggestion:
    """
    A proposed replacement for lines [start_line, end_line] (1-based, inclusive)
    of one document. Never applied automatically.
    """
    description: str
    confidence: Confidence
    snippet: str
    start_line: int
    end_line: int
    strategy: str = ""
    document: Optional[int] = None

    def apply_to(self, document_text: str) -> str:
        """Returns the document with the stated line range replaced by the snippet."""
        lines = document_text.split("\n")
        replaced = lines[:self.start_line - 1] + self.snippet.split("\n") + lines[self.end_line:]
        return "\n".join(replaced)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "description": self.description,
            "confidence": self.confidence.value,
            "snippet": self.snippet,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "strategy": self.strategy,
        }
        if self.document is not None:
            data["document"] = self.document
        return data


@dataclass
class SafetyVerdict:
    safe: bool
    reason: Optional[str] = None
    line: Optional[int] = None


# ============================================================================
# REPORTING
# ============================================================================

@dataclass
class Issue:
    """A single validation finding surfaced to the caller."""
    message: str
    severity: str = "error"      # error, warning
    type: str = "syntax"         # syntax, autofix, template, schema
    line: int = 0
    column: int = 0
    document: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "severity": self.severity,
            "type": self.type,
            "line": self.line,
            "column": self.column,
            "document": self.document,
        }


@dataclass
class Change:
    """A content change made by schema-aware fixing (not by reindentation)."""
    line: int
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {"line": self.line, "description": self.description}


@dataclass
class HealReport:
    """
    The structured result of one check/fix run over a whole input.
    Callers always receive one of these; malformed input never raises.
    """
    format: str
    status: str = Status.VALID
    is_valid: bool = True
    can_auto_fix: bool = True
    fixed_content: Optional[str] = None
    explanation: str = ""
    issues: List[Issue] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    changes: List[Change] = field(default_factory=list)
    logic_logs: List[str] = field(default_factory=list)

    @property
    def needs_manual_review(self) -> bool:
        return self.status == Status.MANUAL_REVIEW

    def add_issue(self, issue: Issue) -> None:
        self.issues.append(issue)
        if issue.severity == "error":
            self.is_valid = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "status": self.status,
            "is_valid": self.is_valid,
            "can_auto_fix": self.can_auto_fix,
            "fixed_content": self.fixed_content,
            "explanation": self.explanation,
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "changes": [c.to_dict() for c in self.changes],
            "logic_logs": list(self.logic_logs),
        }

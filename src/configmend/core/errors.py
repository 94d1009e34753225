"""
Configmend ERROR TAXONOMY
-------------------------
Exceptions raised inside the core. None of them cross the public
`repair` / `suggest` entry points: they are converted into tagged
outcomes (Failed) or report issues at the boundary.
"""

from typing import Optional

from configmend.models import ErrorKind


class ConfigmendError(Exception):
    """Base class for all configmend errors."""


class StructuralSyntaxError(ConfigmendError):
    """
    The structural parser rejected the text.

    Carries the parser's message, the 1-based line it reported (when it
    could be extracted) and the error classification used to drive
    targeted indentation search.
    """

    def __init__(self, message: str, line: Optional[int] = None, kind: ErrorKind = ErrorKind.OTHER):
        super().__init__(message)
        self.message = message
        self.line = line
        self.kind = kind

    def __str__(self) -> str:
        if self.line is not None:
            return f"line {self.line}: {self.message}"
        return self.message


class SuggesterError(ConfigmendError):
    """The external suggestion service could not be reached or answered garbage."""

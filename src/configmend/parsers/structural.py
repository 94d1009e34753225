"""
Configmend STRUCTURAL PARSER ADAPTER
------------------------------------
Wraps the black-box structural parsers:
- YAML: ruamel.yaml round-trip loader, pure-Python build (stable error wording
  whether or not the C extension is installed; comments survive a dump).
- JSON: standard library json.

Every repair attempt in the core funnels through `parse_yaml` / `parse_json`,
which never raise for malformed input and return a tagged ParseOutcome.
"""

import json
import logging
import re
from io import StringIO
from typing import Any, List, Optional

from ruamel.yaml import YAML
from ruamel.yaml.error import MarkedYAMLError, YAMLError

from configmend.core.errors import StructuralSyntaxError
from configmend.models import ErrorKind, Failed, Parsed, ParseOutcome

logger = logging.getLogger("configmend.parsers.structural")

_LINE_RE = re.compile(r"line (\d+)")


def _new_loader() -> YAML:
    # One instance per call: ruamel loaders keep per-stream state
    yaml = YAML(typ="rt", pure=True)
    yaml.preserve_quotes = True
    return yaml


def _new_dumper() -> YAML:
    yaml = YAML(typ="rt", pure=True)
    yaml.preserve_quotes = True
    yaml.indent(mapping=2, sequence=4, offset=2)
    yaml.width = 4096
    return yaml


# ============================================================================
# ERROR CLASSIFICATION
# ============================================================================

def classify_error(context: Optional[str], problem: Optional[str]) -> ErrorKind:
    """
    Maps parser wording onto the error classes targeted search understands.
    Covers both the pure-Python wording and the libyaml wording.
    """
    context = context or ""
    problem = problem or ""

    if "did not find expected '-' indicator" in problem:
        return ErrorKind.MISSING_LIST_INDICATOR
    if "did not find expected key" in problem:
        return ErrorKind.MISSING_KEY
    if "mapping values are not allowed" in problem:
        return ErrorKind.MAPPING_NOT_ALLOWED
    if "expected <block end>" in problem:
        if "block collection" in context:
            return ErrorKind.MISSING_LIST_INDICATOR
        if "block mapping" in context:
            return ErrorKind.MISSING_KEY
    if "duplicate key" in problem or "duplicate key" in context:
        return ErrorKind.DUPLICATE_KEY
    return ErrorKind.OTHER


def _to_syntax_error(exc: YAMLError) -> StructuralSyntaxError:
    if isinstance(exc, MarkedYAMLError):
        parts = [p for p in (exc.context, exc.problem) if p]
        message = ": ".join(parts) if parts else str(exc).splitlines()[0]
        line = None
        if exc.problem_mark is not None:
            line = exc.problem_mark.line + 1
        elif exc.context_mark is not None:
            line = exc.context_mark.line + 1
        return StructuralSyntaxError(message, line, classify_error(exc.context, exc.problem))

    text = str(exc)
    match = _LINE_RE.search(text)
    line = int(match.group(1)) if match else None
    return StructuralSyntaxError(text.splitlines()[0] if text else type(exc).__name__, line)


# ============================================================================
# YAML
# ============================================================================

def load_yaml(text: str) -> Any:
    """
    Parses one YAML document.

    Returns the mapping root (or None for an empty document).
    Raises StructuralSyntaxError for anything the parser rejects and for
    non-mapping roots.
    """
    try:
        structure = _new_loader().load(text)
    except YAMLError as e:
        raise _to_syntax_error(e) from e

    if structure is not None and not isinstance(structure, dict):
        raise StructuralSyntaxError(
            f"document root is a {type(structure).__name__}, expected a mapping",
            1,
            ErrorKind.ROOT_TYPE,
        )
    return structure


def parse_yaml(text: str, step: str = "direct") -> ParseOutcome:
    try:
        return Parsed(load_yaml(text), text=text, step=step)
    except StructuralSyntaxError as e:
        logger.debug(f"YAML parse failed at step '{step}': {e} [{e.kind.value}]")
        return Failed(e.message, e.line, e.kind)


def dump_yaml(documents: List[Any]) -> str:
    """Serializes one or more documents; multiple documents are separated by `---`."""
    if not documents:
        return ""

    output = StringIO()
    try:
        yaml = _new_dumper()
        if len(documents) > 1:
            yaml.dump_all(documents, output)
        else:
            yaml.dump(documents[0], output)
        return output.getvalue()
    finally:
        output.close()


# ============================================================================
# JSON
# ============================================================================

def load_json(text: str) -> Any:
    """Parses a JSON payload whose root is an object or array."""
    try:
        structure = json.loads(text)
    except json.JSONDecodeError as e:
        raise StructuralSyntaxError(e.msg, e.lineno) from e

    if not isinstance(structure, (dict, list)):
        raise StructuralSyntaxError(
            f"document root is a {type(structure).__name__}, expected an object or array",
            1,
            ErrorKind.ROOT_TYPE,
        )
    return structure


def parse_json(text: str, step: str = "direct") -> ParseOutcome:
    try:
        return Parsed(load_json(text), text=text, step=step)
    except StructuralSyntaxError as e:
        return Failed(e.message, e.line, e.kind)


def dump_json(structure: Any) -> str:
    return json.dumps(structure, indent=2, ensure_ascii=False) + "\n"

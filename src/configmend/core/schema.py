"""
Configmend MINIMAL SCHEMA CHECKS
--------------------------------
Per-document rules applied after a document parses:
- refusals: shapes that need human judgement (auto-fix is refused)
- kubernetes: required identity fields, and `metadata.name` backfill in fix mode
- helm: template markers downgrade to a warning

Nothing here validates values; only presence of top-level identity fields.
"""

import logging
import time
from typing import Any, List, Optional

from ruamel.yaml.comments import CommentedMap

logger = logging.getLogger("configmend.schema")

KUBERNETES = "kubernetes"
HELM = "helm"
SUPPORTED_SCHEMAS = (KUBERNETES, HELM)

IDENTITY_FIELDS = ("apiVersion", "kind")

MISSING_METADATA = "missing required field: metadata"
MISSING_METADATA_NAME = "metadata.name is required"

# Fix mode fills these in, so they never block a repair
BACKFILLED = (MISSING_METADATA, MISSING_METADATA_NAME)


def refusal_reason(structure: Any) -> Optional[str]:
    """Returns the refusal message for documents the Fixer must not rewrite, else None."""
    if not isinstance(structure, dict):
        return None

    if "metadata" in structure and structure["metadata"] is None:
        return "auto-fix refused: `metadata` is null. Please correct the document manually."

    if "name" in structure:
        metadata = structure.get("metadata")
        if not isinstance(metadata, dict) or metadata.get("name") is None:
            return "auto-fix refused: top-level `name` detected. Move `name` into `metadata.name` manually."

    return None


def missing_required_fields(structure: Any) -> List[str]:
    """Kubernetes identity checks, one message per missing field."""
    if not isinstance(structure, dict):
        return []

    messages = [f"missing required field: {key}" for key in IDENTITY_FIELDS if key not in structure]
    if "metadata" not in structure:
        messages.append(MISSING_METADATA)
    elif structure["metadata"] is not None and not isinstance(structure["metadata"], dict):
        messages.append("metadata must be a mapping")
    elif not structure["metadata"] or structure["metadata"].get("name") is None:
        messages.append(MISSING_METADATA_NAME)
    return messages


def autofix_name(doc_number: int, now: Optional[float] = None) -> str:
    stamp = int(now if now is not None else time.time())
    return f"autofix-{stamp}-{doc_number}"


def ensure_metadata_name(structure: Any, doc_number: int, now: Optional[float] = None) -> Optional[str]:
    """
    Fills a missing `metadata.name` in place.

    Returns the generated name, or None when nothing was added. A
    `metadata` key holding a non-mapping value is left alone.
    """
    if not isinstance(structure, dict):
        return None

    if "metadata" not in structure:
        name = autofix_name(doc_number, now)
        metadata = CommentedMap()
        metadata["name"] = name
        _insert_after_identity(structure, "metadata", metadata)
        logger.info(f"Schema: added metadata block with name {name}")
        return name

    metadata = structure["metadata"]
    if isinstance(metadata, dict) and metadata.get("name") is None:
        name = autofix_name(doc_number, now)
        if isinstance(metadata, CommentedMap) and "name" not in metadata:
            metadata.insert(0, "name", name)
        else:
            metadata["name"] = name
        logger.info(f"Schema: added metadata.name {name}")
        return name

    return None


def _insert_after_identity(structure: dict, key: str, value: Any) -> None:
    if not isinstance(structure, CommentedMap):
        structure[key] = value
        return

    keys = list(structure.keys())
    position = 0
    for anchor in ("apiVersion", "kind"):
        if anchor in keys:
            position = max(position, keys.index(anchor) + 1)
    structure.insert(position, key, value)

"""
Configmend FORMAT DETECTOR
--------------------------
Cheap structural sniffing. Never parses the content.
"""

JSON = "json"
YAML = "yaml"


def detect_format(text: str) -> str:
    """Returns 'json' when the first non-whitespace character opens an object or array."""
    trimmed = text.lstrip()
    if trimmed.startswith("{") or trimmed.startswith("["):
        return JSON
    return YAML


def contains_template_markers(text: str) -> bool:
    """Helm / Go template markers make indentation repair meaningless."""
    return "{{" in text and "}}" in text

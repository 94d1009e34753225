"""
Configmend DOCUMENT SPLITTER
----------------------------
Splits a multi-document YAML stream on bare `---` separator lines.
"""

from typing import List

DOCUMENT_SEPARATOR = "---"


def split_documents(text: str) -> List[str]:
    """
    Returns the documents of a YAML stream in source order.

    Lines are split on LF only, so other Unicode line breaks inside
    scalars survive. A line whose trimmed content is exactly `---` closes
    the current document. Empty trailing fragments are dropped; a non-empty final
    fragment is kept even without a closing separator.
    """
    docs: List[str] = []
    current: List[str] = []

    lines = text.split("\n")
    # A final newline terminates the last line rather than opening a new one
    if text.endswith("\n"):
        lines.pop()

    for line in lines:
        if line.strip() == DOCUMENT_SEPARATOR:
            docs.append("\n".join(current))
            current = []
            continue
        current.append(line)

    if current:
        docs.append("\n".join(current))

    # Drop empty trailing fragments only; leading/inner empties keep numbering stable
    while docs and not docs[-1].strip():
        docs.pop()

    return docs

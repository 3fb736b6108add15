"""Display helpers for request previews."""

from __future__ import annotations

import re

_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])|[_\-\s]+")


def camel_case_to_display(value: str) -> str:
    """
    Split a camelCase (or snake_case) identifier into capitalized words.

    >>> camel_case_to_display("listTables")
    'List Tables'
    >>> camel_case_to_display("batch_get_item")
    'Batch Get Item'
    """
    if not value:
        return ""
    words = [w for w in _BOUNDARY.split(str(value)) if w]
    return " ".join(w[:1].upper() + w[1:] for w in words)

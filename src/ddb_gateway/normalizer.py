"""
Lenient JSON parsing for action bodies.

``parse`` never raises. A body that is not valid JSON comes back as ``Raw``
holding the original text, so the dispatcher still attempts the call and the
remote service reports what it thinks of the parameters.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Parsed:
    value: Any = field(default_factory=dict)


@dataclass(frozen=True)
class Raw:
    value: str = ""


ParsedParams = Union[Parsed, Raw]


def parse(raw: Optional[str], log: Optional[logging.Logger] = None) -> ParsedParams:
    """
    Parse an action body.

    Args:
        raw: The raw body string. ``None`` or whitespace parses to an empty object.
        log: Logger that records parse failures (defaults to this module's logger).

    Returns:
        ``Parsed(value)`` for valid JSON, ``Raw(raw)`` otherwise.
    """
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        return Parsed({})
    if not isinstance(raw, (str, bytes, bytearray)):
        # Already structured (a host that skipped serialization).
        return Parsed(raw)
    try:
        return Parsed(json.loads(raw))
    except (TypeError, ValueError) as e:
        (log or logger).warning(f"Action body is not valid JSON, passing it through as a string: {e}")
        return Raw(raw if isinstance(raw, str) else raw.decode("utf-8", errors="replace"))

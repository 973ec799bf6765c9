"""Clock and id-generator capabilities injected into the pipeline."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]
IdGenerator = Callable[[str], str]


def utc_now() -> datetime:
    """Return the current UTC time."""
    return datetime.now(timezone.utc)


def uuid_id_generator(prefix: str) -> str:
    """Return a random id such as ``node-3f2a...``."""
    return f"{prefix}-{uuid.uuid4().hex}"


def isoformat(moment: datetime) -> str:
    """Format a timestamp as ISO 8601 with a ``Z`` suffix for UTC."""
    text = moment.isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text

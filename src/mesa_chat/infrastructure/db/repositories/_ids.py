from __future__ import annotations

import uuid


def parse_uuid(raw: str) -> uuid.UUID | None:
    """Client-supplied ids that are not UUIDs simply match nothing."""
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        return None

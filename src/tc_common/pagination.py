"""Cursor-based pagination utilities.

Audit logs page on their BIGSERIAL id through an opaque Base64 cursor.
Business rows (lots, holds, orders) use snowflake string ids, which sort by
creation time, so their cursor is simply the last id seen.
"""

import base64
import json
from typing import Sequence, TypeVar

T = TypeVar("T")


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


def split_page(rows: Sequence[T], limit: int) -> tuple[list[T], bool]:
    """Repositories fetch limit+1 rows to detect has_more without a COUNT(*)."""
    has_more = len(rows) > limit
    return list(rows[:limit]), has_more

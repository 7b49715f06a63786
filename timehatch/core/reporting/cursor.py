"""Opaque keyset cursors for time-entry report pagination."""

import base64
import binascii
import json
from datetime import datetime
from typing import Tuple
from uuid import UUID

from ..errors import ValidationError


def encode_cursor(started_at: datetime, entry_id: UUID) -> str:
    """Encode the position of the last row on a page."""
    payload = json.dumps({"startedAt": started_at.isoformat(), "id": str(entry_id)})
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> Tuple[datetime, UUID]:
    """
    Decode a cursor produced by `encode_cursor`.

    Raises:
        ValidationError: If the cursor is not a well-formed position
    """
    try:
        data = json.loads(base64.b64decode(cursor, validate=True).decode("utf-8"))
        return datetime.fromisoformat(data["startedAt"]), UUID(data["id"])
    except (
        binascii.Error,
        UnicodeDecodeError,
        json.JSONDecodeError,
        KeyError,
        TypeError,
        ValueError,
    ):
        raise ValidationError("Invalid cursor", {"cursor": cursor})

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from mesa_chat.domain.entities.session_token import TokenDescriptor, TokenRecord


class _Encoder(json.JSONEncoder):
    def default(self, o: object) -> Any:
        if isinstance(o, datetime):
            return o.isoformat()
        return super().default(o)


def serialize_record(record: TokenRecord) -> str:
    envelope = {
        "token": record.token,
        "descriptor": record.descriptor.to_dict(),
        "created_at": record.created_at,
        "expires_at": record.expires_at,
    }
    return json.dumps(envelope, cls=_Encoder)


def deserialize_record(raw: str | bytes) -> TokenRecord:
    data = json.loads(raw)
    return TokenRecord(
        token=data["token"],
        descriptor=TokenDescriptor.from_dict(data["descriptor"]),
        created_at=datetime.fromisoformat(data["created_at"]),
        expires_at=datetime.fromisoformat(data["expires_at"]),
    )

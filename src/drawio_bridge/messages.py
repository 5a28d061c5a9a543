"""Wire messages exchanged with editor clients.

Outbound (server -> editor), broadcast to every client:
    {"id": "req_...", "name": "add-rectangle", "payload": {...}}

Inbound (editor -> server), one per handled command:
    {"id": "req_...", "payload": {...}}     success
    {"id": "req_...", "error": {...}}       failure

Only ``id`` is checked on inbound messages. Everything else is passed
through to the waiting caller as-is.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedReplyError


class OutboundCommand(BaseModel):
    """A command broadcast to editor clients."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    payload: dict[str, Any] = Field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize to JSON."""
        return self.model_dump_json()


class InboundReply(BaseModel):
    """A reply sent back by an editor client."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    payload: Any = None
    error: Any = None

    @property
    def is_error(self) -> bool:
        """True when the editor reported a failure."""
        return self.error is not None


def parse_reply(raw: str | bytes | dict[str, Any]) -> InboundReply:
    """Parse a raw inbound message into a reply.

    Raises:
        MalformedReplyError: If the message is not JSON, not an object,
            or has no usable ``id``.
    """
    if isinstance(raw, dict):
        data: Any = raw
    else:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise MalformedReplyError(f"Invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedReplyError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        return InboundReply.model_validate(data)
    except ValidationError as e:
        raise MalformedReplyError(f"Missing or invalid 'id': {e.errors()[0]['msg']}") from e

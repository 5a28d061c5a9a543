"""Client transport contract.

A client transport is one live connection to an editor instance. The
registry only needs to send text to it and close it.
"""

from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClientTransport(Protocol):
    """Protocol for a connected editor client.

    Implementations:
    - SSETransport: push-only Server-Sent Events stream
    - WebSocketTransport: bidirectional WebSocket connection
    """

    transport_id: str
    kind: str

    @property
    def is_connected(self) -> bool:
        """Whether the connection is still usable."""
        ...

    async def send_text(self, data: str) -> None:
        """Send one serialized message to the client."""
        ...

    async def close(self) -> None:
        """Close the connection. Must be safe to call more than once."""
        ...


def new_transport_id(kind: str) -> str:
    """Create an identifier for a newly connected transport."""
    return f"{kind}_{uuid.uuid4().hex[:12]}"

"""Correlation identifier generation."""

from __future__ import annotations

import uuid
from collections.abc import Callable

# Returns a fresh, unique identifier on every call
IdGenerator = Callable[[], str]


def uuid_id_generator(prefix: str = "req") -> IdGenerator:
    """Create a generator of ``<prefix>_<uuid4 hex>`` identifiers."""

    def generate() -> str:
        return f"{prefix}_{uuid.uuid4().hex}"

    return generate

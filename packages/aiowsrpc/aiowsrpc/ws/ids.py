"""Request identifier generation."""

from __future__ import annotations

import uuid
from collections.abc import Callable

from aiowsrpc.models import RpcId

IdGenerator = Callable[[], RpcId]


def uuid1_id() -> str:
    """Return a time-ordered unique id (UUID version 1)."""
    return str(uuid.uuid1())

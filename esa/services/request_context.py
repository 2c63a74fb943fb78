"""Per-call correlation ID via contextvars."""

from __future__ import annotations

import uuid
from contextvars import ContextVar

call_id_var: ContextVar[str] = ContextVar("call_id", default="")


def generate_call_id() -> str:
    """Return a new 32-character hex call ID."""
    return uuid.uuid4().hex


def get_call_id() -> str:
    """Read the current call ID from the contextvar."""
    return call_id_var.get()

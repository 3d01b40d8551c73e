"""
Correlation ids for log lines, carried in a context variable.

A notification sync, a daemon cycle or an API request each run under one id
so every log line they produce can be grouped.
"""

import contextvars
import uuid
from typing import Optional

_run_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("run_id", default=None)


def get_run_id() -> Optional[str]:
    """Get the current run ID from context."""
    return _run_id_var.get()


def set_run_id(run_id: str) -> contextvars.Token:
    """Set the run ID in context. Returns token for reset."""
    return _run_id_var.set(run_id)


def generate_run_id(prefix: str = "run") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


class RunContext:
    """
    Context manager for run-scoped operations.

    Usage:
        with RunContext() as ctx:
            logger.info("Syncing", extra={"run_id": ctx.run_id})

    Nested contexts keep the outer id, so a sync triggered from an API
    request logs under the request's id.
    """

    def __init__(self, run_id: Optional[str] = None, prefix: str = "run"):
        self.run_id = run_id or get_run_id() or generate_run_id(prefix)
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> "RunContext":
        self._token = set_run_id(self.run_id)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _run_id_var.reset(self._token)

"""Run ID management for tracing one conversion run across components.

Every pipeline run gets an identifier that is attached to each log record
emitted while the run is active, so interleaved output from the CLI, the
pipeline and the writers can be grouped by run.
"""

import contextvars
import uuid
from typing import Optional


class RunContext:
    """Context manager binding a run ID to the current execution context."""

    _context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
        'run_id', default=None
    )

    @classmethod
    def get_run_id(cls) -> Optional[str]:
        """Get the run ID of the current context, or None outside a run."""
        return cls._context.get()

    @classmethod
    def new_run_id(cls) -> str:
        """Generate a short run ID."""
        return uuid.uuid4().hex[:12]

    @classmethod
    def ensure_run_id(cls) -> str:
        """Return the current run ID, binding a fresh one if none is set."""
        run_id = cls.get_run_id()
        if run_id is None:
            run_id = cls.new_run_id()
            cls._context.set(run_id)
        return run_id

    def __init__(self, run_id: Optional[str] = None):
        """Initialize context manager.

        Args:
            run_id: Optional run ID. If None, generates a new one.
        """
        self.run_id = run_id or self.new_run_id()
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = self._context.set(self.run_id)
        return self.run_id

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            self._context.reset(self._token)
            self._token = None

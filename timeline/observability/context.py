"""
Batch run context.

While a batch positioning run is in flight, the run's identity and shape
(id, item count, sort policy, target window) sit in a context variable so
every log line emitted underneath can be tied back to the run, including
lines from the time updater the caller plugged in.
"""

import contextvars
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class RunInfo:
    run_id: str
    item_count: int = 0
    sort_policy: str | None = None
    window_start: datetime | None = None
    window_end: datetime | None = None

    def as_log_fields(self) -> dict[str, Any]:
        """Fields for structured log output; unset values are omitted."""
        fields: dict[str, Any] = {"run_id": self.run_id, "item_count": self.item_count}
        if self.sort_policy is not None:
            fields["sort_policy"] = self.sort_policy
        if self.window_start is not None and self.window_end is not None:
            fields["window"] = f"{self.window_start.isoformat()}/{self.window_end.isoformat()}"
        return fields


_current_run: contextvars.ContextVar[RunInfo | None] = contextvars.ContextVar(
    "timeline_run", default=None
)


def current_run() -> RunInfo | None:
    return _current_run.get()


def get_run_id() -> str | None:
    run = _current_run.get()
    return run.run_id if run else None


def generate_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:16]}"


class RunContext:
    """
    Scope one batch run.

    Usage:
        with RunContext(item_count=3, sort_policy="custom_order",
                        window_start=start, window_end=end) as run:
            logger.info("Placing into %s", run.info.window_start)

    Nested contexts restore the outer run on exit.
    """

    def __init__(
        self,
        run_id: str | None = None,
        *,
        item_count: int = 0,
        sort_policy: str | None = None,
        window_start: datetime | None = None,
        window_end: datetime | None = None,
    ):
        self.info = RunInfo(
            run_id=run_id or generate_run_id(),
            item_count=item_count,
            sort_policy=sort_policy,
            window_start=window_start,
            window_end=window_end,
        )
        self._token: contextvars.Token | None = None

    @property
    def run_id(self) -> str:
        return self.info.run_id

    def __enter__(self) -> "RunContext":
        self._token = _current_run.set(self.info)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _current_run.reset(self._token)
            self._token = None

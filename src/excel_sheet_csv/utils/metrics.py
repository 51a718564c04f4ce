"""Per-run operation timings.

Every block traced by ``operation_context`` or ``log_operation`` leaves an
``OperationRecord`` tagged with the active run ID. ``MetricsCollector`` keeps
a bounded history of those records and folds them into ``OperationStats``
rows, which ``convert --stats`` prints for the run that just finished.
"""

import time
from collections import deque
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Deque, Dict, Iterable, List, Optional


DEFAULT_HISTORY_SIZE = 10_000


@dataclass
class OperationRecord:
    """One traced operation inside a conversion run.

    Attributes:
        name: Operation name, e.g. ``workbook_read`` or ``csv_file_write``
        run_id: Run the operation belongs to
        started: ``time.perf_counter()`` reading at start
        duration_ms: Elapsed time, set by ``finish``
        error_type: Exception class name when the operation raised
        metadata: Extra facts such as the file path or bytes written
    """

    name: str
    run_id: str
    started: float = field(default_factory=time.perf_counter)
    duration_ms: Optional[float] = None
    error_type: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def finished(self) -> bool:
        return self.duration_ms is not None

    @property
    def failed(self) -> bool:
        return self.error_type is not None

    def finish(self, error: Optional[BaseException] = None) -> None:
        """Stop the clock, noting the exception type if one was raised."""
        self.duration_ms = (time.perf_counter() - self.started) * 1000
        self.error_type = type(error).__name__ if error is not None else None

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value


@dataclass(frozen=True)
class OperationStats:
    """Aggregated timings for one operation name."""

    name: str
    count: int
    failures: int
    total_ms: float
    max_ms: float
    errors: Dict[str, int]

    @property
    def average_ms(self) -> float:
        return self.total_ms / self.count if self.count else 0.0

    @classmethod
    def from_records(cls, name: str, records: Iterable[OperationRecord]) -> "OperationStats":
        """Fold finished records of a single operation into one row."""
        durations = []
        errors: Dict[str, int] = {}
        for record in records:
            durations.append(record.duration_ms or 0.0)
            if record.failed:
                errors[record.error_type] = errors.get(record.error_type, 0) + 1

        return cls(
            name=name,
            count=len(durations),
            failures=sum(errors.values()),
            total_ms=sum(durations),
            max_ms=max(durations, default=0.0),
            errors=errors,
        )


class MetricsCollector:
    """Thread-safe store of finished operation records.

    Only the most recent ``history_size`` records are kept.
    """

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE):
        self._records: Deque[OperationRecord] = deque(maxlen=history_size)
        self._lock = Lock()

    def record(self, record: OperationRecord) -> None:
        if not record.finished:
            raise ValueError(f"Operation {record.name!r} has not finished")
        with self._lock:
            self._records.append(record)

    def records(self, run_id: Optional[str] = None) -> List[OperationRecord]:
        """Return recorded operations, oldest first.

        Args:
            run_id: Only return operations of this run

        Returns:
            Snapshot list of records
        """
        with self._lock:
            snapshot = list(self._records)
        if run_id is None:
            return snapshot
        return [r for r in snapshot if r.run_id == run_id]

    def latest_run_id(self) -> Optional[str]:
        """Run ID of the most recently recorded operation, if any."""
        with self._lock:
            return self._records[-1].run_id if self._records else None

    def stats(self, run_id: Optional[str] = None) -> List[OperationStats]:
        """Aggregate timings per operation name.

        Args:
            run_id: Restrict aggregation to one run

        Returns:
            One row per operation name, sorted by name
        """
        grouped: Dict[str, List[OperationRecord]] = {}
        for record in self.records(run_id):
            grouped.setdefault(record.name, []).append(record)
        return [OperationStats.from_records(name, grouped[name]) for name in sorted(grouped)]

    def clear(self) -> None:
        with self._lock:
            self._records.clear()


# Global metrics collector instance
_global_metrics_collector = MetricsCollector()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance."""
    return _global_metrics_collector


def start_operation(name: str, run_id: str, **metadata: Any) -> OperationRecord:
    """Start timing an operation.

    Args:
        name: Operation name
        run_id: Run ID the operation belongs to
        **metadata: Initial metadata for the record

    Returns:
        Running OperationRecord; call ``finish`` and hand it to the collector
    """
    return OperationRecord(name=name, run_id=run_id, metadata=dict(metadata))

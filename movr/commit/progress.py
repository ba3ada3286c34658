import time
from dataclasses import dataclass
from typing import Callable, Optional

from .. import config


@dataclass(frozen=True)
class ProgressSnapshot:
    index: int                  # records finished so far
    total: int
    elapsed: float
    throughput: Optional[float]  # files/sec, None until enough time has passed
    eta: Optional[float]         # seconds

    @property
    def fraction(self) -> float:
        return self.index / self.total if self.total else 1.0


@dataclass(frozen=True)
class BatchSummary:
    total: int
    committed: int
    renamed: int
    skipped: int
    failed: int
    elapsed: float

    @property
    def success_count(self) -> int:
        return self.committed + self.renamed

    @property
    def error_count(self) -> int:
        return self.failed + self.skipped

    @property
    def average_throughput(self) -> float:
        return self.total / self.elapsed if self.elapsed > 0 else 0.0

    def message(self) -> str:
        avg = f"avg: {self.average_throughput:.1f} files/sec"
        if self.error_count == 0:
            return f"All {self.success_count} files processed successfully! ({avg})"
        return f"Completed: {self.success_count} successful, {self.error_count} errors ({avg})"


class ProgressTracker:
    """
    Counts finished records and derives throughput/ETA.

    Throughput is withheld for the first `min_elapsed` seconds; the numbers
    are too noisy before that.
    """

    def __init__(self,
                 total: int,
                 clock: Callable[[], float] = time.monotonic,
                 min_elapsed: float = config.THROUGHPUT_MIN_ELAPSED):
        self.total = total
        self.clock = clock
        self.min_elapsed = min_elapsed
        self.completed = 0
        self.started_at = clock()

    @property
    def elapsed(self) -> float:
        return self.clock() - self.started_at

    def advance(self) -> ProgressSnapshot:
        self.completed += 1
        return self.snapshot()

    def snapshot(self) -> ProgressSnapshot:
        elapsed = self.elapsed
        throughput = None
        eta = None
        if elapsed > self.min_elapsed:
            throughput = self.completed / elapsed
            eta = (self.total - self.completed) / throughput if throughput > 0 else None
        return ProgressSnapshot(self.completed, self.total, elapsed, throughput, eta)


def format_time_remaining(seconds: float) -> str:
    if seconds < 60:
        return f"{seconds:.0f} sec"
    if seconds < 3600:
        return f"{seconds / 60:.1f} min"
    return f"{seconds / 3600:.1f} hr"

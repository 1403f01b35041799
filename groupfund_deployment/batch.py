import threading
from collections import Counter
from enum import Enum
from typing import Any, Callable, List, NamedTuple, Optional, Sequence

from groupfund_deployment.constants import BELOW_THRESHOLD
from groupfund_deployment.exceptions import BatchItemError

Precondition = Callable[[str], int]
Action = Callable[[str], Any]
ProgressCallback = Callable[[int, int, str], None]

PRECONDITION = "precondition"
ACTION = "action"


class Outcome(Enum):
    SKIPPED = "skipped"
    APPLIED = "applied"
    FAILED = "failed"


class BatchResult(NamedTuple):
    """Outcome of processing a single batch item."""

    item: str
    outcome: Outcome
    reason: Optional[str] = None
    error: Optional[BatchItemError] = None
    value: Any = None  # precondition value read for the item, if any

    @classmethod
    def skipped(cls, item: str, reason: str, value: Any = None) -> "BatchResult":
        return cls(item=item, outcome=Outcome.SKIPPED, reason=reason, value=value)

    @classmethod
    def applied(cls, item: str, value: Any = None) -> "BatchResult":
        return cls(item=item, outcome=Outcome.APPLIED, value=value)

    @classmethod
    def failed(cls, item: str, error: BatchItemError, value: Any = None) -> "BatchResult":
        return cls(item=item, outcome=Outcome.FAILED, error=error, value=value)


class BatchSummary(NamedTuple):
    applied: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.applied + self.skipped + self.failed


def summarize(results: Sequence[BatchResult]) -> BatchSummary:
    counts = Counter(result.outcome for result in results)
    return BatchSummary(
        applied=counts[Outcome.APPLIED],
        skipped=counts[Outcome.SKIPPED],
        failed=counts[Outcome.FAILED],
    )


def print_progress(index: int, total: int, item: str) -> None:
    print(f"Processing {item}  {index}/{total}")


class BatchRunner:
    """
    Applies an action to each item of a list whose precondition value reaches a threshold.

    Items are processed one at a time, in order. A failing item is recorded and the
    batch moves on. Nothing is retried: running the same list again only acts on the
    items that still meet the threshold.
    """

    def __init__(
        self,
        threshold: int,
        progress: Optional[ProgressCallback] = print_progress,
        cancel_event: Optional[threading.Event] = None,
    ):
        self.threshold = threshold
        self.progress = progress
        self.cancel_event = cancel_event or threading.Event()
        self.cancelled = False

    def cancel(self) -> None:
        """Stops the batch before its next item."""
        self.cancel_event.set()

    def run(
        self, items: Sequence[str], precondition: Precondition, action: Action
    ) -> List[BatchResult]:
        results = list()
        self.cancelled = False
        total = len(items)
        for index, item in enumerate(items, start=1):
            if self.cancel_event.is_set():
                print(f"(!) Batch cancelled after {len(results)}/{total} items")
                self.cancelled = True
                break
            if self.progress:
                self.progress(index, total, item)
            results.append(self._process(item, precondition, action))
        return results

    def _process(self, item: str, precondition: Precondition, action: Action) -> BatchResult:
        try:
            value = precondition(item)
            below_threshold = value < self.threshold
        except Exception as e:
            error = BatchItemError(item=item, phase=PRECONDITION, cause=e)
            print(f"x {error}")
            return BatchResult.failed(item, error)

        if below_threshold:
            print(f"Skipping {item}")
            return BatchResult.skipped(item, reason=BELOW_THRESHOLD, value=value)

        try:
            action(item)
        except Exception as e:
            error = BatchItemError(item=item, phase=ACTION, cause=e)
            print(f"x {error}")
            return BatchResult.failed(item, error, value=value)

        return BatchResult.applied(item, value=value)

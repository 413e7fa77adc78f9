"""Batch mutation result models."""

from dataclasses import dataclass, field
from typing import Any, Generic, List, TypeVar

T = TypeVar("T")


@dataclass
class BatchFailure(Generic[T]):
    """A single item that failed during a batch mutation."""

    item: T
    error: Exception
    label: str = ""

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass
class BatchResult(Generic[T]):
    """Aggregate outcome of a batch mutation.

    Partial completion is a valid terminal outcome. A cancelled batch (the
    operator declined confirmation) performed no mutations.
    """

    total: int
    success_count: int = 0
    failures: List[BatchFailure[T]] = field(default_factory=list)
    succeeded: List[T] = field(default_factory=list)
    cancelled: bool = False

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def is_partial(self) -> bool:
        """True when some, but not all, items failed."""
        return 0 < self.failure_count < self.total

    @property
    def all_succeeded(self) -> bool:
        return not self.cancelled and self.success_count == self.total

    @classmethod
    def cancelled_for(cls, items: List[Any]) -> "BatchResult":
        return cls(total=len(items), cancelled=True)

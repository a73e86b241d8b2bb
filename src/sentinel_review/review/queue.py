"""FIFO store of samples pending review."""

from typing import Iterable, Optional

from .models import Sample


class ReviewQueue:
    """
    Ordered queue of pending samples. Only the head is reviewable.

    The gateway owns the ordering: the queue never sorts, deduplicates
    or inserts. It is replaced wholesale by load() and shrinks only
    through remove_head().
    """

    def __init__(self):
        self._samples: list[Sample] = []

    def load(self, samples: Iterable[Sample]) -> None:
        """Replace the entire queue, keeping input order."""
        self._samples = list(samples)

    def peek_head(self) -> Optional[Sample]:
        return self._samples[0] if self._samples else None

    def remove_head(self) -> None:
        """Drop the first sample. No-op when empty."""
        if self._samples:
            del self._samples[0]

    def __len__(self) -> int:
        return len(self._samples)

    def __bool__(self) -> bool:
        return bool(self._samples)

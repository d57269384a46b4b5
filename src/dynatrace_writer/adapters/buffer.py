"""Thread-safe buffer of sample containers awaiting the next flush."""

import threading
from collections.abc import Iterable

from dynatrace_writer.core.ports import SampleContainerPort


class SampleBuffer:
    """In-memory queue of pending sample containers.

    The host appends containers from any thread; each flush takes the whole
    batch at once. Containers appended while a batch is being taken land
    in the next batch.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._containers: list[SampleContainerPort] = []

    def add_metric_samples(self, containers: Iterable[SampleContainerPort]) -> None:
        """Append containers in the given order."""
        batch = list(containers)
        if not batch:
            return
        with self._lock:
            self._containers.extend(batch)

    def get_buffered_samples(self) -> list[SampleContainerPort]:
        """Take all pending containers and leave the buffer empty."""
        with self._lock:
            drained, self._containers = self._containers, []
        return drained

    def __len__(self) -> int:
        """Return the number of pending containers."""
        with self._lock:
            return len(self._containers)

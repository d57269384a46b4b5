"""Helper functions for creating samples and containers."""

import time
from collections.abc import Iterable

from dynatrace_writer.core.models import ConnectedSamples, RawSample


def sample(
    metric: str,
    value: float,
    tags: dict[str, str] | None = None,
    timestamp: float | None = None,
) -> RawSample:
    """Create a sample.

    Args:
        metric: Metric name (e.g., "http_reqs")
        value: Measured value
        tags: Optional tags
        timestamp: Unix seconds (default: now)

    Returns:
        RawSample with the given or current timestamp
    """
    return RawSample(
        metric=metric,
        value=value,
        timestamp=time.time() if timestamp is None else timestamp,
        tags=tags or {},
    )


def connected_samples(
    samples: Iterable[RawSample],
    tags: dict[str, str] | None = None,
) -> ConnectedSamples:
    """Group samples that were emitted together.

    The group time is the timestamp of the first sample, or now when the
    group is empty.
    """
    grouped = tuple(samples)
    return ConnectedSamples(
        samples=grouped,
        tags=tags or {},
        time=grouped[0].timestamp if grouped else time.time(),
    )

"""Core domain models for samples and ingest lines."""

from collections.abc import Mapping
from dataclasses import dataclass, field


@dataclass(frozen=True)
class RawSample:
    """A single load-test measurement.

    A sample is also a container holding only itself, so it can be
    buffered directly.

    Attributes:
        metric: Metric name (e.g., http_req_duration).
        value: The measured value.
        timestamp: Unix timestamp in seconds.
        tags: Tag name to tag value pairs.
    """

    metric: str
    value: float
    timestamp: float
    tags: Mapping[str, str] = field(default_factory=dict)

    def get_samples(self) -> tuple["RawSample", ...]:
        """Return this sample as a one-element batch."""
        return (self,)


@dataclass(frozen=True)
class ConnectedSamples:
    """Samples emitted together, e.g. all metrics of one HTTP request.

    Attributes:
        samples: The grouped samples, in emission order.
        tags: Tags shared by the group (informational only; every sample
            carries its own full tag set).
        time: Unix timestamp of the group in seconds.
    """

    samples: tuple[RawSample, ...]
    tags: Mapping[str, str] = field(default_factory=dict)
    time: float = 0.0

    def get_samples(self) -> tuple[RawSample, ...]:
        """Return the grouped samples."""
        return self.samples


@dataclass(frozen=True)
class MetricLine:
    """One line of the Dynatrace metric ingestion format.

    Attributes:
        key: Metric key including the prefix (e.g., k6.http_reqs).
        dimensions: Ordered (key, value) dimension pairs.
        value: Gauge value.
        timestamp_ms: UTC timestamp in milliseconds.
    """

    key: str
    dimensions: tuple[tuple[str, str], ...]
    value: float
    timestamp_ms: int

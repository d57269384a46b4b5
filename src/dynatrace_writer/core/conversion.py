"""Conversion of buffered sample containers into ingest lines."""

import logging
import math
from collections.abc import Iterable, Mapping

from dynatrace_writer.core.config import Config
from dynatrace_writer.core.models import MetricLine, RawSample
from dynatrace_writer.core.ports import SampleContainerPort

logger = logging.getLogger(__name__)

DEFAULT_METRIC_PREFIX = "k6."

# Line count above which a flush stops early while the endpoint is slow
HIGH_WATER_MARK = 150_000

NAME_TAG = "name"
URL_TAG = "url"


class SampleConverter:
    """Maps sample containers to MetricLine records, one per sample.

    Samples are never merged into a shared series: samples of the same
    metric may carry different tags, and two lines with the same key,
    dimensions and timestamp would be rejected or dropped by the backend.

    Args:
        keep_tags: Render sample tags as dimensions.
        keep_name_tag: Keep the "name" tag.
        keep_url_tag: Keep the "url" tag.
        prefix: Prefix prepended to every metric name.
        high_water_mark: Line count above which shedding starts while
            backpressure is active.
    """

    def __init__(
        self,
        keep_tags: bool = True,
        keep_name_tag: bool = False,
        keep_url_tag: bool = True,
        prefix: str = DEFAULT_METRIC_PREFIX,
        high_water_mark: int = HIGH_WATER_MARK,
    ) -> None:
        self.keep_tags = keep_tags
        self.keep_name_tag = keep_name_tag
        self.keep_url_tag = keep_url_tag
        self.prefix = prefix
        self.high_water_mark = high_water_mark

    @classmethod
    def from_config(cls, config: Config) -> "SampleConverter":
        """Build a converter from the tag retention settings of a config."""
        return cls(
            keep_tags=bool(config.keep_tags),
            keep_name_tag=bool(config.keep_name_tag),
            keep_url_tag=bool(config.keep_url_tag),
        )

    def dimensions(self, tags: Mapping[str, str]) -> tuple[tuple[str, str], ...]:
        """Render a tag set as dimension pairs, ordered by key."""
        if not self.keep_tags:
            return ()
        return tuple(
            (key, str(value))
            for key, value in sorted(tags.items())
            if not (key == NAME_TAG and not self.keep_name_tag)
            and not (key == URL_TAG and not self.keep_url_tag)
        )

    def to_line(self, sample: RawSample) -> MetricLine | None:
        """Convert one sample, or return None if it cannot be ingested."""
        if not sample.metric:
            return None
        try:
            value = float(sample.value)
            timestamp_ms = round(float(sample.timestamp) * 1000)
            dimensions = self.dimensions(sample.tags)
        except (AttributeError, TypeError, ValueError, OverflowError):
            return None
        if not math.isfinite(value):
            return None
        return MetricLine(
            key=f"{self.prefix}{sample.metric}",
            dimensions=dimensions,
            value=value,
            timestamp_ms=timestamp_ms,
        )

    def convert(
        self,
        containers: Iterable[SampleContainerPort],
        backpressure_active: bool = False,
    ) -> list[MetricLine]:
        """Convert containers in order, one line per sample.

        Args:
            containers: Buffered containers in arrival order.
            backpressure_active: Whether the previous flush ran longer than
                the flush period. If set, conversion stops after the first
                container that takes the line count above the high-water
                mark; the remaining containers are dropped.

        Returns:
            The converted lines in container order, then sample order.
        """
        lines: list[MetricLine] = []
        skipped = 0

        for container in containers:
            for sample in container.get_samples():
                line = self.to_line(sample)
                if line is None:
                    skipped += 1
                    continue
                lines.append(line)

            if backpressure_active and len(lines) > self.high_water_mark:
                logger.debug(
                    "Backpressure active, dropping remaining containers",
                    extra={"nts": len(lines)},
                )
                break

        if skipped:
            logger.debug(
                "Skipped malformed samples", extra={"skipped": skipped}
            )
        return lines


def convert(
    containers: Iterable[SampleContainerPort],
    backpressure_active: bool,
    config: Config,
) -> list[MetricLine]:
    """Convert containers using the tag settings of ``config``."""
    return SampleConverter.from_config(config).convert(
        containers, backpressure_active
    )

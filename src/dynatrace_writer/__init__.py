"""dynatrace_writer - ship load-test metrics to the Dynatrace ingest API."""

from dynatrace_writer.adapters.buffer import SampleBuffer
from dynatrace_writer.adapters.logging import (
    KeyValueFormatter,
    configure_logging,
    get_logger,
)
from dynatrace_writer.adapters.scheduler import (
    BackpressureFlag,
    FlushScheduler,
    PeriodicFlusher,
)
from dynatrace_writer.adapters.transport import HttpTransport
from dynatrace_writer.core.config import Config, finalize, new_config
from dynatrace_writer.core.conversion import HIGH_WATER_MARK, SampleConverter, convert
from dynatrace_writer.core.encoding.line_protocol import encode_lines
from dynatrace_writer.core.errors import (
    ConfigError,
    ConfigParseError,
    ConfigValidationError,
    DynatraceWriterError,
    TransportError,
)
from dynatrace_writer.core.models import ConnectedSamples, MetricLine, RawSample
from dynatrace_writer.core.resolver import get_consolidated_config, resolve
from dynatrace_writer.core.samples import connected_samples, sample
from dynatrace_writer.output import Output

__all__ = [
    "HIGH_WATER_MARK",
    "BackpressureFlag",
    "Config",
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    "ConnectedSamples",
    "DynatraceWriterError",
    "FlushScheduler",
    "HttpTransport",
    "KeyValueFormatter",
    "MetricLine",
    "Output",
    "PeriodicFlusher",
    "RawSample",
    "SampleBuffer",
    "SampleConverter",
    "TransportError",
    "configure_logging",
    "connected_samples",
    "convert",
    "encode_lines",
    "finalize",
    "get_consolidated_config",
    "get_logger",
    "new_config",
    "resolve",
    "sample",
]

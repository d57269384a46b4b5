"""Adapters connecting the core to threads, HTTP and logging."""

from dynatrace_writer.adapters.buffer import SampleBuffer
from dynatrace_writer.adapters.scheduler import (
    BackpressureFlag,
    FlushScheduler,
    PeriodicFlusher,
)
from dynatrace_writer.adapters.transport import HttpTransport

__all__ = [
    "BackpressureFlag",
    "FlushScheduler",
    "HttpTransport",
    "PeriodicFlusher",
    "SampleBuffer",
]

"""Periodic flushing of buffered samples to the ingest endpoint.

A single background thread drives the flush cycle, so ticks never overlap.
Each cycle measures how long it took; when a cycle runs longer than the
flush period the backpressure flag is raised, and the next conversion may
shed containers above the high-water mark.
"""

import logging
import threading
import time
from collections.abc import Callable

from dynatrace_writer.adapters.buffer import SampleBuffer
from dynatrace_writer.core.config import Config
from dynatrace_writer.core.conversion import SampleConverter
from dynatrace_writer.core.durations import format_duration
from dynatrace_writer.core.encoding.line_protocol import encode_lines
from dynatrace_writer.core.errors import TransportError
from dynatrace_writer.core.ports import TransportPort

logger = logging.getLogger(__name__)


class BackpressureFlag:
    """Lock-guarded boolean shared by one scheduler and its converter."""

    def __init__(self, active: bool = False) -> None:
        self._lock = threading.Lock()
        self._active = active

    def set(self, active: bool) -> None:
        with self._lock:
            self._active = active

    def is_active(self) -> bool:
        with self._lock:
            return self._active


class PeriodicFlusher:
    """Calls ``callback`` every ``period`` seconds on a background thread.

    The flusher starts on construction. ``stop`` runs one last callback so
    samples buffered since the previous tick are not lost, and returns once
    the thread has finished.

    Args:
        period: Seconds between two calls. Must be positive.
        callback: The flush function.
        name: Thread name.

    Raises:
        ValueError: If ``period`` is not positive.
    """

    def __init__(
        self,
        period: float,
        callback: Callable[[], None],
        name: str = "dynatrace-flusher",
    ) -> None:
        if period <= 0:
            raise ValueError(
                f"flush period should be positive, got {format_duration(period)}"
            )
        self._period = period
        self._callback = callback
        self._stop_event = threading.Event()
        self._stop_lock = threading.Lock()
        self._stopped = False
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop_event.wait(self._period):
            self._tick()
        self._tick()

    def _tick(self) -> None:
        try:
            self._callback()
        except Exception:
            logger.exception("Periodic flush failed")

    @property
    def running(self) -> bool:
        """Return True while the background thread is alive."""
        return self._thread.is_alive()

    def stop(self) -> None:
        """Stop the timer and wait for the final flush. Idempotent."""
        with self._stop_lock:
            if self._stopped:
                return
            self._stopped = True
        self._stop_event.set()
        if threading.current_thread() is not self._thread:
            self._thread.join()


class FlushScheduler:
    """Drains the buffer, converts, encodes and sends on every tick.

    Args:
        config: Finalized config (ingest URL, headers, flush period and tag
            settings).
        buffer: Buffer filled by the host.
        transport: Delivers the encoded payload.
        log: Logger for flush timing and failures. Defaults to this
            module's logger.
        converter: Converter to use. Defaults to one built from ``config``.
        clock: Monotonic clock in seconds, used to time each flush.
    """

    def __init__(
        self,
        config: Config,
        buffer: SampleBuffer,
        transport: TransportPort,
        log: logging.Logger | logging.LoggerAdapter | None = None,
        converter: SampleConverter | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config
        self.buffer = buffer
        self.transport = transport
        self.backpressure = BackpressureFlag()
        self._log = log or logger
        self._converter = converter or SampleConverter.from_config(config)
        self._clock = clock
        self._flush_lock = threading.Lock()
        self._flusher: PeriodicFlusher | None = None

    @property
    def flush_period(self) -> float:
        return self.config.flush_period or 0.0

    def start(self) -> None:
        """Start the periodic flusher.

        Raises:
            ValueError: If the flush period is not positive.
            RuntimeError: If already started.
        """
        if self._flusher is not None:
            raise RuntimeError("flush scheduler already started")
        self._flusher = PeriodicFlusher(self.flush_period, self.flush)

    def stop(self) -> None:
        """Stop the timer, wait for in-flight work, close the transport."""
        flusher, self._flusher = self._flusher, None
        if flusher is not None:
            flusher.stop()
        self.transport.close()

    def flush(self) -> None:
        """Run one flush cycle, unless one is already running."""
        if not self._flush_lock.acquire(blocking=False):
            self._log.debug("Flush already in progress, skipping this tick")
            return
        try:
            self._flush()
        finally:
            self._flush_lock.release()

    def _flush(self) -> None:
        start = self._clock()
        nts = 0
        try:
            containers = self.buffer.get_buffered_samples()
            lines = self._converter.convert(containers, self.backpressure.is_active())
            nts = len(lines)
            self._log.debug(
                "Converted samples to metric lines in preparation for sending.",
                extra={"nts": nts},
            )
            if not lines:
                return

            payload = encode_lines(lines)
            try:
                self.transport.send(self.config.url or "", self.config.headers, payload)
            except TransportError as exc:
                # Samples of this cycle are dropped; the next tick goes on
                self._log.error(
                    "Failed to send metrics: %s",
                    exc,
                    extra={"nts": nts, "status_code": exc.status_code or 0},
                )
        finally:
            self._record_duration(self._clock() - start, nts)

    def _record_duration(self, elapsed: float, nts: int) -> None:
        if elapsed > self.flush_period:
            # There is no intermediary storage, so warn when writing becomes slow
            self._log.warning(
                "Remote write took %s while flush period is %s. "
                "Some samples may be dropped.",
                format_duration(elapsed),
                self.config.flush_period_text,
                extra={"nts": nts, "elapsed_seconds": elapsed},
            )
            self.backpressure.set(True)
        else:
            self._log.debug(
                "Remote write took %s.",
                format_duration(elapsed),
                extra={"nts": nts, "elapsed_seconds": elapsed},
            )
            self.backpressure.set(False)

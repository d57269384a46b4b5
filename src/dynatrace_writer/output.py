"""Dynatrace output: the entry point a load-test host wires up.

The host builds an Output from its raw configuration inputs, starts it,
feeds sample containers into it while the test runs, and stops it at the
end of the run.
"""

import logging
from collections.abc import Iterable, Mapping

from dynatrace_writer.adapters.buffer import SampleBuffer
from dynatrace_writer.adapters.scheduler import FlushScheduler
from dynatrace_writer.adapters.transport import HttpTransport
from dynatrace_writer.core.config import Config
from dynatrace_writer.core.ports import SampleContainerPort, TransportPort
from dynatrace_writer.core.resolver import resolve

logger = logging.getLogger(__name__)

DESCRIPTION = "Output k6 metrics to Dynatrace metrics ingest api"


class Output:
    """Buffers samples and ships them to Dynatrace periodically.

    Args:
        config: Finalized configuration.
        log: Logger supplied by the host. Defaults to this module's logger.
        transport: Transport to use. Defaults to an HttpTransport.
    """

    def __init__(
        self,
        config: Config,
        log: logging.Logger | logging.LoggerAdapter | None = None,
        transport: TransportPort | None = None,
    ) -> None:
        self.config = config
        self._log = log or logger
        self._buffer = SampleBuffer()
        self._scheduler = FlushScheduler(
            config,
            self._buffer,
            transport or HttpTransport(config),
            log=self._log,
        )

    @classmethod
    def from_params(
        cls,
        json_config: bytes | str | None = None,
        environment: Mapping[str, str] | None = None,
        config_argument: str | None = None,
        log: logging.Logger | logging.LoggerAdapter | None = None,
        transport: TransportPort | None = None,
    ) -> "Output":
        """Resolve and finalize the configuration, then build the output.

        Raises:
            ConfigError: If the configuration is malformed or invalid.
        """
        return cls(resolve(json_config, environment, config_argument), log, transport)

    def description(self) -> str:
        return DESCRIPTION

    @property
    def scheduler(self) -> FlushScheduler:
        return self._scheduler

    def start(self) -> None:
        """Start periodic flushing."""
        self._scheduler.start()
        self._log.debug("Dynatrace: starting dynatrace-write")

    def stop(self) -> None:
        """Flush what is buffered, stop the timer and release the transport."""
        self._log.debug("Dynatrace: stopping dynatrace-write")
        self._scheduler.stop()

    def add_metric_samples(self, containers: Iterable[SampleContainerPort]) -> None:
        """Buffer sample containers until the next flush."""
        self._buffer.add_metric_samples(containers)

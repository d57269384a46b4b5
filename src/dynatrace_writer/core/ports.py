"""Port interfaces for the collaborators of the flush pipeline.

The core depends only on these protocols. The host runtime provides sample
containers, and the HTTP adapter (or a test double) provides the transport.
"""

from collections.abc import Iterable, Mapping
from typing import Protocol, runtime_checkable

from dynatrace_writer.core.models import RawSample


@runtime_checkable
class SampleContainerPort(Protocol):
    """Port for a batch of samples reported together.

    Examples: RawSample (a batch of one), ConnectedSamples.
    """

    def get_samples(self) -> Iterable[RawSample]:
        """Return the samples of this container in emission order."""
        ...


@runtime_checkable
class TransportPort(Protocol):
    """Port for delivering an encoded payload to the ingest endpoint.

    Examples: HttpTransport.
    """

    def send(self, url: str, headers: Mapping[str, str], body: str) -> int:
        """POST the body and return the HTTP status code.

        Raises:
            TransportError: If the request failed or was not accepted.
        """
        ...

    def close(self) -> None:
        """Release any pooled connections."""
        ...

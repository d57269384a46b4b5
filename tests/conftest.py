"""Shared test fixtures for all test modules."""

from collections.abc import Callable, Iterator

import httpx
import pytest

from dynatrace_writer.core.config import Config, finalize, new_config
from dynatrace_writer.core.models import ConnectedSamples, RawSample
from tests.doubles import RecordingTransport


@pytest.fixture
def remote_config() -> Config:
    """Finalized config pointing at a test environment."""
    return finalize(
        new_config().apply(Config(url="https://abc123.example", api_token="dt0c01.T"))
    )


@pytest.fixture
def make_container() -> Callable[..., ConnectedSamples]:
    """Factory fixture for containers of distinctly tagged samples.

    Sample ``i`` of container ``c`` carries the tag ``seq=c-i``.
    """

    def _make(
        index: int, count: int = 3, metric: str = "http_reqs"
    ) -> ConnectedSamples:
        samples = tuple(
            RawSample(
                metric=metric,
                value=float(i),
                timestamp=1702300000.0 + i,
                tags={"seq": f"{index}-{i}", "method": "GET"},
            )
            for i in range(count)
        )
        return ConnectedSamples(samples=samples)

    return _make


@pytest.fixture
def recording_transport() -> RecordingTransport:
    """Transport double that accepts every payload."""
    return RecordingTransport()


@pytest.fixture
def mock_http() -> Iterator[Callable[..., httpx.Client]]:
    """Factory fixture for httpx clients backed by httpx.MockTransport.

    Usage:
        def test_something(mock_http):
            client = mock_http(lambda request: httpx.Response(202))
    """
    clients: list[httpx.Client] = []

    def _client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _client

    for client in clients:
        client.close()

"""HTTP transport adapter built on httpx."""

import logging
import ssl
from collections.abc import Mapping

import httpx

from dynatrace_writer.core.config import DEFAULT_TIMEOUT, Config
from dynatrace_writer.core.errors import ConfigValidationError, TransportError

logger = logging.getLogger(__name__)


def _verify_option(config: Config) -> ssl.SSLContext | bool:
    """Translate the TLS settings into the httpx ``verify`` option.

    Raises:
        ConfigValidationError: If the CA bundle can not be read or parsed.
    """
    if config.insecure_skip_tls_verify:
        return False
    if config.ca_cert_file:
        try:
            return ssl.create_default_context(cafile=config.ca_cert_file)
        except OSError as exc:
            raise ConfigValidationError(
                f"can not load CA certificates from {config.ca_cert_file!r}: {exc}"
            ) from exc
    return True


class HttpTransport:
    """Implementation of TransportPort that POSTs with an httpx.Client.

    Args:
        config: Finalized config; provides the TLS settings.
        client: Pre-built client, e.g. one using httpx.MockTransport in
            tests. The transport takes ownership and closes it.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        config: Config,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._client = client or httpx.Client(
            verify=_verify_option(config), timeout=timeout
        )

    def send(self, url: str, headers: Mapping[str, str], body: str) -> int:
        """POST the payload and return the response status code.

        The response body is read completely and the connection is returned
        to the pool on every path.

        Raises:
            TransportError: On connection failures, timeouts, TLS errors and
                non-2xx responses, and when the transport is closed.
        """
        if self._client.is_closed:
            raise TransportError("transport is closed")
        try:
            response = self._client.post(
                url, content=body.encode("utf-8"), headers=dict(headers)
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"Failed to send metrics: {exc}") from exc

        logger.debug(
            "response Status: %s",
            response.status_code,
            extra={"status_code": response.status_code},
        )
        logger.debug("response Headers: %s", dict(response.headers))
        logger.debug("response Body: %s", response.text)

        if not response.is_success:
            raise TransportError(
                f"Dynatrace rejected metrics with status {response.status_code}: "
                f"{response.text}",
                status_code=response.status_code,
            )
        return response.status_code

    def close(self) -> None:
        """Close the underlying client."""
        self._client.close()

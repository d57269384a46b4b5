"""Output configuration and the layer merge / finalize steps.

Every scalar field is optional: None means the layer did not set it, so a
later layer only overrides what it actually specifies.
"""

from dataclasses import dataclass, field, replace
from urllib.parse import urlsplit

from dynatrace_writer.core.durations import format_duration
from dynatrace_writer.core.errors import ConfigValidationError

DEFAULT_URL = "https://dynatrace.live.com"
DEFAULT_FLUSH_PERIOD = 1.0
DEFAULT_TIMEOUT = 60.0
METRIC_INGEST_PATH = "/api/v2/metrics/ingest"

CONTENT_TYPE = "text/plain; charset=utf-8"

# Empty strings count as unset for these
_TEXT_FIELDS = ("url", "ca_cert_file", "api_token")
_VALUE_FIELDS = (
    "insecure_skip_tls_verify",
    "flush_period",
    "keep_tags",
    "keep_name_tag",
    "keep_url_tag",
)


@dataclass(frozen=True)
class Config:
    """Settings of the Dynatrace output.

    Attributes:
        url: Base URL of the Dynatrace environment, or the ingest endpoint
            once finalized.
        headers: Extra request headers.
        insecure_skip_tls_verify: Skip TLS certificate verification.
        ca_cert_file: Path to a CA bundle used to verify the endpoint.
        api_token: Dynatrace API token with metrics ingest scope.
        flush_period: Seconds between two flushes.
        keep_tags: Render sample tags as dimensions.
        keep_name_tag: Keep the "name" tag among the dimensions.
        keep_url_tag: Keep the "url" tag among the dimensions.
    """

    url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    insecure_skip_tls_verify: bool | None = None
    ca_cert_file: str | None = None
    api_token: str | None = None
    flush_period: float | None = None
    keep_tags: bool | None = None
    keep_name_tag: bool | None = None
    keep_url_tag: bool | None = None

    def apply(self, applied: "Config") -> "Config":
        """Overlay another layer on top of this one.

        Fields that are None (or empty strings) in ``applied`` keep the
        value from this config. Headers merge by name.

        Args:
            applied: The higher-precedence layer.

        Returns:
            A new merged Config. Neither input is modified.
        """
        changes: dict[str, object] = {}
        for name in _TEXT_FIELDS:
            value = getattr(applied, name)
            if value:
                changes[name] = value
        for name in _VALUE_FIELDS:
            value = getattr(applied, name)
            if value is not None:
                changes[name] = value
        changes["headers"] = {**self.headers, **applied.headers}
        return replace(self, **changes)

    def construct_remote_config(self) -> "Config":
        """Finalize the merged config for the ingest endpoint.

        Appends the ingest path to the base URL (once), validates the URL,
        the API token and the flush period, and adds the content type,
        authorization and accept headers.

        Returns:
            A new finalized Config.

        Raises:
            ConfigValidationError: If the URL, token or period is invalid.
        """
        endpoint = _ingest_endpoint(self.url or "")

        if not self.api_token:
            raise ConfigValidationError(
                "The Dynatrace API token can not be empty or null"
            )
        if self.flush_period is not None and self.flush_period <= 0:
            raise ConfigValidationError(
                "flush period should be positive, "
                f"got {format_duration(self.flush_period)}"
            )

        headers = {
            **self.headers,
            "Content-Type": CONTENT_TYPE,
            "Authorization": f"Api-Token {self.api_token}",
            "accept": "*/*",
        }
        return replace(self, url=endpoint, headers=headers)

    @property
    def flush_period_text(self) -> str:
        """Flush period rendered as duration text, for log messages."""
        if self.flush_period is None:
            return "unset"
        return format_duration(self.flush_period)


def _ingest_endpoint(base_url: str) -> str:
    """Build and validate the ingest URL from a base URL."""
    base = base_url.strip().rstrip("/")
    if not base.endswith(METRIC_INGEST_PATH):
        base += METRIC_INGEST_PATH
    try:
        parts = urlsplit(base)
        # Raises ValueError for a non-numeric or out-of-range port
        parts.port
    except ValueError as exc:
        raise ConfigValidationError(
            f"invalid Dynatrace URL {base_url!r}: {exc}"
        ) from exc
    if parts.scheme not in ("http", "https") or not parts.hostname:
        raise ConfigValidationError(
            f"invalid Dynatrace URL {base_url!r}: expected http(s)://host"
        )
    return parts.geturl()


def new_config() -> Config:
    """Return the built-in defaults, the lowest-precedence layer."""
    return Config(
        url=DEFAULT_URL,
        headers={},
        insecure_skip_tls_verify=True,
        ca_cert_file=None,
        api_token=None,
        flush_period=DEFAULT_FLUSH_PERIOD,
        keep_tags=True,
        keep_name_tag=False,
        keep_url_tag=True,
    )


def finalize(config: Config) -> Config:
    """Finalize a merged config. See Config.construct_remote_config."""
    return config.construct_remote_config()

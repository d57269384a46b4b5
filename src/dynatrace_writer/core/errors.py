"""Exception hierarchy for dynatrace_writer."""


class DynatraceWriterError(Exception):
    """Base class for all errors raised by dynatrace_writer."""


class ConfigError(DynatraceWriterError, ValueError):
    """Invalid configuration. The output must not start."""


class ConfigParseError(ConfigError):
    """A configuration source could not be parsed.

    Raised for malformed JSON, argument strings, durations and booleans.
    """


class ConfigValidationError(ConfigError):
    """A merged configuration failed validation (URL, API token, period)."""


class TransportError(DynatraceWriterError, RuntimeError):
    """Sending a payload to the ingest endpoint failed.

    Attributes:
        status_code: HTTP status of the response, or None when no response
            was received (connection refused, timeout, TLS failure).
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

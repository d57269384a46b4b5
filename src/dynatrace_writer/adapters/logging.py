"""Python logging integration for dynatrace_writer.

The package logs through the standard library, passing structured fields
with ``extra=``. KeyValueFormatter renders those fields as ``key=value``
pairs after the message so they survive plain-text log sinks.
"""

import logging

PACKAGE_LOGGER = "dynatrace_writer"

# Standard LogRecord attributes that should not be treated as extra fields
_STANDARD_LOGRECORD_ATTRS = frozenset(
    {
        "args",
        "asctime",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
    }
)

_DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def extra_fields(record: logging.LogRecord) -> dict[str, str | int | float | bool]:
    """Return the structured fields passed to a logging call via ``extra``."""
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _STANDARD_LOGRECORD_ATTRS
        and not key.startswith("_")
        and isinstance(value, (str, int, float, bool))
    }


class KeyValueFormatter(logging.Formatter):
    """Formatter that appends extra fields as sorted ``key=value`` pairs.

    Example:
        ```python
        handler = logging.StreamHandler()
        handler.setFormatter(KeyValueFormatter())
        logging.getLogger("dynatrace_writer").addHandler(handler)
        ```
    """

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(fmt or _DEFAULT_FORMAT, datefmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format the record and append its extra fields."""
        text = super().format(record)
        fields = extra_fields(record)
        if not fields:
            return text
        pairs = " ".join(f"{key}={value}" for key, value in sorted(fields.items()))
        return f"{text} {pairs}"


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package logger."""
    if name == PACKAGE_LOGGER or name.startswith(f"{PACKAGE_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def configure_logging(
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> logging.Logger:
    """Attach a KeyValueFormatter handler to the package logger.

    Args:
        level: Level for the package logger.
        handler: Handler to use. Defaults to a stderr StreamHandler.

    Returns:
        The package logger.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    target = handler or logging.StreamHandler()
    target.setFormatter(KeyValueFormatter())
    package_logger.addHandler(target)
    package_logger.setLevel(level)
    return package_logger

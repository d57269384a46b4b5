"""Encoder for the Dynatrace metric ingestion line protocol.

Each line has the form::

    <metric.key>[,<dimension>=<value>...] gauge,<value> <timestamp_ms>

Keys can not be escaped in the protocol, so separator and whitespace
characters in metric and dimension keys are replaced with underscores.
Dimension values are escaped, and line breaks in them are written as
``\\n`` and ``\\r`` so one record always stays on one line.
"""

import re
from collections.abc import Iterable

from dynatrace_writer.core.models import MetricLine

_ESCAPES = str.maketrans(
    {
        "\\": "\\\\",
        '"': '\\"',
        ",": "\\,",
        "=": "\\=",
        " ": "\\ ",
        "\n": "\\n",
        "\r": "\\r",
    }
)

_KEY_SEPARATORS = re.compile(r'[\s,="\\]')


def escape_dimension_value(value: str) -> str:
    """Escape characters that are separators in the line protocol."""
    return value.translate(_ESCAPES)


def normalize_key(key: str) -> str:
    """Replace separator and whitespace characters in a key."""
    return _KEY_SEPARATORS.sub("_", key)


def encode_line(line: MetricLine) -> str:
    """Encode one MetricLine without the trailing newline."""
    parts = [normalize_key(line.key)]
    for key, value in line.dimensions:
        if not key:
            continue
        parts.append(f"{normalize_key(key)}={escape_dimension_value(value)}")
    return f"{','.join(parts)} gauge,{line.value!r} {line.timestamp_ms}"


def encode_lines(lines: Iterable[MetricLine]) -> str:
    """Encode metric lines to the ingestion text payload.

    Args:
        lines: MetricLine records, encoded in the given order.

    Returns:
        Newline-terminated lines, exactly one per record. Empty string if
        no lines.
    """
    encoded = [encode_line(line) for line in lines]

    if not encoded:
        return ""

    return "\n".join(encoded) + "\n"

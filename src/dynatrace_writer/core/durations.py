"""Duration text parsing and formatting.

Durations use the Go-style notation load-test tooling expects, e.g. "1s",
"500ms", "1m30s" or "1.5h", with an extra "d" unit for days.
"""

import re

_UNITS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}

_GROUP = re.compile(r"(\d+\.?\d*|\.\d+)(ns|us|µs|μs|ms|s|m|h|d)")


def parse_duration(text: str) -> float:
    """Parse duration text into seconds.

    Args:
        text: Duration such as "2s", "1m30s" or "-1.5h". A bare "0" is
            accepted; any other number needs a unit.

    Returns:
        The duration in seconds.

    Raises:
        ValueError: If the text is not a valid duration.
    """
    raw = text.strip()
    body = raw
    sign = 1.0
    if body[:1] in ("+", "-"):
        if body[0] == "-":
            sign = -1.0
        body = body[1:]
    if body == "0":
        return 0.0
    if not body:
        raise ValueError(f"invalid duration {text!r}")

    total = 0.0
    pos = 0
    while pos < len(body):
        match = _GROUP.match(body, pos)
        if match is None:
            if body[pos:].replace(".", "").isdigit():
                raise ValueError(f"missing unit in duration {text!r}")
            raise ValueError(f"invalid duration {text!r}")
        total += float(match.group(1)) * _UNITS[match.group(2)]
        pos = match.end()
    return sign * total


def _trim(value: float, places: int) -> str:
    return f"{value:.{places}f}".rstrip("0").rstrip(".")


def format_duration(seconds: float) -> str:
    """Render seconds as duration text, e.g. 90.0 -> "1m30s"."""
    nanos = round(abs(seconds) * 1e9)
    sign = "-" if seconds < 0 and nanos else ""
    if nanos == 0:
        return "0s"
    if nanos < 1_000:
        return f"{sign}{nanos}ns"
    if nanos < 1_000_000:
        return f"{sign}{_trim(nanos / 1e3, 3)}µs"
    if nanos < 1_000_000_000:
        return f"{sign}{_trim(nanos / 1e6, 6)}ms"

    hours, rest = divmod(nanos, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    secs = _trim(rest / 1e9, 9)
    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"

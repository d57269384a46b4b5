"""Parser for the output argument string.

The argument string is a comma-separated list of ``key=value`` items, e.g.::

    url=https://abc123.live.dynatrace.com,apitoken=dt0c01.XYZ,flushPeriod=2s,headers.X-Team=perf

A backslash escapes a literal comma, equals sign or backslash. Header
entries use dotted keys under ``headers``.
"""

from collections.abc import Callable

from dynatrace_writer.core.config import Config
from dynatrace_writer.core.durations import parse_duration
from dynatrace_writer.core.errors import ConfigParseError

HEADERS_PREFIX = "headers."


def _split_items(arg: str) -> list[tuple[str, str | None]]:
    """Split the argument string into (key, value) pairs.

    The value is None when an item has no unescaped equals sign.
    """
    items: list[tuple[str, str | None]] = []
    key: list[str] = []
    value: list[str] | None = None
    chars = iter(arg)

    def flush() -> None:
        text_key = "".join(key).strip()
        if text_key or value is not None:
            items.append((text_key, None if value is None else "".join(value)))

    for char in chars:
        current = key if value is None else value
        if char == "\\":
            escaped = next(chars, None)
            if escaped is None:
                raise ConfigParseError(
                    f"invalid argument string {arg!r}: trailing backslash"
                )
            current.append(escaped)
        elif char == "=" and value is None:
            value = []
        elif char == ",":
            flush()
            key = []
            value = None
        else:
            current.append(char)
    flush()
    return items


def _parse_bool(key: str, raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ConfigParseError(f"{key} must be true or false, got {raw!r}")


def _parse_text(key: str, raw: str) -> str:
    return raw


def _parse_period(key: str, raw: str) -> float | None:
    if not raw.strip():
        return None
    try:
        return parse_duration(raw)
    except ValueError as exc:
        raise ConfigParseError(f"{key}: {exc}") from exc


_FIELDS: dict[str, tuple[str, Callable[[str, str], object]]] = {
    "url": ("url", _parse_text),
    "insecureSkipTLSVerify": ("insecure_skip_tls_verify", _parse_bool),
    "caCertFile": ("ca_cert_file", _parse_text),
    "apitoken": ("api_token", _parse_text),
    "flushPeriod": ("flush_period", _parse_period),
    "keepTags": ("keep_tags", _parse_bool),
    "keepNameTag": ("keep_name_tag", _parse_bool),
    "keepUrlTag": ("keep_url_tag", _parse_bool),
}


def parse_arg(arg: str) -> Config:
    """Parse an argument string into a configuration layer.

    Args:
        arg: The raw argument string.

    Returns:
        A Config with only the fields named in the string set.

    Raises:
        ConfigParseError: For malformed syntax, unknown keys or values of the
            wrong shape.
    """
    values: dict[str, object] = {}
    headers: dict[str, str] = {}

    for key, raw in _split_items(arg):
        if raw is None:
            raise ConfigParseError(f"key {key!r} has no value")
        if not key:
            raise ConfigParseError(f"empty key in argument string {arg!r}")

        if key.startswith(HEADERS_PREFIX):
            name = key[len(HEADERS_PREFIX) :]
            if not name:
                raise ConfigParseError(f"empty header name in {key!r}")
            headers[name] = raw
            continue
        if key == "headers":
            raise ConfigParseError(
                "headers must be given as headers.<name>=<value>"
            )

        entry = _FIELDS.get(key)
        if entry is None:
            raise ConfigParseError(
                f"unknown key {key!r}, expected one of: "
                + ", ".join([*_FIELDS, "headers.<name>"])
            )
        field_name, parse = entry
        values[field_name] = parse(key, raw)

    return Config(headers=headers, **values)  # type: ignore[arg-type]

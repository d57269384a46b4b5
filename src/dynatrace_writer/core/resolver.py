"""Consolidation of the configuration sources.

Precedence, lowest first: built-in defaults, JSON config, environment
variables, argument string.
"""

import json
import math
from collections.abc import Mapping
from typing import Any

from dynatrace_writer.core.args import parse_arg
from dynatrace_writer.core.config import Config, new_config
from dynatrace_writer.core.durations import parse_duration
from dynatrace_writer.core.errors import ConfigParseError

ENV_URL = "K6_DYNATRACE_URL"
ENV_HEADER_PREFIX = "K6_DYNATRACE_HEADER_"
ENV_INSECURE_SKIP_TLS_VERIFY = "K6_DYNATRACE_INSECURE_SKIP_TLS_VERIFY"
ENV_CA_CERT_FILE = "K6_CA_CERT_FILE"
ENV_API_TOKEN = "K6_DYNATRACE_APITOKEN"
ENV_FLUSH_PERIOD = "K6_DYNATRACE_FLUSH_PERIOD"
ENV_KEEP_TAGS = "K6_KEEP_TAGS"
ENV_KEEP_NAME_TAG = "K6_KEEP_NAME_TAG"
ENV_KEEP_URL_TAG = "K6_KEEP_URL_TAG"

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})


def parse_bool(name: str, raw: str) -> bool:
    """Parse boolean text the way load-test tooling spells it.

    Raises:
        ConfigParseError: If ``raw`` is not a recognized spelling.
    """
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    raise ConfigParseError(f"{name}: invalid boolean {raw!r}")


def _duration(name: str, raw: str) -> float | None:
    # Empty text leaves the period unset
    if not raw.strip():
        return None
    try:
        return parse_duration(raw)
    except ValueError as exc:
        raise ConfigParseError(f"{name}: {exc}") from exc


# --- JSON ---


def _json_text(data: Mapping[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigParseError(f"JSON config: {key} must be a string")
    return value


def _json_bool(data: Mapping[str, Any], key: str) -> bool | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise ConfigParseError(f"JSON config: {key} must be a boolean")
    return value


def _json_duration(data: Mapping[str, Any], key: str) -> float | None:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return _duration(f"JSON config: {key}", value)
    # Plain numbers are milliseconds
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise ConfigParseError(f"JSON config: {key} must be finite")
        return value / 1000.0
    raise ConfigParseError(
        f"JSON config: {key} must be a duration string or milliseconds"
    )


def _json_headers(data: Mapping[str, Any]) -> dict[str, str]:
    value = data.get("headers")
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(v, str) for v in value.values()
    ):
        raise ConfigParseError("JSON config: headers must map names to strings")
    return dict(value)


def parse_json_config(raw: bytes | str | None) -> Config | None:
    """Parse the JSON config blob into a configuration layer.

    Args:
        raw: JSON document, or None/empty when there is no JSON config.

    Returns:
        The parsed layer, or None if there is nothing to apply.

    Raises:
        ConfigParseError: For malformed JSON or mistyped values.
    """
    if raw is None or not raw.strip():
        return None
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ConfigParseError(f"invalid JSON config: {exc}") from exc
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ConfigParseError("invalid JSON config: expected an object")

    return Config(
        url=_json_text(data, "url"),
        headers=_json_headers(data),
        insecure_skip_tls_verify=_json_bool(data, "insecureSkipTLSVerify"),
        ca_cert_file=_json_text(data, "caCertFile"),
        api_token=_json_text(data, "apitoken"),
        flush_period=_json_duration(data, "flushPeriod"),
        keep_tags=_json_bool(data, "keepTags"),
        keep_name_tag=_json_bool(data, "keepNameTag"),
        keep_url_tag=_json_bool(data, "keepUrlTag"),
    )


# --- Environment ---


def parse_env_config(env: Mapping[str, str]) -> Config:
    """Read the configuration layer from environment variables.

    Args:
        env: Environment variable names to values.

    Returns:
        A Config with only the fields whose variables are present.

    Raises:
        ConfigParseError: If a boolean or duration variable is malformed.
    """

    def env_bool(name: str) -> bool | None:
        if name not in env:
            return None
        return parse_bool(name, env[name])

    flush_period = None
    if ENV_FLUSH_PERIOD in env:
        flush_period = _duration(ENV_FLUSH_PERIOD, env[ENV_FLUSH_PERIOD])

    headers = {
        name[len(ENV_HEADER_PREFIX) :]: value
        for name, value in env.items()
        if name.startswith(ENV_HEADER_PREFIX) and len(name) > len(ENV_HEADER_PREFIX)
    }

    return Config(
        url=env.get(ENV_URL),
        headers=headers,
        insecure_skip_tls_verify=env_bool(ENV_INSECURE_SKIP_TLS_VERIFY),
        ca_cert_file=env.get(ENV_CA_CERT_FILE),
        api_token=env.get(ENV_API_TOKEN),
        flush_period=flush_period,
        keep_tags=env_bool(ENV_KEEP_TAGS),
        keep_name_tag=env_bool(ENV_KEEP_NAME_TAG),
        keep_url_tag=env_bool(ENV_KEEP_URL_TAG),
    )


# --- Consolidation ---


def get_consolidated_config(
    json_config: bytes | str | None,
    env: Mapping[str, str] | None,
    arg: str | None,
) -> Config:
    """Merge defaults, JSON config, environment and argument string.

    Args:
        json_config: Raw JSON config, if any.
        env: Environment variables, if any.
        arg: Argument string, if any.

    Returns:
        The merged, not yet finalized Config.

    Raises:
        ConfigParseError: If any source is malformed.
    """
    result = new_config()

    json_layer = parse_json_config(json_config)
    if json_layer is not None:
        result = result.apply(json_layer)

    result = result.apply(parse_env_config(env or {}))

    if arg:
        result = result.apply(parse_arg(arg))

    return result


def resolve(
    json_config: bytes | str | None,
    env: Mapping[str, str] | None,
    arg: str | None,
) -> Config:
    """Merge all sources and finalize the result for the ingest endpoint.

    Raises:
        ConfigError: If any source is malformed or the result is invalid.
    """
    return get_consolidated_config(json_config, env, arg).construct_remote_config()

"""Step definitions for configuration layering features."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from dynatrace_writer.core.config import Config
from dynatrace_writer.core.errors import (
    ConfigError,
    ConfigParseError,
    ConfigValidationError,
)
from dynatrace_writer.core.resolver import get_consolidated_config, resolve


@dataclass
class ConfigScenarioContext:
    """Shared state between steps in a configuration scenario."""

    json_config: str | None = None
    env: dict[str, str] = field(default_factory=dict)
    arg: str = ""
    config: Config | None = None
    error: ConfigError | None = None


@pytest.fixture
def ctx() -> ConfigScenarioContext:
    """Fresh scenario context for each test."""
    return ConfigScenarioContext()


@given(parsers.parse('the environment variable "{name}" is "{value}"'))
def step_env(ctx: ConfigScenarioContext, name: str, value: str) -> None:
    ctx.env[name] = value


@given(parsers.parse('the argument string "{arg}"'))
def step_arg(ctx: ConfigScenarioContext, arg: str) -> None:
    ctx.arg = arg


@given(parsers.parse("the JSON config '{blob}'"))
def step_json(ctx: ConfigScenarioContext, blob: str) -> None:
    ctx.json_config = blob


@when("the configuration is consolidated")
def step_consolidate(ctx: ConfigScenarioContext) -> None:
    try:
        ctx.config = get_consolidated_config(ctx.json_config, ctx.env, ctx.arg)
    except ConfigError as exc:
        ctx.error = exc


@when("the configuration is resolved")
def step_resolve(ctx: ConfigScenarioContext) -> None:
    try:
        ctx.config = resolve(ctx.json_config, ctx.env, ctx.arg)
    except ConfigError as exc:
        ctx.error = exc


def _config(ctx: ConfigScenarioContext) -> Config:
    assert ctx.error is None, f"unexpected error: {ctx.error}"
    assert ctx.config is not None
    return ctx.config


@then(parsers.parse("the flush period is {seconds:g} seconds"))
def step_flush_period(ctx: ConfigScenarioContext, seconds: float) -> None:
    assert _config(ctx).flush_period == seconds


@then(parsers.parse('the setting "{name}" is {value}'))
def step_setting(ctx: ConfigScenarioContext, name: str, value: str) -> None:
    assert getattr(_config(ctx), name) is (value == "true")


@then(parsers.parse('the url is "{url}"'))
def step_url(ctx: ConfigScenarioContext, url: str) -> None:
    assert _config(ctx).url == url


@then(parsers.parse('the header "{name}" is "{value}"'))
def step_header(ctx: ConfigScenarioContext, name: str, value: str) -> None:
    assert _config(ctx).headers[name] == value


@then("a configuration parse error is raised")
def step_parse_error(ctx: ConfigScenarioContext) -> None:
    assert isinstance(ctx.error, ConfigParseError)


@then("a configuration validation error is raised")
def step_validation_error(ctx: ConfigScenarioContext) -> None:
    assert isinstance(ctx.error, ConfigValidationError)

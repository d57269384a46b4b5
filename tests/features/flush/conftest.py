"""Step definitions for flush backpressure features."""

import logging
from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from dynatrace_writer.adapters.buffer import SampleBuffer
from dynatrace_writer.adapters.scheduler import FlushScheduler
from dynatrace_writer.core.config import Config
from dynatrace_writer.core.conversion import HIGH_WATER_MARK, SampleConverter
from dynatrace_writer.core.errors import TransportError
from dynatrace_writer.core.models import ConnectedSamples, RawSample
from tests.doubles import FakeClock, RecordingTransport


@dataclass
class FlushScenarioContext:
    """Shared state between steps in a flush scenario."""

    flush_period: float = 1.0
    send_seconds: float = 0.0
    high_water_mark: int = HIGH_WATER_MARK
    backpressure: bool = False
    buffer: SampleBuffer = field(default_factory=SampleBuffer)
    transport: RecordingTransport = field(default_factory=RecordingTransport)
    scheduler: FlushScheduler | None = None
    containers_added: int = 0


@pytest.fixture
def ctx(caplog: pytest.LogCaptureFixture) -> FlushScenarioContext:
    """Fresh scenario context for each test, capturing package logs."""
    caplog.set_level(logging.DEBUG, logger="dynatrace_writer")
    return FlushScenarioContext()


def _add_containers(ctx: FlushScenarioContext, count: int, samples: int) -> None:
    containers = []
    for _ in range(count):
        index = ctx.containers_added
        ctx.containers_added += 1
        containers.append(
            ConnectedSamples(
                samples=tuple(
                    RawSample(
                        metric="http_reqs",
                        value=1.0,
                        timestamp=1702300000.0,
                        tags={"container": str(index), "sample": str(i)},
                    )
                    for i in range(samples)
                )
            )
        )
    ctx.buffer.add_metric_samples(containers)


def _scheduler(ctx: FlushScenarioContext) -> FlushScheduler:
    if ctx.scheduler is None:
        config = Config(
            url="https://x.example/api/v2/metrics/ingest",
            api_token="abc",
            flush_period=ctx.flush_period,
            keep_tags=True,
        )
        ctx.scheduler = FlushScheduler(
            config,
            ctx.buffer,
            ctx.transport,
            converter=SampleConverter(high_water_mark=ctx.high_water_mark),
            clock=FakeClock(step=ctx.send_seconds),
        )
        ctx.scheduler.backpressure.set(ctx.backpressure)
    return ctx.scheduler


@given(parsers.parse("a flush period of {seconds:g} second"))
def step_flush_period(ctx: FlushScenarioContext, seconds: float) -> None:
    ctx.flush_period = seconds


@given(parsers.parse("an endpoint that takes {seconds:g} seconds to answer"))
def step_endpoint_latency(ctx: FlushScenarioContext, seconds: float) -> None:
    ctx.send_seconds = seconds


@given("an unreachable endpoint")
def step_unreachable(ctx: FlushScenarioContext) -> None:
    ctx.transport = RecordingTransport(error=TransportError("connection refused"))


@given(parsers.parse("a high-water mark of {lines:d} lines"))
def step_high_water_mark(ctx: FlushScenarioContext, lines: int) -> None:
    ctx.high_water_mark = lines


@given("the backpressure flag was set by an earlier flush")
def step_backpressure_set(ctx: FlushScenarioContext) -> None:
    ctx.backpressure = True


@given(parsers.parse("{count:d} buffered containers of {samples:d} samples"))
def step_buffered(ctx: FlushScenarioContext, count: int, samples: int) -> None:
    _add_containers(ctx, count, samples)


@when(parsers.parse("{count:d} buffered containers of {samples:d} samples are added"))
def step_add_more(ctx: FlushScenarioContext, count: int, samples: int) -> None:
    _add_containers(ctx, count, samples)


@when("a flush runs")
def step_flush(ctx: FlushScenarioContext) -> None:
    _scheduler(ctx).flush()


@then("the backpressure flag is set")
def step_flag_set(ctx: FlushScenarioContext) -> None:
    assert _scheduler(ctx).backpressure.is_active() is True


@then("the backpressure flag is clear")
def step_flag_clear(ctx: FlushScenarioContext) -> None:
    assert _scheduler(ctx).backpressure.is_active() is False


@then(parsers.parse("the last payload has {lines:d} lines"))
def step_last_payload(ctx: FlushScenarioContext, lines: int) -> None:
    body = ctx.transport.requests[-1][2]
    assert len(body.splitlines()) == lines


@then("the buffer is empty")
def step_buffer_empty(ctx: FlushScenarioContext) -> None:
    assert len(ctx.buffer) == 0


@then("a warning about the slow remote write is logged")
def step_warning_logged(caplog: pytest.LogCaptureFixture) -> None:
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert any("Some samples may be dropped" in r.getMessage() for r in warnings)


@then("no warning is logged")
def step_no_warning(caplog: pytest.LogCaptureFixture) -> None:
    assert not [r for r in caplog.records if r.levelno >= logging.WARNING]


@then("an error about the failed send is logged")
def step_error_logged(caplog: pytest.LogCaptureFixture) -> None:
    errors = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert any("Failed to send metrics" in r.getMessage() for r in errors)

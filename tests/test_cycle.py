from __future__ import annotations

import io
import queue
import threading
from datetime import timedelta

import pytest

from tcpingx import Config, CycleController, KeypressWatcher, ProbeResult, ProbeTarget, ResolveError, RunningStats, Ticker


class ScriptedProbe:
    def __init__(self, outcomes: str) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple] = []

    def __call__(self, address, port, timeout):
        self.calls.append((address, port, timeout))
        outcome = self.outcomes.pop(0) if self.outcomes else "F"
        if outcome == "S":
            return ProbeResult(success=True, rtt=12.5)
        return ProbeResult(success=False)


class FakeTicker:
    def __init__(self, stop_after: int | None = None) -> None:
        self.waits = 0
        self.stop_after = stop_after

    def wait(self) -> bool:
        self.waits += 1
        return self.stop_after is not None and self.waits >= self.stop_after


class CountingResolver:
    def __init__(self, ip: str = "192.0.2.1") -> None:
        self.ip = ip
        self.calls: list[tuple] = []

    def __call__(self, target, previous_ip=None, has_prior_probes=False):
        self.calls.append((target.hostname, previous_ip, has_prior_probes))
        return self.ip


def _controller(printer, clock, *, hostname="example.com", is_ip=False, outcomes="S", ticker=None, resolver=None, **config_kwargs):
    config = Config(target=hostname, port=443, **config_kwargs)
    stats = RunningStats(target=ProbeTarget(hostname=hostname, port=443, is_ip=is_ip), ip="192.0.2.1")
    return CycleController(
        config,
        stats,
        printer,
        probe_func=ScriptedProbe(outcomes),
        resolve_func=resolver or CountingResolver(),
        ticker=ticker or FakeTicker(),
        clock=clock,
    )


def test_probe_count_limit_stops_and_prints_statistics(printer, clock) -> None:
    controller = _controller(printer, clock, outcomes="SSF", probes_before_quit=3)

    assert controller.run() == 0

    stats = controller.stats
    assert stats.total_probes == 3
    assert printer.names() == ["start", "success", "success", "fail", "statistics"]
    final = printer.of("statistics")[0][0]
    assert final is not stats
    assert final.total_successful_probes == 2
    assert final.end_time is not None


def test_probe_uses_interval_as_timeout(printer, clock) -> None:
    controller = _controller(printer, clock, outcomes="S", probes_before_quit=1, interval=0.5)

    controller.run()

    assert controller.probe_func.calls == [("192.0.2.1", 443, 0.5)]
    assert controller.stats.total_uptime == timedelta(seconds=0.5)


def test_resolve_retry_after_threshold(printer, clock) -> None:
    resolver = CountingResolver(ip="192.0.2.1")
    controller = _controller(
        printer, clock, outcomes="FFS", resolver=resolver, retry_resolve_after=2, probes_before_quit=3
    )

    controller.run()

    assert resolver.calls == [("example.com", "192.0.2.1", True)]
    assert controller.stats.retried_hostname_resolves == 1
    assert printer.names()[:4] == ["start", "fail", "fail", "retry"]
    # Streak was reset by the retry, so the downtime reported is empty.
    assert printer.of("downtime") == [(timedelta(),)]


def test_resolve_retry_resets_streak_even_when_address_unchanged(printer, clock) -> None:
    resolver = CountingResolver(ip="192.0.2.1")
    controller = _controller(printer, clock, outcomes="FF", resolver=resolver, retry_resolve_after=2)

    controller.probe_once()
    controller.probe_once()
    controller.retry_resolve()

    assert len(resolver.calls) == 1
    assert controller.stats.ongoing_unsuccessful_probes == 0
    assert controller.stats.ip == "192.0.2.1"


def test_resolve_retry_switches_address(printer, clock) -> None:
    resolver = CountingResolver(ip="192.0.2.99")
    controller = _controller(printer, clock, outcomes="FFF", resolver=resolver, retry_resolve_after=2, probes_before_quit=3)

    controller.run()

    assert controller.probe_func.calls[-1][0] == "192.0.2.99"
    assert printer.of("fail")[-1] == ("example.com", "192.0.2.99", 443, 1)


def test_literal_ip_never_retries_resolve(printer, clock) -> None:
    resolver = CountingResolver()
    controller = _controller(
        printer,
        clock,
        hostname="192.0.2.1",
        is_ip=True,
        outcomes="F" * 12,
        resolver=resolver,
        retry_resolve_after=5,
        probes_before_quit=12,
    )

    assert controller.should_retry_resolve is False
    controller.run()

    assert resolver.calls == []
    assert controller.stats.ongoing_unsuccessful_probes == 12


def test_resolve_retry_disabled_when_threshold_zero(printer, clock) -> None:
    controller = _controller(printer, clock, retry_resolve_after=0)

    assert controller.should_retry_resolve is False


def test_fatal_resolve_error_propagates(printer, clock) -> None:
    def _fail(*args, **kwargs):
        raise ResolveError("Failed to find IPv6 address for example.com")

    controller = _controller(printer, clock, outcomes="FFFF", resolver=_fail, retry_resolve_after=1)

    with pytest.raises(ResolveError):
        controller.run()


def test_enter_key_prints_snapshot_without_mutating(printer, clock) -> None:
    controller = _controller(printer, clock, outcomes="SS", probes_before_quit=2)
    controller.keypresses.put_nowait("\n")

    controller.run()

    statistics = printer.of("statistics")
    assert len(statistics) == 2
    interim = statistics[0][0]
    assert interim.total_successful_probes == 1
    assert controller.stats.total_successful_probes == 2
    assert printer.names()[2] == "statistics"


def test_non_enter_lines_are_ignored(printer, clock) -> None:
    controller = _controller(printer, clock, outcomes="S", probes_before_quit=1)
    controller.keypresses.put_nowait("q\n")

    controller.run()

    assert printer.names().count("statistics") == 1


def test_repeated_enter_reports_are_equal(printer, clock) -> None:
    controller = _controller(printer, clock, outcomes="SF", interval=0.5)
    controller.stats.start_time = clock()
    controller.stats.interval = timedelta(seconds=0.5)
    controller.probe_once()
    controller.probe_once()

    controller.keypresses.put_nowait("\n")
    controller.check_keypress()
    controller.keypresses.put_nowait("\n")
    controller.check_keypress()

    first, second = (call[0] for call in printer.of("statistics"))
    assert first == second
    assert first.end_time == controller.stats.start_time + timedelta(seconds=1)
    assert controller.statistics_snapshot() == first


class StopAfterTicker:
    """Simulates a SIGINT arriving while the loop waits for its nth tick."""

    def __init__(self, controller: CycleController, after: int) -> None:
        self.controller = controller
        self.after = after
        self.waits = 0

    def wait(self) -> bool:
        self.waits += 1
        if self.waits >= self.after:
            self.controller.request_stop()
        return self.controller.stop_event.is_set()


def test_stop_request_prints_closing_snapshot(printer, clock) -> None:
    controller = _controller(printer, clock, outcomes="SSSS")
    controller.ticker = StopAfterTicker(controller, after=3)

    assert controller.run() == 0

    stats = controller.stats
    assert stats.total_probes == 3
    closing = printer.of("statistics")[0][0]
    assert closing.end_time == stats.start_time + timedelta(seconds=3)


def test_stop_before_first_cycle_still_reports(printer, clock) -> None:
    controller = _controller(printer, clock, outcomes="S")
    controller.request_stop()

    assert controller.run() == 0
    assert printer.names() == ["start", "statistics"]
    assert controller.stats.total_probes == 0


def test_ticker_wait_returns_when_stopped() -> None:
    stop = threading.Event()
    ticker = Ticker(30.0, stop)
    stop.set()

    assert ticker.wait() is True


def test_ticker_is_fixed_rate() -> None:
    now = [100.0]
    waits: list[float] = []

    class _Event:
        def wait(self, timeout=None):
            waits.append(timeout)
            now[0] += timeout
            return False

    ticker = Ticker(1.0, _Event(), clock=lambda: now[0])

    now[0] += 0.25  # cycle work
    ticker.wait()
    now[0] += 0.5
    ticker.wait()
    now[0] += 3.0  # overrun
    ticker.wait()
    ticker.wait()

    assert waits == [pytest.approx(0.75), pytest.approx(0.5), 0.0, pytest.approx(1.0)]


def test_keypress_watcher_keeps_single_pending_line() -> None:
    lines: queue.Queue[str] = queue.Queue(maxsize=1)
    watcher = KeypressWatcher(lines, stream=io.StringIO("\nsecond\nthird\n"))

    watcher.start()
    watcher.join(timeout=5)

    assert not watcher.is_alive()
    assert lines.get_nowait() == "\n"
    assert lines.empty()

"""The probe loop: pacing, resolve retries, keypresses and shutdown."""

from __future__ import annotations

import queue
import signal
import sys
import threading
import time
from datetime import datetime, timedelta
from typing import Callable, Optional, TextIO

from ._models import Config, ProbeResult, ProbeTarget, RunningStats
from ._printers import Printer
from ._resolver import resolve_hostname
from ._stats import StatsTracker
from ._tcping import logger, probe

ENTER_KEYS = {"\n", "\r", "\r\n"}

ProbeFunc = Callable[[str, int, float], ProbeResult]
ResolveFunc = Callable[..., str]


class Ticker:
    """Fixed-rate pacing.

    Ticks are ``interval`` apart counted from when the ticker was started, so
    time spent inside a cycle is not added on top of the interval. A cycle that
    overruns is followed immediately by the next one; missed ticks are dropped.
    """

    def __init__(
        self,
        interval: float,
        stop_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.interval = interval
        self.stop_event = stop_event or threading.Event()
        self.clock = clock
        self.next_tick = clock() + interval

    def wait(self) -> bool:
        """Block until the next tick. Returns ``True`` if stopped meanwhile."""
        now = self.clock()
        if self.next_tick < now:
            logger.debug("Cycle overran by %.3f s", now - self.next_tick)
            self.next_tick = now
        stopped = self.stop_event.wait(timeout=max(0.0, self.next_tick - now))
        self.next_tick += self.interval
        return stopped


class KeypressWatcher(threading.Thread):
    """Forward lines read from ``stream`` into a single-slot queue.

    Lines arriving while the slot is taken are dropped.
    """

    def __init__(self, lines: "queue.Queue[str]", stream: Optional[TextIO] = None) -> None:
        super().__init__(daemon=True, name="tcpingx-stdin")
        self.lines = lines
        self.stream = stream

    def run(self) -> None:
        stream = self.stream or sys.stdin
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError):
                return
            if not line:
                return
            try:
                self.lines.put_nowait(line)
            except queue.Full:
                logger.debug("Dropping keypress, one is already pending")


class CycleController:
    """Run probe cycles until the probe limit is reached or a stop is requested."""

    def __init__(
        self,
        config: Config,
        stats: RunningStats,
        printer: Printer,
        *,
        probe_func: ProbeFunc = probe,
        resolve_func: ResolveFunc = resolve_hostname,
        keypresses: Optional["queue.Queue[str]"] = None,
        ticker: Optional[Ticker] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config
        self.stats = stats
        self.printer = printer
        self.tracker = StatsTracker(stats, printer)
        self.probe_func = probe_func
        self.resolve_func = resolve_func
        self.keypresses: "queue.Queue[str]" = keypresses if keypresses is not None else queue.Queue(maxsize=1)
        self.stop_event = threading.Event()
        self.ticker = ticker or Ticker(config.interval, self.stop_event)
        self.clock = clock
        self.probe_count = 0

    @property
    def target(self) -> ProbeTarget:
        return self.stats.target

    @property
    def should_retry_resolve(self) -> bool:
        return self.config.retry_resolve_after > 0 and not self.target.is_ip

    def request_stop(self, signum: Optional[int] = None, frame: object = None) -> None:
        """Ask the loop to finish; safe to call from a signal handler."""
        self.stop_event.set()

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self.request_stop)
        signal.signal(signal.SIGTERM, self.request_stop)

    def retry_resolve(self) -> None:
        if self.stats.ongoing_unsuccessful_probes < self.config.retry_resolve_after:
            return
        self.printer.print_retrying_to_resolve(self.target.hostname)
        ip = self.resolve_func(self.target, self.stats.ip, self.stats.has_probes)
        if ip != self.stats.ip:
            logger.debug("Target %s moved from %s to %s", self.target.hostname, self.stats.ip, ip)
        self.tracker.record_resolve_retry(ip)

    def probe_once(self) -> ProbeResult:
        result = self.probe_func(self.stats.ip, self.target.port, self.config.interval)
        now = self.clock()
        if result.success:
            self.tracker.on_success(result.rtt or 0.0, now)
        else:
            self.tracker.on_failure(now)
        return result

    def statistics_snapshot(self) -> RunningStats:
        """Read-only copy for the printer; equal for equal probe counts."""
        return self.tracker.closing_snapshot()

    def check_keypress(self) -> None:
        try:
            line = self.keypresses.get_nowait()
        except queue.Empty:
            return
        if line in ENTER_KEYS:
            self.printer.print_statistics(self.statistics_snapshot())

    def _finish_interrupted(self) -> int:
        self.printer.print_statistics(self.statistics_snapshot())
        return 0

    def run(self) -> int:
        """Run the loop and return the process exit code.

        :class:`~tcpingx._exceptions.ResolveError` from a resolve retry is
        propagated to the caller.
        """
        if self.stats.start_time is None:
            self.stats.start_time = self.clock()
        self.stats.interval = timedelta(seconds=self.config.interval)
        self.printer.print_start(self.target.hostname, self.target.port)

        while not self.stop_event.is_set():
            if self.should_retry_resolve:
                self.retry_resolve()

            self.probe_once()

            if self.ticker.wait():
                break

            self.check_keypress()

            if self.config.probes_before_quit == 0:
                continue
            self.probe_count += 1
            if self.probe_count >= self.config.probes_before_quit:
                self.printer.print_statistics(self.statistics_snapshot())
                return 0

        return self._finish_interrupted()

"""Streak, uptime and downtime bookkeeping for a run."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from ._models import LongestTime, RttResults, RunningStats

if TYPE_CHECKING:
    from ._printers import Printer


def find_min_avg_max(rtts: list[float]) -> RttResults:
    """Min, average and max of the RTT samples, in milliseconds."""
    if not rtts:
        return RttResults()
    return RttResults(
        min=min(rtts),
        max=max(rtts),
        average=sum(rtts) / len(rtts),
        has_results=True,
    )


def longer_session(
    current: LongestTime, session_start: Optional[datetime], duration: timedelta
) -> LongestTime:
    """Return the record to keep after a session of ``duration`` closed.

    Sessions that never started or lasted no time are ignored. Ties go to the
    newer session.
    """
    if session_start is None or not duration:
        return current

    candidate = LongestTime.from_start(session_start, duration)
    if current.end is None:
        return candidate
    if candidate.duration >= current.duration:
        return candidate
    return current


class StatsTracker:
    """Feed probe outcomes into a :class:`RunningStats`.

    Every outcome adds exactly one interval to the uptime or downtime total,
    regardless of how long the connect call took.
    """

    def __init__(self, stats: RunningStats, printer: "Printer") -> None:
        self.stats = stats
        self.printer = printer

    @property
    def interval(self) -> timedelta:
        return self.stats.interval

    def _display_hostname(self) -> str:
        return "" if self.stats.target.is_ip else self.stats.target.hostname

    def on_failure(self, now: datetime) -> None:
        stats = self.stats
        if not stats.was_down:
            stats.start_of_downtime = now
            stats.longest_uptime = longer_session(
                stats.longest_uptime,
                stats.start_of_uptime,
                stats.ongoing_successful_probes * self.interval,
            )
            stats.start_of_uptime = None
            stats.ongoing_successful_probes = 0
            stats.was_down = True

        stats.total_downtime += self.interval
        stats.last_unsuccessful_probe = now
        stats.total_unsuccessful_probes += 1
        stats.ongoing_unsuccessful_probes += 1

        self.printer.print_probe_fail(
            self._display_hostname(),
            stats.ip,
            stats.target.port,
            stats.ongoing_unsuccessful_probes,
        )

    def on_success(self, rtt: float, now: datetime) -> None:
        stats = self.stats
        if stats.was_down:
            self.printer.print_total_downtime(stats.ongoing_unsuccessful_probes * self.interval)
            stats.start_of_uptime = now
            stats.longest_downtime = longer_session(
                stats.longest_downtime,
                stats.start_of_downtime,
                stats.ongoing_unsuccessful_probes * self.interval,
            )
            stats.start_of_downtime = None
            stats.was_down = False
            stats.ongoing_unsuccessful_probes = 0
            stats.ongoing_successful_probes = 0

        if stats.start_of_uptime is None:
            stats.start_of_uptime = now

        stats.total_uptime += self.interval
        stats.last_successful_probe = now
        stats.total_successful_probes += 1
        stats.ongoing_successful_probes += 1
        stats.rtt.append(rtt)

        self.printer.print_probe_success(
            self._display_hostname(),
            stats.ip,
            stats.target.port,
            stats.ongoing_successful_probes,
            rtt,
        )

    def record_resolve_retry(self, ip: str) -> None:
        self.stats.ip = ip
        self.stats.ongoing_unsuccessful_probes = 0
        self.stats.retried_hostname_resolves += 1

    def closing_snapshot(self) -> RunningStats:
        """Copy of the stats with the end time set from the probe count.

        Used for every statistics report: the run is taken to have lasted one
        interval per completed probe, so repeated calls without a probe in
        between return equal copies.
        """
        snapshot = self.stats.snapshot()
        if snapshot.start_time is not None:
            snapshot.end_time = snapshot.start_time + snapshot.total_probes * self.interval
        return snapshot

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from tcpingx import Printer, ProbeTarget, RunningStats


class RecordingPrinter(Printer):
    """Printer that keeps every call for later assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def of(self, name: str) -> list[tuple]:
        return [call[1:] for call in self.calls if call[0] == name]

    def print_start(self, hostname, port):
        self.calls.append(("start", hostname, port))

    def print_probe_success(self, hostname, ip, port, streak, rtt):
        self.calls.append(("success", hostname, ip, port, streak, rtt))

    def print_probe_fail(self, hostname, ip, port, streak):
        self.calls.append(("fail", hostname, ip, port, streak))

    def print_retrying_to_resolve(self, hostname):
        self.calls.append(("retry", hostname))

    def print_total_downtime(self, downtime):
        self.calls.append(("downtime", downtime))

    def print_statistics(self, stats):
        self.calls.append(("statistics", stats))

    def print_version(self, version):
        self.calls.append(("version", version))

    def print_info(self, message):
        self.calls.append(("info", message))

    def print_error(self, message):
        self.calls.append(("error", message))


class FakeClock:
    """Datetime source advancing one second per call."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def printer() -> RecordingPrinter:
    return RecordingPrinter()


@pytest.fixture
def hostname_stats() -> RunningStats:
    target = ProbeTarget(hostname="example.com", port=443)
    return RunningStats(target=target, ip="93.184.216.34", start_time=datetime(2024, 1, 1, 12, 0, 0))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()

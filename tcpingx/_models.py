"""Data models shared by the probe loop and the printers."""

from __future__ import annotations

import copy
import enum
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional


class AddressFamily(enum.Enum):
    ANY = "any"
    IPV4 = "ipv4"
    IPV6 = "ipv6"


@dataclass(frozen=True)
class Config:
    target: str
    port: int
    family: AddressFamily = AddressFamily.ANY
    retry_resolve_after: int = 0
    probes_before_quit: int = 0
    interval: float = 1.0
    output_json: bool = False
    pretty_json: bool = False
    debug: bool = False


@dataclass(frozen=True)
class ProbeTarget:
    hostname: str
    port: int
    family: AddressFamily = AddressFamily.ANY
    is_ip: bool = False


@dataclass
class ProbeResult:
    success: bool
    rtt: Optional[float] = None


@dataclass
class LongestTime:
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    duration: timedelta = field(default_factory=timedelta)

    @classmethod
    def from_start(cls, start: datetime, duration: timedelta) -> "LongestTime":
        return cls(start=start, end=start + duration, duration=duration)


@dataclass
class RttResults:
    min: float = 0.0
    max: float = 0.0
    average: float = 0.0
    has_results: bool = False


@dataclass
class RunningStats:
    """Aggregate state of one run.

    Only :class:`~tcpingx._stats.StatsTracker` and the cycle controller write to
    it. Printers receive a copy from :meth:`snapshot`.
    """

    target: ProbeTarget
    ip: str
    interval: timedelta = field(default_factory=lambda: timedelta(seconds=1))
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    start_of_uptime: Optional[datetime] = None
    start_of_downtime: Optional[datetime] = None
    last_successful_probe: Optional[datetime] = None
    last_unsuccessful_probe: Optional[datetime] = None
    total_uptime: timedelta = field(default_factory=timedelta)
    total_downtime: timedelta = field(default_factory=timedelta)
    longest_uptime: LongestTime = field(default_factory=LongestTime)
    longest_downtime: LongestTime = field(default_factory=LongestTime)
    total_successful_probes: int = 0
    total_unsuccessful_probes: int = 0
    ongoing_successful_probes: int = 0
    ongoing_unsuccessful_probes: int = 0
    retried_hostname_resolves: int = 0
    was_down: bool = False
    rtt: list[float] = field(default_factory=list)

    @property
    def total_probes(self) -> int:
        return self.total_successful_probes + self.total_unsuccessful_probes

    @property
    def has_probes(self) -> bool:
        return self.total_probes > 0

    @property
    def packet_loss(self) -> float:
        if not self.total_probes:
            return 0.0
        return self.total_unsuccessful_probes / self.total_probes * 100

    def snapshot(self) -> "RunningStats":
        return copy.deepcopy(self)

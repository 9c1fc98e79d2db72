"""Output formats for tcpingx.

Printers only render what they are handed. They never change the stats they
receive and do no bookkeeping of their own.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape

from ._models import LongestTime, RunningStats
from ._stats import find_min_avg_max

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _plural(value: float, unit: str) -> str:
    text = f"{value:.0f}" if float(value).is_integer() else f"{value:.1f}"
    return f"{text} {unit}" if value == 1 else f"{text} {unit}s"


def duration_to_string(duration: timedelta) -> str:
    """Human readable duration, e.g. ``1 hour 2 minutes 3 seconds``."""
    total = duration.total_seconds()
    hours, remainder = divmod(int(total), 3600)
    minutes = remainder // 60
    seconds = total - hours * 3600 - minutes * 60

    parts: list[str] = []
    if hours:
        parts.append(_plural(hours, "hour"))
    if minutes:
        parts.append(_plural(minutes, "minute"))
    if seconds or not parts:
        parts.append(_plural(round(seconds, 1), "second"))
    return " ".join(parts)


def duration_to_clock(duration: timedelta) -> str:
    total = int(duration.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.strftime(TIME_FORMAT) if value is not None else None


def _host_label(hostname: str, ip: str) -> str:
    if not hostname or hostname == ip:
        return ip
    return f"{hostname} ({ip})"


def reply_message(hostname: str, ip: str, port: int, streak: int, rtt: float) -> str:
    return f"Reply from {_host_label(hostname, ip)} on port {port} TCP_conn={streak} time={rtt:.3f} ms"


def no_reply_message(hostname: str, ip: str, port: int, streak: int) -> str:
    return f"No reply from {_host_label(hostname, ip)} on port {port} TCP_conn={streak}"


class Printer(ABC):
    """Set of operations the probe loop reports through.

    ``hostname`` is empty when the target was given as an IP address.
    """

    @abstractmethod
    def print_start(self, hostname: str, port: int) -> None:
        pass

    @abstractmethod
    def print_probe_success(
        self, hostname: str, ip: str, port: int, streak: int, rtt: float
    ) -> None:
        pass

    @abstractmethod
    def print_probe_fail(
        self, hostname: str, ip: str, port: int, streak: int
    ) -> None:
        pass

    @abstractmethod
    def print_retrying_to_resolve(self, hostname: str) -> None:
        pass

    @abstractmethod
    def print_total_downtime(self, downtime: timedelta) -> None:
        pass

    @abstractmethod
    def print_statistics(self, stats: RunningStats) -> None:
        pass

    @abstractmethod
    def print_version(self, version: str) -> None:
        pass

    @abstractmethod
    def print_info(self, message: str) -> None:
        pass

    @abstractmethod
    def print_error(self, message: str) -> None:
        pass


class PlainPrinter(Printer):
    """Colored, human readable output."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def _print(self, text: str, style: str) -> None:
        self.console.print(f"[{style}]{escape(text)}[/{style}]", soft_wrap=True)

    def print_start(self, hostname: str, port: int) -> None:
        self._print(f"TCPinging {hostname} on port {port}", "bright_cyan")

    def print_probe_success(self, hostname: str, ip: str, port: int, streak: int, rtt: float) -> None:
        self._print(reply_message(hostname, ip, port, streak, rtt), "bright_green")

    def print_probe_fail(self, hostname: str, ip: str, port: int, streak: int) -> None:
        self._print(no_reply_message(hostname, ip, port, streak), "red")

    def print_retrying_to_resolve(self, hostname: str) -> None:
        self._print(f"Retrying to resolve {hostname}", "yellow")

    def print_total_downtime(self, downtime: timedelta) -> None:
        self._print(f"No response received for {duration_to_string(downtime)}", "yellow")

    def _print_longest(self, label: str, record: LongestTime) -> None:
        if record.end is None:
            return
        self.console.print(
            f"[yellow]longest consecutive {label}:[/yellow] "
            f"[cyan]{escape(duration_to_string(record.duration))}[/cyan] "
            f"from [cyan]{_format_time(record.start)}[/cyan] "
            f"to [cyan]{_format_time(record.end)}[/cyan]",
            soft_wrap=True,
        )

    def _print_field(self, label: str, value: str, style: str = "cyan") -> None:
        self.console.print(f"[yellow]{label}:[/yellow] [{style}]{escape(value)}[/{style}]", soft_wrap=True)

    def print_statistics(self, stats: RunningStats) -> None:
        target = stats.target
        hostname = "" if target.is_ip else target.hostname
        self._print(f"\n--- {_host_label(hostname, stats.ip)} TCPing statistics ---", "bright_cyan")

        loss_style = "green" if stats.total_unsuccessful_probes == 0 else "red"
        self.console.print(
            f"{stats.total_probes} probes transmitted on port {target.port} | "
            f"{stats.total_successful_probes} received, "
            f"[{loss_style}]{stats.packet_loss:.2f}%[/{loss_style}] packet loss",
            soft_wrap=True,
        )
        self._print_field("successful probes", str(stats.total_successful_probes), "green")
        self._print_field("unsuccessful probes", str(stats.total_unsuccessful_probes), "red")
        self._print_field(
            "last successful probe",
            _format_time(stats.last_successful_probe) or "Never succeeded",
        )
        self._print_field(
            "last unsuccessful probe",
            _format_time(stats.last_unsuccessful_probe) or "Never failed",
        )
        self._print_field("total uptime", duration_to_string(stats.total_uptime), "green")
        self._print_field("total downtime", duration_to_string(stats.total_downtime), "red")
        self._print_longest("uptime", stats.longest_uptime)
        self._print_longest("downtime", stats.longest_downtime)

        if stats.retried_hostname_resolves:
            times = "time" if stats.retried_hostname_resolves == 1 else "times"
            self._print_field(
                "retried to resolve hostname",
                f"{stats.retried_hostname_resolves} {times}",
            )

        rtt = find_min_avg_max(stats.rtt)
        if rtt.has_results:
            self._print_field("rtt min/avg/max", f"{rtt.min:.3f}/{rtt.average:.3f}/{rtt.max:.3f} ms")

        self._print("--------------------------------------", "bright_cyan")
        if stats.start_time is not None:
            self._print_field("TCPing started at", _format_time(stats.start_time))
        if stats.end_time is not None:
            self._print_field("TCPing ended at", _format_time(stats.end_time))
            if stats.start_time is not None:
                self._print_field("duration (HH:MM:SS)", duration_to_clock(stats.end_time - stats.start_time))

    def print_version(self, version: str) -> None:
        self._print(f"TCPING version {version}", "bright_cyan")

    def print_info(self, message: str) -> None:
        self._print(message, "bright_cyan")

    def print_error(self, message: str) -> None:
        self._print(message, "bold red")


class JsonPrinter(Printer):
    """One JSON object per event, written to stdout."""

    def __init__(self, pretty: bool = False, console: Optional[Console] = None) -> None:
        self.pretty = pretty
        self.console = console or Console()

    def _emit(self, event_type: str, message: str, **fields: Any) -> None:
        data: dict[str, Any] = {
            "type": event_type,
            "message": message,
            "timestamp": datetime.now().isoformat(timespec="seconds"),
        }
        data.update(fields)
        text = json.dumps(data, indent=2 if self.pretty else None)
        self.console.out(text, highlight=False)

    def print_start(self, hostname: str, port: int) -> None:
        self._emit("start", f"TCPinging {hostname} on port {port}", hostname=hostname, port=port)

    def print_probe_success(self, hostname: str, ip: str, port: int, streak: int, rtt: float) -> None:
        self._emit(
            "probe",
            reply_message(hostname, ip, port, streak, rtt),
            hostname=hostname,
            ip=ip,
            port=port,
            success=True,
            latency=round(rtt, 3),
            ongoing_successful_probes=streak,
        )

    def print_probe_fail(self, hostname: str, ip: str, port: int, streak: int) -> None:
        self._emit(
            "probe",
            no_reply_message(hostname, ip, port, streak),
            hostname=hostname,
            ip=ip,
            port=port,
            success=False,
            ongoing_unsuccessful_probes=streak,
        )

    def print_retrying_to_resolve(self, hostname: str) -> None:
        self._emit("retry", f"Retrying to resolve {hostname}", hostname=hostname)

    def print_total_downtime(self, downtime: timedelta) -> None:
        self._emit(
            "downtime",
            f"No response received for {duration_to_string(downtime)}",
            downtime=downtime.total_seconds(),
        )

    def print_statistics(self, stats: RunningStats) -> None:
        target = stats.target
        rtt = find_min_avg_max(stats.rtt)
        fields: dict[str, Any] = {
            "hostname": target.hostname,
            "ip": stats.ip,
            "port": target.port,
            "total_probes": stats.total_probes,
            "total_successful_probes": stats.total_successful_probes,
            "total_unsuccessful_probes": stats.total_unsuccessful_probes,
            "packet_loss": round(stats.packet_loss, 2),
            "last_successful_probe": _format_time(stats.last_successful_probe),
            "last_unsuccessful_probe": _format_time(stats.last_unsuccessful_probe),
            "total_uptime": stats.total_uptime.total_seconds(),
            "total_downtime": stats.total_downtime.total_seconds(),
            "retried_hostname_resolves": stats.retried_hostname_resolves,
            "start_time": _format_time(stats.start_time),
            "end_time": _format_time(stats.end_time),
        }
        for label, record in (("uptime", stats.longest_uptime), ("downtime", stats.longest_downtime)):
            if record.end is not None:
                fields[f"longest_{label}"] = {
                    "duration": record.duration.total_seconds(),
                    "start": _format_time(record.start),
                    "end": _format_time(record.end),
                }
        if rtt.has_results:
            fields["rtt"] = {
                "min": round(rtt.min, 3),
                "average": round(rtt.average, 3),
                "max": round(rtt.max, 3),
            }
        label = target.hostname if target.is_ip else _host_label(target.hostname, stats.ip)
        self._emit("statistics", f"stats for {label}", **fields)

    def print_version(self, version: str) -> None:
        self._emit("version", f"TCPING version {version}", version=version)

    def print_info(self, message: str) -> None:
        self._emit("info", message)

    def print_error(self, message: str) -> None:
        self._emit("error", message)

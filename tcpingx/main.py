"""Command line front end for tcpingx."""

from __future__ import annotations

import argparse
import math
from datetime import timedelta
from typing import Optional, Sequence

from . import __version__
from ._cycle import CycleController, KeypressWatcher
from ._exceptions import ConfigError, TcpingError
from ._models import AddressFamily, Config, ProbeTarget, RunningStats
from ._printers import JsonPrinter, PlainPrinter, Printer
from ._resolver import is_ip_address, resolve_hostname
from ._tcping import DEFAULT_INTERVAL, configure_logging, logger
from ._update import check_latest_version

MIN_INTERVAL = 0.001
UPDATE_CHECK_EXCLUSIVE = (
    "ipv4",
    "ipv6",
    "retry_resolve_after",
    "count",
    "interval",
    "json",
    "pretty",
    "version",
    "debug",
)


def _non_negative_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {value}")
    return number


def _interval_seconds(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value}")
    if not math.isfinite(number) or number < MIN_INTERVAL:
        raise argparse.ArgumentTypeError(f"must be at least {MIN_INTERVAL} seconds: {value}")
    return number


def _only_update_check(parser: argparse.ArgumentParser, args: argparse.Namespace) -> bool:
    """True when ``-u`` is the only option given."""
    if args.host is not None or args.port is not None:
        return False
    for name in UPDATE_CHECK_EXCLUSIVE:
        if getattr(args, name) != parser.get_default(name):
            return False
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tcpingx",
        description="Probe a TCP port at a fixed rate and report its availability",
        epilog="example: tcpingx www.example.com 443",
    )
    parser.add_argument("host", nargs="?", help="target hostname or IP address")
    parser.add_argument("port", nargs="?", help="target port (1-65535)")

    family = parser.add_mutually_exclusive_group()
    family.add_argument("-4", dest="ipv4", action="store_true", help="use IPv4 only")
    family.add_argument("-6", dest="ipv6", action="store_true", help="use IPv6 only")

    parser.add_argument(
        "-r",
        dest="retry_resolve_after",
        type=_non_negative_int,
        default=0,
        metavar="N",
        help="retry resolving the hostname after N consecutive failed probes (0 disables)",
    )
    parser.add_argument(
        "-c",
        dest="count",
        type=_non_negative_int,
        default=0,
        metavar="N",
        help="stop after N probes, regardless of the result (0 means no limit)",
    )
    parser.add_argument(
        "-i",
        dest="interval",
        type=_interval_seconds,
        default=DEFAULT_INTERVAL,
        metavar="SECONDS",
        help="time between probes, also used as the connect timeout",
    )
    parser.add_argument("-j", dest="json", action="store_true", help="output in JSON format")
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="indent JSON output; no effect without -j",
    )
    parser.add_argument("-v", dest="version", action="store_true", help="show version")
    parser.add_argument("-u", dest="check_updates", action="store_true", help="check for updates")
    parser.add_argument("--debug", action="store_true", help="enable debug logging on stderr")
    return parser


def parse_port(value: str) -> int:
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid port number: {value}")
    if port < 1 or port > 65535:
        raise ConfigError("Port should be in 1..65535 range")
    return port


def config_from_args(args: argparse.Namespace) -> Config:
    family = AddressFamily.ANY
    if args.ipv4:
        family = AddressFamily.IPV4
    elif args.ipv6:
        family = AddressFamily.IPV6

    return Config(
        target=args.host,
        port=parse_port(args.port),
        family=family,
        retry_resolve_after=args.retry_resolve_after,
        probes_before_quit=args.count,
        interval=args.interval,
        output_json=args.json,
        pretty_json=args.pretty,
        debug=args.debug,
    )


def make_printer(output_json: bool, pretty: bool = False) -> Printer:
    if output_json:
        return JsonPrinter(pretty=pretty)
    return PlainPrinter()


def monitor(config: Config, printer: Printer) -> int:
    """Resolve the target and probe it until done. Returns the exit code."""
    target = ProbeTarget(
        hostname=config.target,
        port=config.port,
        family=config.family,
        is_ip=is_ip_address(config.target),
    )
    ip = resolve_hostname(target)
    stats = RunningStats(
        target=target,
        ip=ip,
        interval=timedelta(seconds=config.interval),
    )
    logger.debug("Probing %s (%s) port %d every %.3f s", target.hostname, ip, target.port, config.interval)

    controller = CycleController(config, stats, printer)
    controller.install_signal_handlers()
    KeypressWatcher(controller.keypresses).start()
    return controller.run()


def run(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.debug)

    if args.pretty and not args.json:
        parser.error("--pretty has no effect without the -j flag")

    printer = make_printer(args.json, args.pretty)

    try:
        if args.check_updates:
            if not _only_update_check(parser, args):
                parser.error("-u must be used on its own")
            check_latest_version(printer, __version__)
            return 0

        if args.version:
            printer.print_version(__version__)
            return 0

        if args.host is None or args.port is None:
            parser.error("a host and a port are required")

        return monitor(config_from_args(args), printer)
    except TcpingError as exc:
        printer.print_error(str(exc))
        return 1


if __name__ == "__main__":
    raise SystemExit(run())

from __future__ import annotations

import logging
import socket
import time

from rich.console import Console
from rich.logging import RichHandler

from ._models import ProbeResult

DEFAULT_INTERVAL = 1.0


# ------------- Logger; stderr so JSON output on stdout stays clean
console = Console(stderr=True)
FORMAT = "%(message)s"
logger = logging.getLogger("tcpingx")


def configure_logging(debug: bool = False) -> None:
    logging.basicConfig(
        level="DEBUG" if debug else "WARNING",
        format=FORMAT,
        datefmt="[%X]",
        handlers=[
            RichHandler(
                console=console,
                rich_tracebacks=True,
                markup=True,
                show_time=False,
            )
        ],
    )


def nano_to_millisecond(nanoseconds: int) -> float:
    """Convert nanoseconds to milliseconds, keeping the fractional part."""
    return nanoseconds / 1_000_000


def probe(address: str, port: int, timeout: float = DEFAULT_INTERVAL) -> ProbeResult:
    """Open a TCP connection to ``address:port`` and close it right away.

    The round trip time covers the connect call only. Any failure, be it a
    timeout, a refusal or an unreachable network, is reported as an
    unsuccessful result; this function does not raise.
    """
    conn_start = time.perf_counter_ns()
    try:
        conn = socket.create_connection((address, port), timeout=timeout)
    except OSError as exc:
        rtt = nano_to_millisecond(time.perf_counter_ns() - conn_start)
        logger.debug("Probe to %s port %d failed after %.3f ms: %s", address, port, rtt, exc)
        return ProbeResult(success=False, rtt=rtt)
    except Exception as exc:  # pragma: no cover - safeguard for unexpected failures
        logger.error(f"Probe error: {exc}")
        return ProbeResult(success=False)

    rtt = nano_to_millisecond(time.perf_counter_ns() - conn_start)
    try:
        conn.close()
    except OSError as exc:  # pragma: no cover - close on a fresh socket rarely fails
        logger.debug("Closing connection to %s port %d failed: %s", address, port, exc)
    return ProbeResult(success=True, rtt=rtt)

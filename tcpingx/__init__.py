__version__ = "0.1.0"

from ._cycle import CycleController, KeypressWatcher, Ticker
from ._exceptions import ConfigError, ResolveError, TcpingError, UpdateCheckError
from ._models import (
    AddressFamily,
    Config,
    LongestTime,
    ProbeResult,
    ProbeTarget,
    RttResults,
    RunningStats,
)
from ._printers import JsonPrinter, PlainPrinter, Printer
from ._resolver import is_ip_address, resolve_hostname
from ._stats import StatsTracker, find_min_avg_max
from ._tcping import probe

__all__ = [
    "__version__",
    "AddressFamily",
    "Config",
    "ConfigError",
    "CycleController",
    "JsonPrinter",
    "KeypressWatcher",
    "LongestTime",
    "PlainPrinter",
    "Printer",
    "ProbeResult",
    "ProbeTarget",
    "ResolveError",
    "RttResults",
    "RunningStats",
    "StatsTracker",
    "TcpingError",
    "Ticker",
    "UpdateCheckError",
    "find_min_avg_max",
    "is_ip_address",
    "probe",
    "resolve_hostname",
]

"""Exceptions raised by tcpingx."""


class TcpingError(Exception):
    """Base class for fatal tcpingx errors."""


class ConfigError(TcpingError):
    """Raised when user supplied options are invalid."""


class ResolveError(TcpingError):
    """Raised when the target cannot be turned into a usable address."""


class UpdateCheckError(TcpingError):
    """Raised when the release feed cannot be queried or understood."""

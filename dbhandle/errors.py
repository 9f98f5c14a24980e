"""Error types raised by dbhandle."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """Closed set of failures surfaced by connections."""

    CONFIGURATION = "configuration"
    CONNECTION = "connection"
    USAGE = "usage"


class DbHandleError(RuntimeError):
    """Base class for errors raised by a connection."""

    kind: ErrorKind


class ConfigurationError(DbHandleError, ValueError):
    """Raised when connection parameters or config entries are incomplete."""

    kind = ErrorKind.CONFIGURATION


class DatabaseConnectionError(DbHandleError):
    """Raised when a native handle cannot be opened."""

    kind = ErrorKind.CONNECTION


class UsageError(DbHandleError):
    """Raised when an operation is called out of order."""

    kind = ErrorKind.USAGE


class DriverError(RuntimeError):
    """Raised by native handle adapters for any client library failure."""


__all__ = [
    "ConfigurationError",
    "DatabaseConnectionError",
    "DbHandleError",
    "DriverError",
    "ErrorKind",
    "UsageError",
]

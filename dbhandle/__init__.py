"""Lazily connected database handles with reuse of matching connections."""

from __future__ import annotations

from .config import AppConfig, DatabaseConfig, connection_for, load_config, save_config
from .connection import Connection
from .dsn import make_dsn, register_dsn_builder
from .errors import (
    ConfigurationError,
    DatabaseConnectionError,
    DbHandleError,
    DriverError,
    ErrorKind,
    UsageError,
)
from .models import (
    Attribute,
    Case,
    ConnectionParameters,
    DEFAULT_ATTRIBUTES,
    DriverKind,
    FetchMode,
    Nulls,
)
from .registry import ConnectionRegistry, RegistryEntry, default_registry

__all__ = [
    "AppConfig",
    "Attribute",
    "Case",
    "ConfigurationError",
    "Connection",
    "ConnectionParameters",
    "ConnectionRegistry",
    "DEFAULT_ATTRIBUTES",
    "DatabaseConfig",
    "DatabaseConnectionError",
    "DbHandleError",
    "DriverError",
    "DriverKind",
    "ErrorKind",
    "FetchMode",
    "Nulls",
    "RegistryEntry",
    "UsageError",
    "connection_for",
    "default_registry",
    "load_config",
    "make_dsn",
    "register_dsn_builder",
    "save_config",
]

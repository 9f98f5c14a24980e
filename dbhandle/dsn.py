"""DSN builders keyed by driver kind."""

from __future__ import annotations

from typing import Callable

from .errors import ConfigurationError
from .models import ConnectionParameters, DriverKind

DsnBuilder = Callable[[ConnectionParameters], str]


def build_server_dsn(parameters: ConnectionParameters) -> str:
    """``<driver>:dbname=<database>;host=<host>[;port=<port>]``; nothing is escaped."""

    if parameters.driver is None or parameters.database is None or parameters.host is None:
        raise ConfigurationError("Required connection parameters: driver, database, host")
    dsn = f"{parameters.driver}:dbname={parameters.database};host={parameters.host}"
    if parameters.port is not None:
        dsn += f";port={parameters.port}"
    return dsn


def build_sqlite_dsn(parameters: ConnectionParameters) -> str:
    """``sqlite:<database>``; the database is a file path or ``:memory:``."""

    return "sqlite:" + (parameters.database or "")


_BUILDERS: dict[DriverKind, DsnBuilder] = {
    DriverKind.GENERIC: build_server_dsn,
    DriverKind.SQLITE: build_sqlite_dsn,
}


def register_dsn_builder(kind: DriverKind, builder: DsnBuilder) -> None:
    """Install (or replace) the builder used for ``kind``."""

    _BUILDERS[kind] = builder


def make_dsn(parameters: ConnectionParameters, kind: DriverKind = DriverKind.GENERIC) -> str:
    try:
        builder = _BUILDERS[kind]
    except KeyError:
        raise ConfigurationError(f"No DSN builder registered for {kind.value!r}") from None
    return builder(parameters)


__all__ = [
    "DsnBuilder",
    "build_server_dsn",
    "build_sqlite_dsn",
    "make_dsn",
    "register_dsn_builder",
]

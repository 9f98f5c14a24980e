"""Native handle adapters and the opener that picks one by DSN prefix."""

from __future__ import annotations

from typing import Any, Mapping

from ..errors import DriverError
from .postgres import AsyncpgHandle, AsyncpgStatement
from .sqlite import SqliteHandle, SqliteStatement
from .types import BindParams, HandleFactory, NativeHandle, Statement

_FACTORIES: dict[str, HandleFactory] = {
    "sqlite": SqliteHandle.open,
    "pgsql": AsyncpgHandle.open,
    "postgres": AsyncpgHandle.open,
    "postgresql": AsyncpgHandle.open,
}


def register_driver(name: str, factory: HandleFactory) -> None:
    """Register a factory for DSNs starting with ``<name>:``."""

    if not name or ":" in name:
        raise ValueError(f"Invalid driver name: {name!r}")
    _FACTORIES[name] = factory


def registered_drivers() -> tuple[str, ...]:
    return tuple(sorted(_FACTORIES))


def open_handle(
    dsn: str,
    user: str | None = None,
    password: str | None = None,
    options: Mapping[Any, object] | None = None,
) -> NativeHandle:
    """Open a native handle for ``dsn``; raises DriverError on any failure."""

    name, sep, _ = dsn.partition(":")
    factory = _FACTORIES.get(name) if sep else None
    if factory is None:
        raise DriverError(f"could not find driver {name!r}")
    return factory(dsn, user, password, options or {})


__all__ = [
    "AsyncpgHandle",
    "AsyncpgStatement",
    "BindParams",
    "HandleFactory",
    "NativeHandle",
    "SqliteHandle",
    "SqliteStatement",
    "Statement",
    "open_handle",
    "register_driver",
    "registered_drivers",
]

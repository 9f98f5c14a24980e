"""Lazily connected database handle wrapper."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from . import drivers
from .drivers.types import BindParams, HandleFactory, NativeHandle, Statement
from .dsn import make_dsn
from .errors import ConfigurationError, DatabaseConnectionError, DriverError, UsageError
from .models import ConnectionParameters, DEFAULT_ATTRIBUTES, DriverKind, FetchMode
from .registry import ConnectionRegistry, default_registry

LOG = logging.getLogger(__name__)


class Connection:
    """Opens (or reuses) a native handle on first use and forwards calls to it.

    With reuse enabled, a connection whose parameters equal those of a
    handle already recorded in the registry shares that handle instead of
    opening a new one.
    """

    def __init__(
        self,
        parameters: ConnectionParameters | Mapping[str, object] | None = None,
        *,
        kind: DriverKind | None = None,
        registry: ConnectionRegistry | None = None,
        opener: HandleFactory | None = None,
    ) -> None:
        if parameters is not None and not isinstance(parameters, ConnectionParameters):
            parameters = ConnectionParameters.from_mapping(parameters)
        self._parameters = parameters
        self._kind = kind or DriverKind.for_driver(parameters.driver if parameters else None)
        self._registry = registry if registry is not None else default_registry()
        self._opener = opener or drivers.open_handle
        self._handle: NativeHandle | None = None
        self._statement: Statement | None = None
        self._fetch_mode: int = FetchMode.OBJ
        self._reuse = True

    @property
    def parameters(self) -> ConnectionParameters | None:
        return self._parameters

    @property
    def kind(self) -> DriverKind:
        return self._kind

    @property
    def reuse(self) -> bool:
        return self._reuse

    @property
    def fetch_mode(self) -> int:
        return self._fetch_mode

    @property
    def last_statement(self) -> Statement | None:
        return self._statement

    def connect(self) -> NativeHandle:
        """Return the handle, opening or reusing one if not yet connected."""

        if self._handle is not None:
            return self._handle
        if self._parameters is None:
            raise ConfigurationError("No connection parameters configured")
        return self._make_connection(self._parameters)

    def set_reuse(self, enabled: bool) -> Connection:
        """Toggle reuse of matching registered handles; returns self."""

        self._reuse = enabled
        return self

    def set_fetch_mode(self, mode: int) -> int:
        """Set the default fetch mode and return the previous one."""

        previous = self._fetch_mode
        self._fetch_mode = mode
        return previous

    def get_handle(self) -> NativeHandle | None:
        return self._handle

    def set_handle(self, handle: NativeHandle) -> None:
        """Use ``handle`` directly; the registry is not consulted."""

        self._handle = handle

    def registered_handles(self) -> list[NativeHandle]:
        return self._registry.all()

    def last_insert_id(self, name: str | None = None) -> str:
        return self.connect().last_insert_id(name)

    def set_attribute(self, attribute: Any, value: object) -> None:
        self.connect().set_attribute(attribute, value)

    def query(self, sql: str, *params: object) -> Statement:
        """Prepare and execute ``sql``.

        Bind values may be passed one by one or as a single list, tuple or
        mapping: ``query(sql, "a", "b")`` and ``query(sql, ["a", "b"])`` are
        the same call.
        """

        bound: BindParams = params
        if params and isinstance(params[0], (list, tuple, Mapping)):
            bound = params[0]  # type: ignore[assignment]

        self.connect()
        statement = self.prepare(sql, self._fetch_mode)
        statement.execute(bound)
        return statement

    def prepare(self, sql: str, fetch_mode: int | None = None) -> Statement:
        """Prepare ``sql`` without executing it."""

        if fetch_mode is None:
            fetch_mode = self._fetch_mode
        statement = self.connect().prepare(sql)
        statement.set_fetch_mode(fetch_mode)
        self._statement = statement
        return statement

    def begin(self) -> bool:
        return self.connect().begin_transaction()

    def commit(self) -> bool:
        return self.connect().commit()

    def rollback(self) -> bool:
        return self.connect().rollback()

    def affected_rows(self, statement: Statement | None = None) -> int:
        """Row count of ``statement``, or of the last prepared statement."""

        if statement is None:
            statement = self._statement
        if statement is None:
            raise UsageError("Cannot get affected rows without a statement")
        return statement.row_count()

    def make_dsn(self, parameters: ConnectionParameters | Mapping[str, object]) -> str:
        if not isinstance(parameters, ConnectionParameters):
            parameters = ConnectionParameters.from_mapping(parameters)
        return make_dsn(parameters, self._kind)

    def _make_connection(self, parameters: ConnectionParameters) -> NativeHandle:
        if self._reuse:
            existing = self._registry.find_matching(parameters)
            if existing is not None:
                LOG.debug("Reusing registered handle for driver %r", parameters.driver)
                self._handle = existing
                return existing

        options = {**DEFAULT_ATTRIBUTES, **(parameters.options or {})}
        dsn = self.make_dsn(parameters)
        try:
            handle = self._opener(dsn, parameters.user, parameters.password, options)
        except DriverError as exc:
            raise DatabaseConnectionError(str(exc)) from exc

        LOG.debug("Opened new handle for %s", dsn.partition(":")[0])
        self._registry.record(parameters, handle)
        self._handle = handle

        # A failed charset query leaves the handle registered but this connection unset.
        if parameters.charset_query:
            try:
                self.query(parameters.charset_query)
            except DriverError as exc:
                self._handle = None
                self._statement = None
                raise DatabaseConnectionError(str(exc)) from exc
        return handle


__all__ = ["Connection"]

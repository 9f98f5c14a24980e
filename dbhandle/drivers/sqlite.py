"""Native handle backed by the standard library sqlite3 module."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any, Mapping

from ..errors import DriverError
from ..models import Attribute, FetchMode
from .rows import attribute_key, coerce_option, merge_attributes, normalize_columns, resolve_fetch_mode, shape_row
from .types import BindParams

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0


class SqliteStatement:
    """Statement wrapper over a sqlite3 cursor."""

    def __init__(self, handle: SqliteHandle, sql: str) -> None:
        self._handle = handle
        self._sql = sql
        self._cursor: sqlite3.Cursor | None = None
        self._columns: tuple[str, ...] = ()
        self._fetch_mode = FetchMode.OBJ

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._columns

    def execute(self, params: BindParams = ()) -> bool:
        bound = params if isinstance(params, Mapping) else tuple(params)
        try:
            self._cursor = self._handle.raw.execute(self._sql, bound)
        except sqlite3.Error as exc:
            raise DriverError(str(exc)) from exc
        description = self._cursor.description or ()
        self._columns = normalize_columns([column[0] for column in description], self._handle.attributes)
        return True

    def set_fetch_mode(self, mode: int) -> None:
        self._fetch_mode = resolve_fetch_mode(mode)

    def row_count(self) -> int:
        if self._cursor is None:
            return 0
        return max(self._cursor.rowcount, 0)

    def fetch(self) -> Any:
        cursor = self._require_cursor()
        try:
            row = cursor.fetchone()
        except sqlite3.Error as exc:
            raise DriverError(str(exc)) from exc
        if row is None:
            return None
        return shape_row(self._columns, row, self._fetch_mode, self._handle.attributes)

    def fetch_all(self) -> list[Any]:
        cursor = self._require_cursor()
        try:
            rows = cursor.fetchall()
        except sqlite3.Error as exc:
            raise DriverError(str(exc)) from exc
        return [shape_row(self._columns, row, self._fetch_mode, self._handle.attributes) for row in rows]

    def _require_cursor(self) -> sqlite3.Cursor:
        if self._cursor is None:
            raise DriverError("Statement has not been executed")
        return self._cursor


class SqliteHandle:
    """Handle over one sqlite3 connection in autocommit mode.

    Transactions are opened with an explicit ``BEGIN`` so that the
    begin/commit/rollback results reflect real transaction state.
    """

    def __init__(self, connection: sqlite3.Connection, attributes: dict[Attribute, object]) -> None:
        self._connection = connection
        self._attributes = attributes

    @classmethod
    def open(
        cls,
        dsn: str,
        user: str | None = None,
        password: str | None = None,
        options: Mapping[Any, object] | None = None,
    ) -> SqliteHandle:
        """Open ``sqlite:<path>``; credentials are ignored."""

        _, _, path = dsn.partition(":")
        attributes = merge_attributes(options)
        timeout = float(attributes.get(Attribute.TIMEOUT, DEFAULT_TIMEOUT))  # type: ignore[arg-type]
        try:
            connection = sqlite3.connect(path, timeout=timeout, isolation_level=None)
        except sqlite3.Error as exc:
            raise DriverError(str(exc)) from exc
        LOG.debug("Opened sqlite database %r", path)
        return cls(connection, attributes)

    @property
    def raw(self) -> sqlite3.Connection:
        return self._connection

    @property
    def attributes(self) -> dict[Attribute, object]:
        return self._attributes

    @property
    def in_transaction(self) -> bool:
        return self._connection.in_transaction

    def prepare(self, sql: str) -> SqliteStatement:
        return SqliteStatement(self, sql)

    def last_insert_id(self, name: str | None = None) -> str:
        row = self._connection.execute("SELECT last_insert_rowid()").fetchone()
        return str(row[0])

    def set_attribute(self, attribute: Attribute | str, value: object) -> None:
        key, typed = coerce_option(attribute, value)
        if key is Attribute.TIMEOUT:
            self._run(f"PRAGMA busy_timeout = {int(typed * 1000)}")  # type: ignore[operator]
        self._attributes[key] = typed

    def get_attribute(self, attribute: Attribute | str) -> object:
        return self._attributes.get(attribute_key(attribute))

    def begin_transaction(self) -> bool:
        if self.in_transaction:
            return False
        self._run("BEGIN")
        return True

    def commit(self) -> bool:
        if not self.in_transaction:
            return False
        self._run("COMMIT")
        return True

    def rollback(self) -> bool:
        if not self.in_transaction:
            return False
        self._run("ROLLBACK")
        return True

    def close(self) -> None:
        """Close the underlying connection (testing helper)."""

        self._connection.close()

    def _run(self, sql: str) -> None:
        try:
            self._connection.execute(sql)
        except sqlite3.Error as exc:
            raise DriverError(str(exc)) from exc


__all__ = ["SqliteHandle", "SqliteStatement"]

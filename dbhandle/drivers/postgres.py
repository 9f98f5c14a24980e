"""Native handle that talks to PostgreSQL via asyncpg."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Coroutine, Mapping, TypeVar

import asyncpg

from ..errors import DriverError
from ..models import Attribute, FetchMode
from .rows import attribute_key, coerce_option, merge_attributes, normalize_columns, resolve_fetch_mode, shape_row
from .types import BindParams

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3.0

T = TypeVar("T")

_DSN_KEYS = {"dbname": "database"}


def parse_dsn(dsn: str) -> dict[str, object]:
    """Turn ``pgsql:dbname=x;host=y;port=z`` into asyncpg connect keywords."""

    _, _, body = dsn.partition(":")
    kwargs: dict[str, object] = {}
    for part in body.split(";"):
        if not part.strip():
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise DriverError(f"Malformed DSN segment: {part!r}")
        key = _DSN_KEYS.get(key.strip(), key.strip())
        kwargs[key] = value.strip()
    if "port" in kwargs:
        try:
            kwargs["port"] = int(kwargs["port"])  # type: ignore[arg-type]
        except ValueError:
            raise DriverError(f"Invalid port in DSN: {kwargs['port']!r}") from None
    return kwargs


class AsyncpgStatement:
    """Prepared statement whose results are buffered on execute."""

    def __init__(self, handle: AsyncpgHandle, sql: str, prepared: Any) -> None:
        self._handle = handle
        self._sql = sql
        self._prepared = prepared
        self._records: list[Any] | None = None
        self._position = 0
        self._row_count = 0
        self._columns = normalize_columns(
            [attribute.name for attribute in prepared.get_attributes()], handle.attributes
        )
        self._fetch_mode = FetchMode.OBJ

    @property
    def sql(self) -> str:
        return self._sql

    @property
    def column_names(self) -> tuple[str, ...]:
        return self._columns

    def execute(self, params: BindParams = ()) -> bool:
        if isinstance(params, Mapping):
            raise DriverError("asyncpg statements take positional ($n) parameters only")
        records = self._handle.run(self._prepared.fetch(*params, timeout=self._handle.timeout))
        self._records = list(records)
        self._position = 0
        self._row_count = _status_row_count(self._prepared.get_statusmsg())
        return True

    def set_fetch_mode(self, mode: int) -> None:
        self._fetch_mode = resolve_fetch_mode(mode)

    def row_count(self) -> int:
        return self._row_count

    def fetch(self) -> Any:
        records = self._require_records()
        if self._position >= len(records):
            return None
        record = records[self._position]
        self._position += 1
        return shape_row(self._columns, tuple(record.values()), self._fetch_mode, self._handle.attributes)

    def fetch_all(self) -> list[Any]:
        records = self._require_records()
        remaining = records[self._position :]
        self._position = len(records)
        return [
            shape_row(self._columns, tuple(record.values()), self._fetch_mode, self._handle.attributes)
            for record in remaining
        ]

    def _require_records(self) -> list[Any]:
        if self._records is None:
            raise DriverError("Statement has not been executed")
        return self._records


class AsyncpgHandle:
    """Synchronous handle over an asyncpg connection.

    Each handle owns an event loop running on a daemon thread; every call is
    submitted to that loop and waited on.
    """

    def __init__(
        self,
        connection: Any,
        loop: asyncio.AbstractEventLoop,
        thread: threading.Thread,
        attributes: dict[Attribute, object],
    ) -> None:
        self._connection = connection
        self._loop = loop
        self._thread = thread
        self._attributes = attributes
        self._transaction: Any = None

    @classmethod
    def open(
        cls,
        dsn: str,
        user: str | None = None,
        password: str | None = None,
        options: Mapping[Any, object] | None = None,
    ) -> AsyncpgHandle:
        kwargs = parse_dsn(dsn)
        if user is not None:
            kwargs["user"] = user
        if password is not None:
            kwargs["password"] = password
        attributes = merge_attributes(options)
        kwargs.setdefault("timeout", float(attributes.get(Attribute.TIMEOUT, DEFAULT_TIMEOUT)))  # type: ignore[arg-type]
        loop = asyncio.new_event_loop()
        thread = threading.Thread(target=loop.run_forever, name="dbhandle-asyncpg", daemon=True)
        thread.start()
        try:
            connection = _call(loop, asyncpg.connect(**kwargs))
        except TypeError as exc:
            _stop(loop, thread)
            raise DriverError(f"Invalid connection argument: {exc}") from exc
        except DriverError:
            _stop(loop, thread)
            raise
        LOG.debug("Opened PostgreSQL connection to %s/%s", kwargs.get("host"), kwargs.get("database"))
        return cls(connection, loop, thread, attributes)

    @property
    def attributes(self) -> dict[Attribute, object]:
        return self._attributes

    @property
    def timeout(self) -> float | None:
        value = self._attributes.get(Attribute.TIMEOUT)
        return None if value is None else float(value)  # type: ignore[arg-type]

    @property
    def in_transaction(self) -> bool:
        return bool(self._connection.is_in_transaction())

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        return _call(self._loop, coro)

    def prepare(self, sql: str) -> AsyncpgStatement:
        prepared = self.run(self._connection.prepare(sql))
        return AsyncpgStatement(self, sql, prepared)

    def last_insert_id(self, name: str | None = None) -> str:
        if name is None:
            value = self.run(self._connection.fetchval("SELECT lastval()"))
        else:
            value = self.run(self._connection.fetchval("SELECT currval($1::text::regclass)", name))
        return str(value)

    def set_attribute(self, attribute: Attribute | str, value: object) -> None:
        key, typed = coerce_option(attribute, value)
        self._attributes[key] = typed

    def get_attribute(self, attribute: Attribute | str) -> object:
        return self._attributes.get(attribute_key(attribute))

    def begin_transaction(self) -> bool:
        if self.in_transaction:
            return False
        transaction = self._connection.transaction()
        self.run(transaction.start())
        self._transaction = transaction
        return True

    def commit(self) -> bool:
        if self._transaction is None or not self.in_transaction:
            return False
        transaction, self._transaction = self._transaction, None
        self.run(transaction.commit())
        return True

    def rollback(self) -> bool:
        if self._transaction is None or not self.in_transaction:
            return False
        transaction, self._transaction = self._transaction, None
        self.run(transaction.rollback())
        return True

    def close(self) -> None:
        """Close the connection and stop the event loop (testing helper)."""

        try:
            self.run(self._connection.close())
        finally:
            _stop(self._loop, self._thread)


def _call(loop: asyncio.AbstractEventLoop, coro: Coroutine[Any, Any, T]) -> T:
    future = asyncio.run_coroutine_threadsafe(coro, loop)
    try:
        return future.result()
    except DriverError:
        raise
    except Exception as exc:
        raise DriverError(str(exc)) from exc


def _stop(loop: asyncio.AbstractEventLoop, thread: threading.Thread) -> None:
    if loop.is_running():
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=1)


def _status_row_count(status: str | None) -> int:
    if not status:
        return 0
    tail = status.rsplit(" ", 1)[-1]
    return int(tail) if tail.isdigit() else 0


__all__ = ["AsyncpgHandle", "AsyncpgStatement", "parse_dsn"]

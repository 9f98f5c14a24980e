"""Protocols describing native database handles and their statements."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Protocol, Sequence, runtime_checkable

BindParams = Sequence[object] | Mapping[str, object]


@runtime_checkable
class Statement(Protocol):
    """A prepared statement issued by a native handle."""

    def execute(self, params: BindParams = ()) -> bool:
        """Run the statement with the given bind values."""

    def set_fetch_mode(self, mode: int) -> None:
        """Choose the row shape returned by the fetch helpers."""

    def row_count(self) -> int:
        """Number of rows affected by the last execution."""

    def fetch(self) -> Any:
        """Return the next row, or None when exhausted."""

    def fetch_all(self) -> list[Any]:
        """Return every remaining row."""


@runtime_checkable
class NativeHandle(Protocol):
    """An open connection issued by a database client library."""

    def prepare(self, sql: str) -> Statement:
        """Prepare ``sql`` without executing it."""

    def last_insert_id(self, name: str | None = None) -> str:
        """Return the last generated id, optionally for a named sequence."""

    def set_attribute(self, attribute: Any, value: object) -> None:
        """Set a handle attribute."""

    def get_attribute(self, attribute: Any) -> object:
        """Read a handle attribute."""

    def begin_transaction(self) -> bool:
        """Start a transaction; False when one is already active."""

    def commit(self) -> bool:
        """Commit; False when no transaction is active."""

    def rollback(self) -> bool:
        """Roll back; False when no transaction is active."""


HandleFactory = Callable[[str, str | None, str | None, Mapping[Any, object]], NativeHandle]


__all__ = ["BindParams", "HandleFactory", "NativeHandle", "Statement"]

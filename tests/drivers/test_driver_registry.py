"""Tests for driver selection and row shaping helpers."""

from __future__ import annotations

from types import SimpleNamespace

import pytest

from dbhandle import drivers
from dbhandle.drivers import open_handle, register_driver, registered_drivers
from dbhandle.drivers.rows import merge_attributes, normalize_columns, shape_row
from dbhandle.drivers.sqlite import SqliteHandle
from dbhandle.errors import DriverError
from dbhandle.models import Attribute, Case, FetchMode, Nulls


def test_builtin_drivers_are_registered() -> None:
    assert {"sqlite", "pgsql", "postgres", "postgresql"} <= set(registered_drivers())


def test_open_handle_dispatches_on_dsn_prefix() -> None:
    handle = open_handle("sqlite::memory:")
    try:
        assert isinstance(handle, SqliteHandle)
    finally:
        handle.close()


@pytest.mark.parametrize("dsn", ["invalid:dbname=invalid;host=invalid", "no-prefix"])
def test_open_handle_rejects_unknown_drivers(dsn: str) -> None:
    with pytest.raises(DriverError, match="could not find driver"):
        open_handle(dsn)


def test_register_driver_adds_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(drivers, "_FACTORIES", dict(drivers._FACTORIES))
    calls: list[tuple[object, ...]] = []
    sentinel = object()

    def _factory(dsn, user, password, options):  # type: ignore[no-untyped-def]
        calls.append((dsn, user, password, dict(options)))
        return sentinel

    register_driver("mysql", _factory)

    assert open_handle("mysql:dbname=app;host=localhost", "u", "p") is sentinel
    assert calls == [("mysql:dbname=app;host=localhost", "u", "p", {})]


@pytest.mark.parametrize("name", ["", "bad:name"])
def test_register_driver_rejects_invalid_names(name: str) -> None:
    with pytest.raises(ValueError):
        register_driver(name, lambda *args: None)  # type: ignore[arg-type, return-value]


def test_merge_attributes_prefers_options() -> None:
    merged = merge_attributes({"case": "natural", Attribute.TIMEOUT: 4})

    assert merged[Attribute.CASE] is Case.NATURAL
    assert merged[Attribute.NULLS] is Nulls.NATURAL
    assert merged[Attribute.TIMEOUT] == 4.0


def test_normalize_columns_follows_case_attribute() -> None:
    columns = ["Id", "Email"]

    assert normalize_columns(columns, {Attribute.CASE: Case.LOWER}) == ("id", "email")
    assert normalize_columns(columns, {Attribute.CASE: Case.UPPER}) == ("ID", "EMAIL")
    assert normalize_columns(columns, {}) == ("Id", "Email")


def test_shape_row_object_mode() -> None:
    row = shape_row(("id", "email"), (1, None), FetchMode.OBJ, {})

    assert row == SimpleNamespace(id=1, email=None)

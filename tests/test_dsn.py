"""Tests for DSN builders."""

from __future__ import annotations

import pytest

from dbhandle import dsn as dsn_module
from dbhandle.dsn import make_dsn, register_dsn_builder
from dbhandle.errors import ConfigurationError, ErrorKind
from dbhandle.models import ConnectionParameters, DriverKind


def test_server_dsn_with_port() -> None:
    params = ConnectionParameters(driver="mysql", database="database", host="localhost", port="8889")

    assert make_dsn(params) == "mysql:dbname=database;host=localhost;port=8889"


def test_server_dsn_without_port() -> None:
    params = ConnectionParameters(driver="pgsql", database="app", host="db.internal")

    assert make_dsn(params) == "pgsql:dbname=app;host=db.internal"


def test_server_dsn_does_not_escape_values() -> None:
    params = ConnectionParameters(driver="mysql", database="a;b", host="h=1")

    assert make_dsn(params) == "mysql:dbname=a;b;host=h=1"


@pytest.mark.parametrize(
    "params",
    [
        ConnectionParameters(),
        ConnectionParameters(database="app", host="localhost"),
        ConnectionParameters(driver="mysql", host="localhost"),
        ConnectionParameters(driver="mysql", database="app"),
    ],
)
def test_server_dsn_requires_fields(params: ConnectionParameters) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        make_dsn(params)

    assert excinfo.value.kind is ErrorKind.CONFIGURATION


def test_sqlite_dsn_uses_database_only() -> None:
    params = ConnectionParameters(driver="sqlite", database=":memory:")

    assert make_dsn(params, DriverKind.SQLITE) == "sqlite::memory:"


def test_sqlite_dsn_ignores_server_fields() -> None:
    params = ConnectionParameters(database="/var/db/app.sqlite", host="ignored", port=1, user="u", password="p")

    assert make_dsn(params, DriverKind.SQLITE) == "sqlite:/var/db/app.sqlite"


def test_register_dsn_builder_replaces_dispatch(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(dsn_module, "_BUILDERS", dict(dsn_module._BUILDERS))
    register_dsn_builder(DriverKind.SQLITE, lambda params: f"sqlite:file:{params.database}?mode=ro")

    assert make_dsn(ConnectionParameters(database="a.db"), DriverKind.SQLITE) == "sqlite:file:a.db?mode=ro"


def test_sqlite_dsn_without_database_is_empty_path() -> None:
    assert make_dsn(ConnectionParameters(driver="sqlite"), DriverKind.SQLITE) == "sqlite:"

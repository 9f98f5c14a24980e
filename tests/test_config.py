"""Tests for database configuration helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from dbhandle import config as config_module
from dbhandle.config import AppConfig, DatabaseConfig, connection_for, load_config, save_config
from dbhandle.errors import ConfigurationError
from dbhandle.models import Attribute, Case, ConnectionParameters, DriverKind, FetchMode
from dbhandle.registry import ConnectionRegistry


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    result = load_config(tmp_path / "databases.toml")

    assert result == AppConfig()


def test_load_config_reads_values(tmp_path: Path) -> None:
    config_path = tmp_path / "databases.toml"
    config_path.write_text(
        """
default_database = "main"

[[databases]]
name = "main"
driver = "pgsql"
host = "localhost"
database = "app"
port = 5432
user = "app"
password = "secret"
charset_query = "SET NAMES 'utf8'"
fetch_mode = "assoc"

[databases.options]
case = "natural"
timeout = 2

[[databases]]
name = "cache"
driver = "sqlite"
database = ":memory:"
reuse = false
"""
    )

    result = load_config(config_path)

    assert result.default_database == "main"
    assert [entry.name for entry in result.databases] == ["main", "cache"]
    main = result.database()
    assert main.port == 5432
    assert main.options == {"case": "natural", "timeout": 2}
    assert main.resolved_fetch_mode() is FetchMode.ASSOC
    assert result.database("cache").reuse is False


def test_load_config_handles_toml_errors(tmp_path: Path) -> None:
    config_path = tmp_path / "databases.toml"
    config_path.write_text("databases = [unterminated")

    assert load_config(config_path) == AppConfig()


def test_load_config_skips_invalid_entries(tmp_path: Path) -> None:
    config_path = tmp_path / "databases.toml"
    config_path.write_text(
        """
[[databases]]
driver = "sqlite"

[[databases]]
name = "ok"
database = ":memory:"
"""
    )

    result = load_config(config_path)

    assert [entry.name for entry in result.databases] == ["ok"]


def test_load_config_honours_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_path = tmp_path / "custom.toml"
    config_path.write_text('[[databases]]\nname = "env"\ndatabase = "env.db"\n')
    monkeypatch.setenv(config_module.CONFIG_ENV_VAR, str(config_path))

    assert load_config().database().name == "env"


def test_save_config_round_trips(tmp_path: Path) -> None:
    config_path = tmp_path / "nested" / "databases.toml"
    original = AppConfig(
        databases=[
            DatabaseConfig(
                name="main",
                driver="mysql",
                host="localhost",
                database="app",
                port="8889",
                password='pa"ss',
                options={"case": "upper", "stringify_fetches": True},
                fetch_mode="num",
            ),
            DatabaseConfig(name="cache", driver="sqlite", database=":memory:", reuse=False),
        ],
        default_database="main",
    )

    save_config(original, config_path)

    content = config_path.read_text()
    assert 'default_database = "main"' in content
    assert "[databases.options]" in content
    assert 'port = "8889"' in content
    assert load_config(config_path) == original


def test_save_config_quotes_option_keys(tmp_path: Path) -> None:
    config_path = tmp_path / "databases.toml"
    original = AppConfig(
        databases=[
            DatabaseConfig(
                name="odd",
                driver="sqlite",
                database=":memory:",
                options={"a b": 1, "x.y": "z"},
            )
        ]
    )

    save_config(original, config_path)

    assert '"a b" = 1' in config_path.read_text()
    assert load_config(config_path) == original


def test_database_lookup_errors() -> None:
    with pytest.raises(ConfigurationError):
        AppConfig().database()
    with pytest.raises(ConfigurationError, match="missing"):
        AppConfig(databases=[DatabaseConfig(name="only")]).database("missing")


def test_database_falls_back_to_first_entry() -> None:
    config = AppConfig(databases=[DatabaseConfig(name="a"), DatabaseConfig(name="b")])

    assert config.database().name == "a"
    assert config.with_default_database("b").database().name == "b"


def test_with_database_replaces_by_name() -> None:
    config = AppConfig(databases=[DatabaseConfig(name="a", database="old.db")])

    updated = config.with_database(DatabaseConfig(name="a", database="new.db"))

    assert [entry.database for entry in updated.databases] == ["new.db"]
    assert config.databases[0].database == "old.db"


def test_to_parameters_types_options() -> None:
    entry = DatabaseConfig(name="main", driver="sqlite", database="app.db", options={"case": "upper", "timeout": 1})

    params = entry.to_parameters()

    assert params == ConnectionParameters(
        driver="sqlite",
        database="app.db",
        options={Attribute.CASE: Case.UPPER, Attribute.TIMEOUT: 1.0},
    )


def test_to_parameters_without_options_keeps_none() -> None:
    assert DatabaseConfig(name="main", database="app.db").to_parameters().options is None


@pytest.mark.parametrize("options", [{"bogus": 1}, {"case": "sideways"}])
def test_to_parameters_rejects_bad_options(options: dict[str, object]) -> None:
    entry = DatabaseConfig(name="main", options=options)

    with pytest.raises(ConfigurationError, match="main"):
        entry.to_parameters()


def test_unknown_fetch_mode_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        DatabaseConfig(name="main", fetch_mode="columns").resolved_fetch_mode()


def test_connection_for_applies_entry_settings() -> None:
    registry = ConnectionRegistry()
    config = AppConfig(
        databases=[
            DatabaseConfig(name="cache", driver="sqlite", database=":memory:", reuse=False, fetch_mode="assoc"),
        ]
    )

    connection = connection_for(config, "cache", registry=registry)

    assert connection.kind is DriverKind.SQLITE
    assert connection.reuse is False
    assert connection.fetch_mode is FetchMode.ASSOC
    assert connection.get_handle() is None
    handle = connection.connect()
    try:
        assert registry.all() == [handle]
    finally:
        handle.close()

"""Database configuration loading helpers."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import tomllib

from pydantic import BaseModel, Field, ValidationError

from .connection import Connection
from .errors import ConfigurationError
from .models import ConnectionParameters, DriverKind, FetchMode, coerce_attribute
from .registry import ConnectionRegistry

LOG = logging.getLogger(__name__)

CONFIG_ENV_VAR = "DBHANDLE_CONFIG"
CONFIG_FILE = Path.home() / ".config" / "dbhandle" / "databases.toml"


class DatabaseConfig(BaseModel):
    """One named database entry stored in databases.toml."""

    name: str
    driver: str | None = None
    host: str | None = None
    database: str | None = None
    port: int | str | None = None
    user: str | None = None
    password: str | None = None
    options: dict[str, str | int | float | bool] = Field(default_factory=dict)
    charset_query: str | None = None
    reuse: bool = True
    fetch_mode: str = "obj"

    def to_parameters(self) -> ConnectionParameters:
        """Build connection parameters; option names become typed attributes."""

        options: dict[object, object] | None = None
        if self.options:
            options = {}
            for key, value in self.options.items():
                try:
                    attribute, typed = coerce_attribute(key, value)
                except ValueError as exc:
                    raise ConfigurationError(f"Database '{self.name}': invalid option {key!r}: {exc}") from exc
                options[attribute] = typed
        return ConnectionParameters(
            driver=self.driver,
            host=self.host,
            database=self.database,
            port=self.port,
            user=self.user,
            password=self.password,
            options=options,
            charset_query=self.charset_query,
        )

    def resolved_fetch_mode(self) -> FetchMode:
        try:
            return FetchMode[self.fetch_mode.upper()]
        except KeyError:
            raise ConfigurationError(
                f"Database '{self.name}': unknown fetch mode {self.fetch_mode!r}"
            ) from None


class AppConfig(BaseModel):
    """Shape of the databases configuration file."""

    databases: list[DatabaseConfig] = Field(default_factory=list)
    default_database: str | None = None

    def database(self, name: str | None = None) -> DatabaseConfig:
        """Return the named entry, or the default (else first) one."""

        target = name or self.default_database
        if target is None:
            if not self.databases:
                raise ConfigurationError("No databases configured")
            return self.databases[0]
        for entry in self.databases:
            if entry.name == target:
                return entry
        raise ConfigurationError(f"Unknown database '{target}'")

    def with_database(self, entry: DatabaseConfig) -> AppConfig:
        """Return a copy with ``entry`` added, replacing one of the same name."""

        databases = [existing for existing in self.databases if existing.name != entry.name]
        databases.append(entry)
        return self.model_copy(update={"databases": databases})

    def with_default_database(self, name: str) -> AppConfig:
        return self.model_copy(update={"default_database": name})


def config_path() -> Path:
    """Config file location, honouring the DBHANDLE_CONFIG override."""

    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override) if override else CONFIG_FILE


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from disk; fall back to defaults if missing or unreadable."""

    path = path or config_path()
    try:
        with path.open("rb") as handle:
            raw = tomllib.load(handle)
    except FileNotFoundError:
        return AppConfig()
    except (tomllib.TOMLDecodeError, OSError) as exc:
        LOG.warning("Ignoring unreadable config %s: %s", path, exc)
        return AppConfig()

    databases: list[DatabaseConfig] = []
    entries = raw.get("databases")
    if isinstance(entries, list):
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                databases.append(DatabaseConfig(**entry))
            except ValidationError as exc:
                LOG.warning("Skipping invalid database entry %r: %s", entry.get("name"), exc)

    default_database = raw.get("default_database")
    return AppConfig(
        databases=databases,
        default_database=default_database if isinstance(default_database, str) else None,
    )


def save_config(config: AppConfig, path: Path | None = None) -> None:
    """Persist configuration to disk."""

    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    lines: list[str] = []
    if config.default_database:
        lines.append(f"default_database = {_toml_value(config.default_database)}")
    for entry in config.databases:
        lines.append("")
        lines.append("[[databases]]")
        lines.append(f"name = {_toml_value(entry.name)}")
        for key in ("driver", "host", "database", "port", "user", "password", "charset_query"):
            value = getattr(entry, key)
            if value is not None:
                lines.append(f"{key} = {_toml_value(value)}")
        if not entry.reuse:
            lines.append("reuse = false")
        if entry.fetch_mode != "obj":
            lines.append(f"fetch_mode = {_toml_value(entry.fetch_mode)}")
        if entry.options:
            lines.append("")
            lines.append("[databases.options]")
            for name in sorted(entry.options):
                lines.append(f"{_toml_value(name)} = {_toml_value(entry.options[name])}")
    path.write_text("\n".join(lines).lstrip("\n") + "\n")


def connection_for(
    config: AppConfig,
    name: str | None = None,
    *,
    registry: ConnectionRegistry | None = None,
) -> Connection:
    """Build an unconnected Connection from a configured database entry."""

    entry = config.database(name)
    parameters = entry.to_parameters()
    connection = Connection(
        parameters,
        kind=DriverKind.for_driver(parameters.driver),
        registry=registry,
    )
    connection.set_reuse(entry.reuse).set_fetch_mode(entry.resolved_fetch_mode())
    return connection


def _toml_value(value: object) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(str(value))


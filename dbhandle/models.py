"""Value types shared by the connection, registry and driver modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from types import MappingProxyType
from typing import Any, Mapping

from .errors import ConfigurationError


class DriverKind(Enum):
    """Selects which DSN builder a connection uses."""

    GENERIC = "generic"
    SQLITE = "sqlite"

    @classmethod
    def for_driver(cls, driver: str | None) -> DriverKind:
        if driver == "sqlite":
            return cls.SQLITE
        return cls.GENERIC


class FetchMode(IntEnum):
    """Shape in which fetched rows are materialized."""

    ASSOC = 2
    NUM = 3
    BOTH = 4
    OBJ = 5


class Attribute(str, Enum):
    """Handle attributes accepted in connection options."""

    CASE = "case"
    NULLS = "nulls"
    STRINGIFY_FETCHES = "stringify_fetches"
    TIMEOUT = "timeout"


class Case(str, Enum):
    NATURAL = "natural"
    LOWER = "lower"
    UPPER = "upper"


class Nulls(str, Enum):
    NATURAL = "natural"
    EMPTY_STRING = "empty_string"
    TO_STRING = "to_string"


DEFAULT_ATTRIBUTES: Mapping[Attribute, object] = MappingProxyType(
    {
        Attribute.CASE: Case.LOWER,
        Attribute.NULLS: Nulls.NATURAL,
        Attribute.STRINGIFY_FETCHES: False,
    }
)


def coerce_attribute(attribute: Attribute | str, value: object) -> tuple[Attribute, object]:
    """Convert a raw ``(name, value)`` option into typed attribute form.

    Raises ``ValueError`` for unknown attribute names or values.
    """

    key = Attribute(attribute)
    if key is Attribute.CASE:
        return key, Case(value)
    if key is Attribute.NULLS:
        return key, Nulls(value)
    if key is Attribute.STRINGIFY_FETCHES:
        if not isinstance(value, bool):
            raise ValueError(f"{key.value} expects a boolean, got {value!r}")
        return key, value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key.value} expects a number of seconds, got {value!r}")
    return key, float(value)


_PARAMETER_KEYS = ("driver", "host", "database", "port", "user", "password", "options", "charset_query")


@dataclass(frozen=True, slots=True)
class ConnectionParameters:
    """How to reach a database.

    Two parameter sets match for reuse when they are structurally equal. No
    normalization happens first, so ``port="8889"`` and ``port=8889`` are
    different connections.
    """

    driver: str | None = None
    host: str | None = None
    database: str | None = None
    port: str | int | None = None
    user: str | None = None
    password: str | None = field(default=None, repr=False)
    options: Mapping[Any, object] | None = None
    charset_query: str | None = None

    def __post_init__(self) -> None:
        if self.options is not None:
            object.__setattr__(self, "options", MappingProxyType(dict(self.options)))

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> ConnectionParameters:
        """Build parameters from a raw configuration mapping."""

        values = dict(data)
        if "pass" in values:
            if "password" in values:
                raise ConfigurationError("Give either 'pass' or 'password', not both")
            values["password"] = values.pop("pass")
        unknown = sorted(set(values) - set(_PARAMETER_KEYS))
        if unknown:
            raise ConfigurationError(f"Unknown connection parameter(s): {', '.join(unknown)}")
        return cls(**values)  # type: ignore[arg-type]


__all__ = [
    "Attribute",
    "Case",
    "ConnectionParameters",
    "DEFAULT_ATTRIBUTES",
    "DriverKind",
    "FetchMode",
    "Nulls",
    "coerce_attribute",
]

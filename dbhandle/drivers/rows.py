"""Row shaping shared by the driver adapters."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Mapping, Sequence

from ..errors import DriverError
from ..models import Attribute, Case, DEFAULT_ATTRIBUTES, FetchMode, Nulls, coerce_attribute


def resolve_fetch_mode(mode: int) -> FetchMode:
    try:
        return FetchMode(mode)
    except ValueError:
        raise DriverError(f"Unsupported fetch mode: {mode!r}") from None


def merge_attributes(options: Mapping[Any, object] | None) -> dict[Attribute, object]:
    """Return typed attributes, defaults first, ``options`` taking precedence."""

    attributes: dict[Attribute, object] = dict(DEFAULT_ATTRIBUTES)
    for key, value in (options or {}).items():
        attribute, typed = coerce_option(key, value)
        attributes[attribute] = typed
    return attributes


def coerce_option(key: object, value: object) -> tuple[Attribute, object]:
    try:
        return coerce_attribute(key, value)  # type: ignore[arg-type]
    except ValueError as exc:
        raise DriverError(f"Invalid attribute {key!r}: {exc}") from exc


def attribute_key(attribute: object) -> Attribute:
    try:
        return Attribute(attribute)
    except ValueError:
        raise DriverError(f"Unknown attribute: {attribute!r}") from None


def normalize_columns(names: Sequence[str], attributes: Mapping[Attribute, object]) -> tuple[str, ...]:
    case = attributes.get(Attribute.CASE, Case.NATURAL)
    if case is Case.LOWER:
        return tuple(name.lower() for name in names)
    if case is Case.UPPER:
        return tuple(name.upper() for name in names)
    return tuple(names)


def shape_row(
    columns: Sequence[str],
    values: Sequence[object],
    mode: FetchMode,
    attributes: Mapping[Attribute, object],
) -> Any:
    """Convert one raw row into the shape selected by ``mode``."""

    nulls = attributes.get(Attribute.NULLS, Nulls.NATURAL)
    stringify = bool(attributes.get(Attribute.STRINGIFY_FETCHES, False))
    cleaned = tuple(_normalize_value(value, nulls, stringify) for value in values)
    if mode is FetchMode.NUM:
        return cleaned
    if mode is FetchMode.ASSOC:
        return dict(zip(columns, cleaned))
    if mode is FetchMode.BOTH:
        row: dict[object, object] = dict(zip(columns, cleaned))
        row.update(enumerate(cleaned))
        return row
    return SimpleNamespace(**dict(zip(columns, cleaned)))


def _normalize_value(value: object, nulls: object, stringify: bool) -> object:
    if nulls is Nulls.EMPTY_STRING and value == "":
        return None
    if value is None:
        return "" if nulls is Nulls.TO_STRING else None
    if stringify and not isinstance(value, str):
        return str(value)
    return value


__all__ = [
    "attribute_key",
    "coerce_option",
    "merge_attributes",
    "normalize_columns",
    "resolve_fetch_mode",
    "shape_row",
]

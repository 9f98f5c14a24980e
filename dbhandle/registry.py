"""Process-wide record of opened handles, used to reuse matching connections."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import threading

from .drivers.types import NativeHandle
from .models import ConnectionParameters

LOG = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegistryEntry:
    """A handle paired with the parameters it was opened from."""

    parameters: ConnectionParameters
    handle: NativeHandle


class ConnectionRegistry:
    """Append-only list of opened handles.

    Lookups are a linear scan; a process is expected to hold a handful of
    configured databases. There is no locking: the registry assumes that
    connection setup happens on one thread, and records which thread that is
    so callers can check.
    """

    def __init__(self) -> None:
        self._entries: list[RegistryEntry] = []
        self._owner_thread_id = threading.get_ident()

    @property
    def owner_thread_id(self) -> int:
        return self._owner_thread_id

    def is_owner_thread(self) -> bool:
        """Return True when called from the thread that created the registry."""

        return threading.get_ident() == self._owner_thread_id

    def find_matching(self, parameters: ConnectionParameters) -> NativeHandle | None:
        """Return the first handle whose parameters equal ``parameters``."""

        for entry in self._entries:
            if entry.parameters == parameters:
                return entry.handle
        return None

    def record(self, parameters: ConnectionParameters, handle: NativeHandle) -> None:
        """Append a handle; callers check ``find_matching`` first."""

        if not self.is_owner_thread():
            LOG.warning(
                "Handle registered from thread %s; registry is owned by thread %s",
                threading.get_ident(),
                self._owner_thread_id,
            )
        self._entries.append(RegistryEntry(parameters, handle))
        LOG.debug("Registered handle #%d for driver %r", len(self._entries), parameters.driver)

    def all(self) -> list[NativeHandle]:
        """Return every registered handle in registration order."""

        return [entry.handle for entry in self._entries]

    def entries(self) -> tuple[RegistryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


_DEFAULT_REGISTRY = ConnectionRegistry()


def default_registry() -> ConnectionRegistry:
    """Return the registry shared by every connection in this process."""

    return _DEFAULT_REGISTRY


__all__ = ["ConnectionRegistry", "RegistryEntry", "default_registry"]

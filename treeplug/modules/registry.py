"""Registry of installed modules, partitioned by kind."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Iterable

from treeplug.compiler.models import TreeplugError
from treeplug.modules.base import ModuleDescriptor, ModuleInfo, ModuleKind

logger = logging.getLogger(__name__)

ModuleListener = Callable[[ModuleDescriptor], None]


class RegistryError(TreeplugError):
    """Base class for registry errors."""


class DuplicateIdError(RegistryError):
    """A module with the same Id is already registered."""

    def __init__(self, module_id: str):
        self.module_id = module_id
        super().__init__(f"A module with the Id '{module_id}' has already been loaded")


def sort_descriptors(descriptors: Iterable[ModuleDescriptor]) -> list[ModuleDescriptor]:
    """Order descriptors by display name, ignoring case."""
    return sorted(descriptors, key=lambda d: d.name.casefold())


def filter_descriptors(
    descriptors: Iterable[ModuleDescriptor],
    query: str | None,
) -> list[ModuleDescriptor]:
    """Keep descriptors whose name or help text contains the query, ignoring case.

    The input order is preserved.  An empty or missing query keeps everything.
    """
    descriptors = list(descriptors)
    if not query:
        return descriptors
    needle = query.casefold()
    return [
        d for d in descriptors
        if needle in d.name.casefold() or needle in d.help_text.casefold()
    ]


def can_select(descriptor: ModuleDescriptor, already_chosen: Iterable[ModuleDescriptor]) -> bool:
    """Whether a module may be added to a pipeline holding ``already_chosen``."""
    if descriptor.repeatable:
        return True
    return all(chosen.id != descriptor.id for chosen in already_chosen)


class ModuleRegistry:
    """Central registry for compiled modules.

    Ids are unique across every kind.  Mutations replace whole entries under
    a single lock, and reads take a snapshot under the same lock, so a reader
    never sees a half-applied change.
    """

    def __init__(self) -> None:
        self._modules: dict[str, ModuleDescriptor] = {}
        self._lock = threading.RLock()
        self._listeners: list[ModuleListener] = []

    def register(self, descriptor: ModuleDescriptor) -> ModuleDescriptor:
        """Add a module to the registry.

        Raises:
            DuplicateIdError: if a module with the same Id is registered,
                whatever its kind. The registry is left unchanged.
        """
        with self._lock:
            if descriptor.id in self._modules:
                raise DuplicateIdError(descriptor.id)
            self._modules[descriptor.id] = descriptor
            listeners = list(self._listeners)

        logger.info("Registered %s module '%s' (%s)", descriptor.kind.value, descriptor.name, descriptor.id)
        for listener in listeners:
            listener(descriptor)
        return descriptor

    def remove(self, module_id: str) -> ModuleDescriptor | None:
        """Remove a module; does nothing if it is not registered."""
        with self._lock:
            descriptor = self._modules.pop(module_id, None)
        if descriptor is not None:
            logger.info("Removed module '%s' (%s)", descriptor.name, module_id)
        return descriptor

    def lookup(self, module_id: str) -> ModuleDescriptor | None:
        """Look up a module by Id."""
        with self._lock:
            return self._modules.get(module_id)

    def has(self, module_id: str) -> bool:
        """Check whether a module is registered."""
        with self._lock:
            return module_id in self._modules

    def __contains__(self, module_id: object) -> bool:
        return isinstance(module_id, str) and self.has(module_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._modules)

    def all(self) -> dict[str, ModuleDescriptor]:
        """Return all registered modules."""
        with self._lock:
            return dict(self._modules)

    def ids(self) -> list[str]:
        """Return sorted list of registered module Ids."""
        with self._lock:
            return sorted(self._modules)

    def list_by_kind(self, kind: ModuleKind) -> list[ModuleDescriptor]:
        """Modules of one kind, by name ascending ignoring case."""
        with self._lock:
            snapshot = [d for d in self._modules.values() if d.kind == kind]
        return sort_descriptors(snapshot)

    def filter(self, kind: ModuleKind, query: str | None = None) -> list[ModuleDescriptor]:
        """Modules of one kind whose name or help text contains ``query``."""
        return filter_descriptors(self.list_by_kind(kind), query)

    def can_select(
        self,
        descriptor: ModuleDescriptor,
        already_chosen: Iterable[ModuleDescriptor],
    ) -> bool:
        """Whether ``descriptor`` may still be chosen next to ``already_chosen``."""
        return can_select(descriptor, already_chosen)

    def selectable(
        self,
        kind: ModuleKind,
        already_chosen: Iterable[ModuleDescriptor],
        query: str | None = None,
    ) -> list[tuple[ModuleDescriptor, bool]]:
        """Filtered modules of a kind, each paired with whether it can be chosen."""
        chosen = list(already_chosen)
        return [(d, can_select(d, chosen)) for d in self.filter(kind, query)]

    def info(self) -> list[ModuleInfo]:
        """Return metadata for every registered module."""
        with self._lock:
            snapshot = list(self._modules.values())
        return [d.to_info() for d in sorted(snapshot, key=lambda d: (d.kind.value, d.name.casefold()))]

    def add_listener(self, listener: ModuleListener) -> None:
        """Call ``listener`` with each module registered from now on."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: ModuleListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def clear(self) -> None:
        """Remove every module."""
        with self._lock:
            self._modules.clear()

"""Typed registry of user-authored modules.

Provides the catalog of compiled modules grouped by kind.  Each module is
compiled from source that defines a ``MyModule`` class declaring its
metadata and the callables its kind requires.

Usage:
    from treeplug.modules import ModuleKind, load_module_source, registry

    descriptor = load_module_source(source)

    # Populate a catalog, narrowed by what the user typed
    for module in registry.filter(ModuleKind.PLOTTING, "plot"):
        print(module.name, registry.can_select(module, chosen))
"""

from treeplug.modules.base import (
    KIND_CONTRACTS,
    SELECTABLE_KINDS,
    ModuleDescriptor,
    ModuleInfo,
    ModuleKind,
)
from treeplug.modules.registry import (
    DuplicateIdError,
    ModuleRegistry,
    RegistryError,
    can_select,
    filter_descriptors,
)

# Singleton registry
registry = ModuleRegistry()

from treeplug.modules.loader import (  # noqa: E402
    DirectoryLoadResult,
    ModuleDefinitionError,
    create_descriptor,
    load_directory,
    load_module_file,
    load_module_source,
)
from treeplug.modules.templates import new_module_source  # noqa: E402

__all__ = [
    "KIND_CONTRACTS",
    "SELECTABLE_KINDS",
    "DirectoryLoadResult",
    "DuplicateIdError",
    "ModuleDefinitionError",
    "ModuleDescriptor",
    "ModuleInfo",
    "ModuleKind",
    "ModuleRegistry",
    "RegistryError",
    "can_select",
    "create_descriptor",
    "filter_descriptors",
    "load_directory",
    "load_module_file",
    "load_module_source",
    "new_module_source",
    "registry",
]

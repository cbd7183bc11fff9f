"""Turning compiled units into registered modules."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from treeplug.compiler import CompiledUnit, ModuleCompiler, get_compiler
from treeplug.compiler.models import TreeplugError
from treeplug.modules.base import KIND_CONTRACTS, ModuleDescriptor, ModuleKind
from treeplug.modules.registry import ModuleRegistry

logger = logging.getLogger(__name__)

ENTRY_TYPE = "MyModule"


class ModuleDefinitionError(TreeplugError):
    """A compiled unit does not define a valid module."""


def _read(entry: Any, attribute: str, default: Any = None, required: bool = False) -> Any:
    if not hasattr(entry, attribute):
        if required:
            raise ModuleDefinitionError(f"{ENTRY_TYPE} does not define '{attribute}'")
        return default
    return getattr(entry, attribute)


def _parse_kind(value: Any) -> ModuleKind:
    if isinstance(value, ModuleKind):
        return value
    try:
        return ModuleKind(str(value).strip().lower())
    except ValueError:
        valid = ", ".join(k.value for k in ModuleKind)
        raise ModuleDefinitionError(
            f"Unknown module type '{value}'. Expected one of: {valid}"
        ) from None


def create_descriptor(unit: CompiledUnit) -> ModuleDescriptor:
    """Read the ``MyModule`` class of a unit and describe it.

    Raises:
        ModuleDefinitionError: if the unit has no ``MyModule``, metadata is
            missing, a callable required by the module's kind is absent, or
            reading the metadata raises.
    """
    try:
        return _describe(unit)
    except ModuleDefinitionError:
        raise
    except Exception as e:
        raise ModuleDefinitionError(
            f"Reading {ENTRY_TYPE} metadata failed: {type(e).__name__}: {e}"
        ) from e


def _describe(unit: CompiledUnit) -> ModuleDescriptor:
    if not unit.has_attribute(ENTRY_TYPE):
        raise ModuleDefinitionError(f"The requested type '{ENTRY_TYPE}' was not found")
    entry = unit.get_attribute(ENTRY_TYPE)

    kind = _parse_kind(_read(entry, "module_type", required=True))

    missing = [name for name in KIND_CONTRACTS[kind] if not callable(getattr(entry, name, None))]
    if missing:
        raise ModuleDefinitionError(
            f"{kind.value} modules must define: {', '.join(missing)}"
        )

    get_icon = getattr(entry, "get_icon", None)
    icon = get_icon() if callable(get_icon) else _read(entry, "icon")

    module_id = str(_read(entry, "id", required=True)).strip()
    if not module_id:
        raise ModuleDefinitionError(f"{ENTRY_TYPE}.id must not be empty")

    return ModuleDescriptor(
        id=module_id,
        name=str(_read(entry, "name", required=True)),
        help_text=str(_read(entry, "help_text", default="")),
        kind=kind,
        repeatable=bool(_read(entry, "repeatable", default=True)),
        author=str(_read(entry, "author", default="")),
        version=str(_read(entry, "version", default="")),
        icon=icon,
        entry=entry,
        unit=unit,
    )


def load_module_source(
    source: str,
    registry: ModuleRegistry | None = None,
    compiler: ModuleCompiler | None = None,
) -> ModuleDescriptor:
    """Compile, describe and register module source.

    Registration is the last step, so a failure at any earlier stage leaves
    the registry untouched.

    Raises:
        CompilationError, ModuleDefinitionError, DuplicateIdError
    """
    if registry is None:
        from treeplug.modules import registry
    compiler = compiler or get_compiler()

    unit = compiler.compile(source)
    descriptor = create_descriptor(unit)
    return registry.register(descriptor)


def load_module_file(
    path: Path,
    registry: ModuleRegistry | None = None,
    compiler: ModuleCompiler | None = None,
) -> ModuleDescriptor:
    """Load a module from a source file."""
    return load_module_source(Path(path).read_text(), registry=registry, compiler=compiler)


@dataclass
class DirectoryLoadResult:
    """Outcome of loading every module in a directory."""

    loaded: list[ModuleDescriptor] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)


def discover_module_files(directory: Path) -> list[Path]:
    """Module source files in a directory, skipping private ones."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.glob("*.py") if not p.stem.startswith("_"))


def load_directory(
    directory: Path,
    registry: ModuleRegistry | None = None,
    compiler: ModuleCompiler | None = None,
) -> DirectoryLoadResult:
    """Load every module file in a directory, collecting failures per file."""
    result = DirectoryLoadResult()
    for path in discover_module_files(directory):
        try:
            result.loaded.append(load_module_file(path, registry=registry, compiler=compiler))
        except (TreeplugError, OSError, UnicodeDecodeError) as e:
            logger.warning("Could not load module %s: %s", path.name, e)
            result.failed[str(path)] = str(e)
    if result.loaded:
        logger.info("Loaded %d module(s) from %s", len(result.loaded), directory)
    return result

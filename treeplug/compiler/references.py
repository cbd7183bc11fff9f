"""Resolution and loading of libraries referenced by module source."""

from __future__ import annotations

import importlib
import importlib.util
import logging
import sys
from pathlib import Path
from types import ModuleType

from treeplug.compiler.models import Reference, ReferenceNotFoundError

logger = logging.getLogger(__name__)


def reference_module_name(name: str) -> str:
    """Import name for a reference given as a module name or file name."""
    base = Path(name).name
    if base.endswith(".py"):
        return base[:-3]
    return base


def _find_importable(name: str) -> bool:
    """Check whether a dotted module name is importable from the host."""
    if not all(part.isidentifier() for part in name.split(".")):
        return False
    try:
        return importlib.util.find_spec(name) is not None
    except (ImportError, ValueError):
        return False


def _find_file(name: str, search_dirs: list[Path]) -> Path | None:
    """Look for a library file or package directory in the search directories."""
    file_name = Path(name).name
    stem = reference_module_name(name)
    for directory in search_dirs:
        candidates = [
            directory / file_name,
            directory / f"{stem}.py",
            directory / stem / "__init__.py",
        ]
        for candidate in candidates:
            if candidate.is_file():
                if candidate.name == "__init__.py":
                    return candidate.parent
                return candidate
    return None


class ReferenceResolver:
    """Turns reference names into concrete, loadable references.

    Lookup order: modules importable from the host environment, then each
    search directory in turn.
    """

    def __init__(self, search_dirs: list[Path] | None = None):
        self.search_dirs = [Path(d) for d in (search_dirs or [])]

    def locate(self, name: str) -> Reference | None:
        """Locate a single reference by name."""
        name = name.strip()
        if not name:
            return None

        if not name.endswith(".py") and _find_importable(name):
            logger.debug("Reference '%s' resolved from host environment", name)
            return Reference(name=name)

        path = _find_file(name, self.search_dirs)
        if path is not None:
            logger.debug("Reference '%s' resolved to %s", name, path)
            return Reference(name=reference_module_name(name), location=str(path))

        return None

    def resolve(
        self,
        names: list[str],
        base: list[Reference] | None = None,
    ) -> list[Reference]:
        """Resolve names, merged after the base references.

        The result is deduplicated by reference name and keeps first-seen
        order.  Every name that cannot be located is collected and reported
        in a single ``ReferenceNotFoundError``.
        """
        resolved: list[Reference] = []
        seen: set[str] = set()
        missing: list[str] = []

        for reference in base or []:
            if reference.name not in seen:
                seen.add(reference.name)
                resolved.append(reference)

        for name in names:
            reference = self.locate(name)
            if reference is None:
                missing.append(name)
                continue
            if reference.name not in seen:
                seen.add(reference.name)
                resolved.append(reference)

        if missing:
            raise ReferenceNotFoundError(missing)

        return resolved


def load_reference(reference: Reference) -> ModuleType:
    """Load a reference so that compiled source can import it.

    File references are registered in ``sys.modules`` under their import
    name; a module already present there is returned as is.
    """
    if reference.name in sys.modules:
        return sys.modules[reference.name]

    if reference.location is None:
        return importlib.import_module(reference.name)

    location = Path(reference.location)
    if location.is_dir():
        spec = importlib.util.spec_from_file_location(
            reference.name,
            location / "__init__.py",
            submodule_search_locations=[str(location)],
        )
    else:
        spec = importlib.util.spec_from_file_location(reference.name, location)

    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load reference '{reference.name}' from {location}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[reference.name] = module
    try:
        spec.loader.exec_module(module)
    except BaseException:
        sys.modules.pop(reference.name, None)
        raise

    logger.info("Loaded reference '%s' from %s", reference.name, location)
    return module

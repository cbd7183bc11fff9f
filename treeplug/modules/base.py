"""Module kinds, their invocation contracts and the module descriptor."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from treeplug.compiler.models import CompiledUnit

logger = logging.getLogger(__name__)


class ModuleKind(str, Enum):
    """The kinds of module a user can write."""

    TRANSFORMER = "transformer"
    FURTHER_TRANSFORMATION = "further_transformation"
    COORDINATE = "coordinate"
    PLOTTING = "plotting"
    FILE_TYPE = "file_type"
    ACTION = "action"


# Callables the MyModule class of a compiled unit must expose, per kind
KIND_CONTRACTS: dict[ModuleKind, tuple[str, ...]] = {
    ModuleKind.TRANSFORMER: ("get_parameters", "on_parameter_change", "transform"),
    ModuleKind.FURTHER_TRANSFORMATION: ("get_parameters", "on_parameter_change", "transform"),
    ModuleKind.COORDINATE: ("get_parameters", "on_parameter_change", "get_coordinates"),
    ModuleKind.PLOTTING: ("get_parameters", "on_parameter_change", "plot_action"),
    ModuleKind.FILE_TYPE: ("is_supported", "open_file"),
    ModuleKind.ACTION: ("perform_action",),
}

# Kinds whose modules are chosen into a user's pipeline
SELECTABLE_KINDS = (ModuleKind.FURTHER_TRANSFORMATION, ModuleKind.PLOTTING)


class ModuleInfo(BaseModel):
    """Serializable summary of an installed module."""

    id: str
    name: str
    help_text: str = ""
    kind: ModuleKind
    repeatable: bool = True
    author: str = ""
    version: str = ""


class ModuleDescriptor(BaseModel):
    """Metadata for a compiled module, as held by the registry.

    ``entry`` is the object (normally the ``MyModule`` class) whose
    callables implement the module's kind contract; ``icon`` is an opaque
    handle for presentation code.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    id: str = Field(..., min_length=1, description="Identifier unique across the registry")
    name: str = Field(..., description="Display name")
    help_text: str = Field(default="", description="Short description, searched by filters")
    kind: ModuleKind
    repeatable: bool = Field(
        default=True, description="Whether the module can be chosen more than once in a pipeline"
    )
    author: str = ""
    version: str = ""
    icon: Any = Field(default=None, exclude=True)
    entry: Any = Field(default=None, exclude=True)
    unit: CompiledUnit | None = Field(default=None, exclude=True)

    @property
    def source(self) -> str | None:
        """Source text the module was compiled from."""
        return self.unit.source if self.unit is not None else None

    def invoke(self, member: str, *args: Any, **kwargs: Any) -> Any:
        """Call one of the module's callables."""
        if self.entry is None:
            raise RuntimeError(f"Module '{self.id}' has no entry point")
        func = getattr(self.entry, member, None)
        if func is None or not callable(func):
            raise AttributeError(f"Module '{self.name}' does not provide '{member}'")
        logger.debug("Invoking %s.%s", self.id, member)
        return func(*args, **kwargs)

    def to_info(self) -> ModuleInfo:
        return ModuleInfo(
            id=self.id,
            name=self.name,
            help_text=self.help_text,
            kind=self.kind,
            repeatable=self.repeatable,
            author=self.author,
            version=self.version,
        )

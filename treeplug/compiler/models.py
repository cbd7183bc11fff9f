"""Data types and errors shared by the module compiler."""

from __future__ import annotations

from enum import Enum
from types import ModuleType
from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    """Severity of a compiler diagnostic."""

    ERROR = "error"
    WARNING = "warning"


class DiagnosticKind(str, Enum):
    """Which stage of compilation reported a diagnostic."""

    SYNTAX = "syntax"
    REFERENCE = "reference"
    COMPILATION = "compilation"


REFERENCE_NOT_FOUND = "ReferenceNotFound"


class Diagnostic(BaseModel):
    """A single issue reported while compiling module source."""

    code: str = Field(..., description="Exception or warning class name")
    message: str = Field(..., description="Human-readable message")
    severity: Severity = Severity.ERROR
    kind: DiagnosticKind = DiagnosticKind.COMPILATION
    line: int | None = Field(default=None, description="1-based line in the submitted source")
    column: int | None = None
    is_warning_as_error: bool = Field(
        default=False, description="Warning escalated to an error by configuration"
    )

    @property
    def is_failure(self) -> bool:
        return self.severity == Severity.ERROR or self.is_warning_as_error

    def format(self) -> str:
        if self.line is not None:
            return f"{self.code}: {self.message} (line {self.line})"
        return f"{self.code}: {self.message}"


class Reference(BaseModel):
    """A library made available to compiled source.

    ``location`` is None for modules importable from the host environment,
    otherwise the file or package directory the library is loaded from.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    location: str | None = None


class CompiledUnit:
    """A loaded module together with the exact source that produced it."""

    __slots__ = ("_name", "_source", "_module", "_references", "_warnings", "_is_placeholder")

    def __init__(
        self,
        name: str,
        source: str,
        module: ModuleType,
        references: list[Reference] | None = None,
        warnings: list[Diagnostic] | None = None,
        is_placeholder: bool = False,
    ):
        self._name = name
        self._source = source
        self._module = module
        self._references = tuple(references or ())
        self._warnings = tuple(warnings or ())
        self._is_placeholder = is_placeholder

    @property
    def name(self) -> str:
        """Process-unique name of the loaded module."""
        return self._name

    @property
    def source(self) -> str:
        return self._source

    @property
    def module(self) -> ModuleType:
        return self._module

    @property
    def references(self) -> tuple[Reference, ...]:
        return self._references

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return self._warnings

    @property
    def is_placeholder(self) -> bool:
        return self._is_placeholder

    def has_attribute(self, name: str) -> bool:
        return hasattr(self._module, name)

    def get_attribute(self, name: str) -> Any:
        """Return a top-level attribute of the loaded module."""
        try:
            return getattr(self._module, name)
        except AttributeError:
            raise AttributeError(f"Compiled unit {self._name} has no attribute '{name}'") from None

    def get_callable(self, name: str) -> Callable[..., Any]:
        """Return a top-level callable of the loaded module."""
        value = self.get_attribute(name)
        if not callable(value):
            raise TypeError(f"Attribute '{name}' of compiled unit {self._name} is not callable")
        return value

    def __repr__(self) -> str:
        return f"CompiledUnit(name={self._name!r}, placeholder={self._is_placeholder})"


class CompileResult(BaseModel):
    """Outcome of a compilation: a unit, or the diagnostics explaining why not."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    unit: CompiledUnit | None = None
    diagnostics: list[Diagnostic] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.unit is not None

    @property
    def errors(self) -> list[Diagnostic]:
        """Error diagnostics, including escalated warnings, in reported order."""
        return [d for d in self.diagnostics if d.is_failure]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if not d.is_failure]

    def format_errors(self) -> str:
        return format_diagnostics(self.errors)


def format_diagnostics(diagnostics: list[Diagnostic]) -> str:
    """Render diagnostics one per line as ``<code>: <message>``."""
    return "\n".join(d.format() for d in diagnostics)


class TreeplugError(Exception):
    """Base class for treeplug errors."""


class CompilationError(TreeplugError):
    """Raised by the strict compile entry points when compilation fails."""

    def __init__(self, diagnostics: list[Diagnostic]):
        self.diagnostics = list(diagnostics)
        super().__init__(format_diagnostics(self.diagnostics) or "Compilation failed")

    def has_kind(self, kind: DiagnosticKind) -> bool:
        return any(d.kind == kind for d in self.diagnostics)

    def details(self) -> list[dict[str, Any]]:
        """Diagnostics as JSON-ready dictionaries."""
        return [d.model_dump(mode="json") for d in self.diagnostics]


class ReferenceNotFoundError(TreeplugError):
    """One or more referenced libraries could not be located."""

    def __init__(self, names: list[str]):
        self.names = list(names)
        super().__init__(
            "The requested reference(s) could not be located: " + ", ".join(self.names)
        )

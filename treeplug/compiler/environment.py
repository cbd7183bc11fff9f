"""Host environment for module compilation: module directories and compiler settings."""

import os
from pathlib import Path

from pydantic import BaseModel, Field


DEFAULT_BASE_REFERENCES = ("treeplug.modules.base",)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def get_module_path() -> Path:
    """Get the directory holding user modules."""
    env_dir = os.getenv("TREEPLUG_MODULE_PATH")
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".treeplug" / "modules"


def get_libraries_dir() -> Path:
    """Get the directory holding libraries referenced by user modules."""
    return get_module_path() / "libraries"


def get_reference_search_dirs() -> list[Path]:
    """Directories searched for referenced libraries, in lookup order."""
    return [get_libraries_dir(), get_module_path()]


def warnings_as_errors_from_env() -> bool:
    return os.getenv("TREEPLUG_WARNINGS_AS_ERRORS", "").strip().lower() in _TRUE_VALUES


class CompilerConfig(BaseModel):
    """Configuration for the module compiler."""

    base_references: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BASE_REFERENCES),
        description="References supplied to every compilation",
    )
    search_dirs: list[Path] = Field(
        default_factory=get_reference_search_dirs,
        description="Directories searched for referenced library files",
    )
    warnings_as_errors: bool = Field(
        default=False, description="Escalate every compiler warning to an error"
    )
    escalated_warnings: list[str] = Field(
        default_factory=list, description="Warning codes escalated to errors"
    )

    @classmethod
    def from_env(cls) -> "CompilerConfig":
        return cls(warnings_as_errors=warnings_as_errors_from_env())

    def is_escalated(self, code: str) -> bool:
        return self.warnings_as_errors or code in self.escalated_warnings

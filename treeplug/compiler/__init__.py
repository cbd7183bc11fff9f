"""Dynamic compilation of user-supplied module source.

Usage:
    from treeplug.compiler import get_compiler

    result = get_compiler().try_compile(source)
    if result.success:
        unit = result.unit
    else:
        print(result.format_errors())
"""

from treeplug.compiler.directives import DIRECTIVE_MARKER, DirectiveScan, extract_directives
from treeplug.compiler.environment import CompilerConfig, get_module_path
from treeplug.compiler.frontend import (
    ModuleCompiler,
    compile_lenient,
    compile_source,
    get_compiler,
    placeholder_source,
    reset_compiler,
    try_compile,
)
from treeplug.compiler.models import (
    CompilationError,
    CompiledUnit,
    CompileResult,
    Diagnostic,
    DiagnosticKind,
    Reference,
    ReferenceNotFoundError,
    Severity,
    TreeplugError,
    format_diagnostics,
)
from treeplug.compiler.references import ReferenceResolver, load_reference

__all__ = [
    "DIRECTIVE_MARKER",
    "CompilationError",
    "CompileResult",
    "CompiledUnit",
    "CompilerConfig",
    "Diagnostic",
    "DiagnosticKind",
    "DirectiveScan",
    "ModuleCompiler",
    "Reference",
    "ReferenceNotFoundError",
    "ReferenceResolver",
    "Severity",
    "TreeplugError",
    "compile_lenient",
    "compile_source",
    "extract_directives",
    "format_diagnostics",
    "get_compiler",
    "get_module_path",
    "load_reference",
    "placeholder_source",
    "reset_compiler",
    "try_compile",
]

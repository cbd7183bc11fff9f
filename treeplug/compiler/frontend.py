"""Compiler front-end that turns module source into a loaded compiled unit.

Compilation never raises for problems in the submitted source: syntax
errors, unresolvable references, compiler warnings escalated to errors and
exceptions raised while loading the module are all reported as
diagnostics.  The strict entry points convert a failed result into a
``CompilationError``; the lenient entry point substitutes a placeholder.
"""

from __future__ import annotations

import ast
import asyncio
import linecache
import logging
import sys
import threading
import traceback
import types
import uuid
import warnings
from typing import Any, Callable

from treeplug.compiler.directives import DirectiveScan, extract_directives
from treeplug.compiler.environment import CompilerConfig
from treeplug.compiler.models import (
    REFERENCE_NOT_FOUND,
    CompilationError,
    CompiledUnit,
    CompileResult,
    Diagnostic,
    DiagnosticKind,
    Reference,
    ReferenceNotFoundError,
    Severity,
)
from treeplug.compiler.references import ReferenceResolver, load_reference

logger = logging.getLogger(__name__)

PLACEHOLDER_SOURCE = '''"""Placeholder for custom code that could not be compiled."""

PLACEHOLDER_ID = "{identity}"
'''

# warnings.catch_warnings swaps process-wide state
_toolchain_lock = threading.Lock()


def new_unit_name() -> str:
    """Generate a process-unique name for a compiled module."""
    return f"treeplug_unit_{uuid.uuid4().hex}"


def placeholder_source() -> str:
    """Source of the always-valid placeholder, with a fresh identity."""
    return PLACEHOLDER_SOURCE.format(identity=uuid.uuid4().hex)


class ModuleCompiler:
    """Compiles module source against the host's references."""

    def __init__(self, config: CompilerConfig | None = None):
        """Initialize the compiler.

        Args:
            config: Compiler configuration (base references, search
                directories and warning escalation)
        """
        self.config = config or CompilerConfig()
        self.resolver = ReferenceResolver(self.config.search_dirs)
        self._base: list[Reference] | None = None

    def _base_references(self) -> list[Reference]:
        if self._base is None:
            self._base = self.resolver.resolve(self.config.base_references)
        return self._base

    def _capture(
        self,
        step: Callable[[], Any],
        filename: str,
        line_offset: int,
        diagnostics: list[Diagnostic],
    ) -> Any:
        """Run one toolchain step, turning warnings and syntax errors into diagnostics."""
        result = None
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            try:
                result = step()
            except SyntaxError as exc:
                diagnostics.append(self._syntax_diagnostic(exc, line_offset))
            except ValueError as exc:
                # e.g. null bytes in the source
                diagnostics.append(
                    Diagnostic(
                        code=type(exc).__name__,
                        message=str(exc),
                        kind=DiagnosticKind.SYNTAX,
                    )
                )
            except (RecursionError, MemoryError) as exc:
                # source nested too deeply for the parser
                diagnostics.append(
                    Diagnostic(
                        code=type(exc).__name__,
                        message=str(exc) or "Source is nested too deeply to compile",
                        kind=DiagnosticKind.SYNTAX,
                    )
                )

        seen: set[tuple[str, str, int | None]] = set()
        for record in caught:
            if record.filename != filename:
                continue
            line = record.lineno + line_offset if record.lineno else None
            key = (record.category.__name__, str(record.message), line)
            if key in seen:
                continue
            seen.add(key)
            diagnostics.append(self._warning_diagnostic(record, line))
        return result

    def _warning_diagnostic(self, record: warnings.WarningMessage, line: int | None) -> Diagnostic:
        code = record.category.__name__
        return Diagnostic(
            code=code,
            message=str(record.message),
            severity=Severity.WARNING,
            kind=DiagnosticKind.COMPILATION,
            line=line,
            is_warning_as_error=self.config.is_escalated(code),
        )

    @staticmethod
    def _syntax_diagnostic(exc: SyntaxError, line_offset: int) -> Diagnostic:
        return Diagnostic(
            code=type(exc).__name__,
            message=exc.msg or str(exc),
            kind=DiagnosticKind.SYNTAX,
            line=exc.lineno + line_offset if exc.lineno else None,
            column=exc.offset,
        )

    @staticmethod
    def _execution_diagnostic(exc: BaseException, filename: str) -> Diagnostic:
        line = None
        for frame in reversed(traceback.extract_tb(exc.__traceback__)):
            if frame.filename == filename:
                line = frame.lineno
                break
        return Diagnostic(
            code=type(exc).__name__,
            message=str(exc) or type(exc).__name__,
            kind=DiagnosticKind.COMPILATION,
            line=line,
        )

    def _emit(
        self,
        scan: DirectiveScan,
        filename: str,
        diagnostics: list[Diagnostic],
    ) -> types.CodeType | None:
        """Parse and compile the directive-free body to a code object."""
        with _toolchain_lock:
            tree = self._capture(
                lambda: ast.parse(scan.body, filename=filename),
                filename,
                scan.line_offset,
                diagnostics,
            )
            if tree is None:
                return None
            if scan.line_offset:
                ast.increment_lineno(tree, scan.line_offset)
            return self._capture(
                lambda: compile(tree, filename, "exec", dont_inherit=True),
                filename,
                0,
                diagnostics,
            )

    def _load(
        self,
        unit_name: str,
        filename: str,
        code: types.CodeType,
        references: list[Reference],
        diagnostics: list[Diagnostic],
    ) -> types.ModuleType | None:
        """Load references, then execute the code object in a fresh module."""
        for reference in references:
            try:
                load_reference(reference)
            except Exception as exc:
                diagnostics.append(
                    Diagnostic(
                        code=type(exc).__name__,
                        message=f"The reference '{reference.name}' could not be loaded: {exc}",
                        kind=DiagnosticKind.REFERENCE,
                    )
                )
                return None

        module = types.ModuleType(unit_name)
        module.__file__ = filename
        sys.modules[unit_name] = module
        try:
            exec(code, module.__dict__)
        except (Exception, SystemExit) as exc:
            sys.modules.pop(unit_name, None)
            diagnostics.append(self._execution_diagnostic(exc, filename))
            return None
        return module

    def _compile(self, source: str, use_base: bool = True, is_placeholder: bool = False) -> CompileResult:
        diagnostics: list[Diagnostic] = []
        scan = extract_directives(source)
        unit_name = new_unit_name()
        filename = f"<{unit_name}>"

        references: list[Reference] = []
        try:
            base = self._base_references() if use_base else []
            references = self.resolver.resolve(scan.references, base=base)
        except ReferenceNotFoundError as exc:
            for name in exc.names:
                diagnostics.append(
                    Diagnostic(
                        code=REFERENCE_NOT_FOUND,
                        message=f"The requested reference '{name}' could not be located",
                        kind=DiagnosticKind.REFERENCE,
                    )
                )

        code = self._emit(scan, filename, diagnostics)
        if code is None or any(d.is_failure for d in diagnostics):
            logger.info("Compilation of %s failed with %d error(s)", unit_name,
                        sum(1 for d in diagnostics if d.is_failure))
            return CompileResult(diagnostics=diagnostics)

        linecache.cache[filename] = (len(source), None, source.splitlines(keepends=True), filename)

        module = self._load(unit_name, filename, code, references, diagnostics)
        if module is None:
            linecache.cache.pop(filename, None)
            logger.info("Loading of %s failed", unit_name)
            return CompileResult(diagnostics=diagnostics)

        unit = CompiledUnit(
            name=unit_name,
            source=source,
            module=module,
            references=references,
            warnings=diagnostics,
            is_placeholder=is_placeholder,
        )
        logger.info("Compiled %s with %d reference(s)", unit_name, len(references))
        return CompileResult(unit=unit, diagnostics=diagnostics)

    def try_compile(self, source: str) -> CompileResult:
        """Compile source, returning either a unit or the diagnostics."""
        return self._compile(source)

    def compile(self, source: str) -> CompiledUnit:
        """Compile source, raising ``CompilationError`` on failure."""
        result = self._compile(source)
        if result.unit is None:
            raise CompilationError(result.errors)
        return result.unit

    def compile_lenient(self, source: str) -> CompiledUnit:
        """Compile source, substituting the placeholder module on failure."""
        result = self._compile(source)
        if result.unit is not None:
            return result.unit

        logger.warning(
            "Replacing code that failed to compile with a placeholder:\n%s",
            result.format_errors(),
        )
        fallback = self._compile(placeholder_source(), use_base=False, is_placeholder=True)
        if fallback.unit is None:
            raise CompilationError(fallback.errors)
        return fallback.unit

    async def try_compile_async(self, source: str) -> CompileResult:
        """Async version of try_compile."""
        return await asyncio.to_thread(self.try_compile, source)

    async def compile_async(self, source: str) -> CompiledUnit:
        """Async version of compile."""
        return await asyncio.to_thread(self.compile, source)

    async def compile_lenient_async(self, source: str) -> CompiledUnit:
        """Async version of compile_lenient."""
        return await asyncio.to_thread(self.compile_lenient, source)


# Singleton instance
_compiler: ModuleCompiler | None = None


def get_compiler(config: CompilerConfig | None = None) -> ModuleCompiler:
    """Get or create the compiler singleton."""
    global _compiler

    if _compiler is None:
        _compiler = ModuleCompiler(config or CompilerConfig.from_env())

    return _compiler


def reset_compiler() -> None:
    """Reset the compiler singleton (useful for testing)."""
    global _compiler
    _compiler = None


def compile_source(source: str) -> CompiledUnit:
    """Compile source with the shared compiler, raising on failure."""
    return get_compiler().compile(source)


def try_compile(source: str) -> CompileResult:
    """Compile source with the shared compiler, returning a result."""
    return get_compiler().try_compile(source)


def compile_lenient(source: str) -> CompiledUnit:
    """Compile source with the shared compiler, never failing."""
    return get_compiler().compile_lenient(source)

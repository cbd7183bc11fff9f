"""Module catalog routes: listing, filtering, compiling and removing modules."""

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from treeplug.compiler import CompilationError, Diagnostic, get_compiler
from treeplug.modules import (
    DuplicateIdError,
    ModuleDefinitionError,
    ModuleInfo,
    ModuleKind,
    ModuleRegistry,
    create_descriptor,
)


router = APIRouter(prefix="/modules", tags=["modules"])


class SourceRequest(BaseModel):
    """Request body carrying module source."""

    source: str = Field(..., description="Module source text")


class ModuleResponse(BaseModel):
    """Response containing a module."""

    module: ModuleInfo
    source: str | None = None


class ModuleListResponse(BaseModel):
    """Response containing a list of modules."""

    modules: list[ModuleInfo]
    count: int


class CheckResponse(BaseModel):
    """Result of compiling source without registering it."""

    success: bool
    diagnostics: list[Diagnostic]


class SelectableRequest(BaseModel):
    """Ids of the modules already chosen in a pipeline."""

    chosen_ids: list[str] = Field(default_factory=list)


class SelectableResponse(BaseModel):
    module_id: str
    selectable: bool


# Registry instance (will be set from main app)
_registry: ModuleRegistry | None = None


def set_registry(registry: ModuleRegistry) -> None:
    """Set the module registry for this router."""
    global _registry
    _registry = registry


def get_registry() -> ModuleRegistry:
    """Get the module registry."""
    if _registry is None:
        raise HTTPException(status_code=500, detail="Module registry not initialized")
    return _registry


@router.get("", response_model=ModuleListResponse)
async def list_modules(
    kind: ModuleKind | None = Query(default=None, description="Only modules of this kind"),
    q: str | None = Query(default=None, description="Filter by name or help text"),
) -> ModuleListResponse:
    """List modules, optionally of one kind and filtered by text."""
    registry = get_registry()

    if kind is not None:
        descriptors = registry.filter(kind, q)
    else:
        descriptors = []
        for each_kind in ModuleKind:
            descriptors.extend(registry.filter(each_kind, q))

    modules = [d.to_info() for d in descriptors]
    return ModuleListResponse(modules=modules, count=len(modules))


@router.post("/check", response_model=CheckResponse)
async def check_module(request: SourceRequest) -> CheckResponse:
    """Compile source and report diagnostics without registering anything."""
    result = await get_compiler().try_compile_async(request.source)
    return CheckResponse(success=result.success, diagnostics=result.diagnostics)


@router.post("", response_model=ModuleResponse, status_code=201)
async def add_module(request: SourceRequest) -> ModuleResponse:
    """Compile module source and register it."""
    registry = get_registry()

    try:
        unit = await get_compiler().compile_async(request.source)
    except CompilationError as e:
        raise HTTPException(
            status_code=422,
            detail={"message": "Compilation failed", "diagnostics": e.details()},
        )

    try:
        descriptor = registry.register(create_descriptor(unit))
    except ModuleDefinitionError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except DuplicateIdError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return ModuleResponse(module=descriptor.to_info(), source=descriptor.source)


@router.get("/{module_id}", response_model=ModuleResponse)
async def get_module(module_id: str) -> ModuleResponse:
    """Get a specific module by Id."""
    descriptor = get_registry().lookup(module_id)

    if descriptor is None:
        raise HTTPException(status_code=404, detail=f"Module not found: {module_id}")

    return ModuleResponse(module=descriptor.to_info(), source=descriptor.source)


@router.post("/{module_id}/selectable", response_model=SelectableResponse)
async def module_selectable(module_id: str, request: SelectableRequest) -> SelectableResponse:
    """Whether a module can be added to a pipeline holding the chosen modules."""
    registry = get_registry()
    descriptor = registry.lookup(module_id)

    if descriptor is None:
        raise HTTPException(status_code=404, detail=f"Module not found: {module_id}")

    chosen = [registry.lookup(i) for i in request.chosen_ids]
    unknown = [i for i, d in zip(request.chosen_ids, chosen) if d is None]
    if unknown:
        raise HTTPException(status_code=404, detail=f"Module not found: {', '.join(unknown)}")

    return SelectableResponse(
        module_id=module_id,
        selectable=registry.can_select(descriptor, chosen),
    )


@router.delete("/{module_id}")
async def delete_module(module_id: str) -> dict:
    """Remove a module from the registry."""
    if get_registry().remove(module_id) is None:
        raise HTTPException(status_code=404, detail=f"Module not found: {module_id}")

    return {"message": f"Module {module_id} removed"}

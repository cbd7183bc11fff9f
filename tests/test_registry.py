from concurrent.futures import ThreadPoolExecutor

import pytest

from treeplug.modules import (
    DuplicateIdError,
    ModuleDescriptor,
    ModuleKind,
    ModuleRegistry,
    filter_descriptors,
)


def _descriptor(
    module_id: str,
    name: str,
    kind: ModuleKind = ModuleKind.PLOTTING,
    help_text: str = "",
    repeatable: bool = True,
) -> ModuleDescriptor:
    return ModuleDescriptor(
        id=module_id,
        name=name,
        kind=kind,
        help_text=help_text,
        repeatable=repeatable,
    )


def _plotting_registry() -> ModuleRegistry:
    registry = ModuleRegistry()
    registry.register(_descriptor("gamma", "Gamma", help_text="Draws node labels"))
    registry.register(_descriptor("alpha", "Alpha Plot"))
    registry.register(_descriptor("beta", "beta plot"))
    return registry


def _names(descriptors):
    return [d.name for d in descriptors]


def test_list_by_kind_orders_names_ignoring_case():
    registry = _plotting_registry()
    assert _names(registry.list_by_kind(ModuleKind.PLOTTING)) == ["Alpha Plot", "beta plot", "Gamma"]


def test_filter_by_name_substring():
    registry = _plotting_registry()
    assert _names(registry.filter(ModuleKind.PLOTTING, "plot")) == ["Alpha Plot", "beta plot"]
    assert _names(registry.filter(ModuleKind.PLOTTING, "PLOT")) == ["Alpha Plot", "beta plot"]


def test_filter_matches_help_text():
    registry = _plotting_registry()
    assert _names(registry.filter(ModuleKind.PLOTTING, "node label")) == ["Gamma"]


def test_empty_or_missing_query_returns_full_list():
    registry = _plotting_registry()
    full = registry.list_by_kind(ModuleKind.PLOTTING)
    assert registry.filter(ModuleKind.PLOTTING, "") == full
    assert registry.filter(ModuleKind.PLOTTING, None) == full
    assert registry.filter(ModuleKind.PLOTTING) == full


def test_filter_is_idempotent():
    registry = _plotting_registry()
    for query in ("plot", "a", "", "zzz"):
        once = registry.filter(ModuleKind.PLOTTING, query)
        assert filter_descriptors(once, query) == once


def test_kinds_are_partitioned():
    registry = _plotting_registry()
    registry.register(_descriptor("root", "Root tree", kind=ModuleKind.FURTHER_TRANSFORMATION))

    assert _names(registry.list_by_kind(ModuleKind.FURTHER_TRANSFORMATION)) == ["Root tree"]
    assert registry.list_by_kind(ModuleKind.COORDINATE) == []
    assert len(registry) == 4


def test_duplicate_id_is_rejected_across_kinds():
    registry = ModuleRegistry()
    first = registry.register(_descriptor("same", "First"))
    before = registry.all()

    with pytest.raises(DuplicateIdError) as excinfo:
        registry.register(_descriptor("same", "Second", kind=ModuleKind.ACTION))

    assert excinfo.value.module_id == "same"
    assert registry.all() == before
    assert registry.lookup("same") is first
    assert registry.list_by_kind(ModuleKind.ACTION) == []


def test_lookup_and_remove():
    registry = _plotting_registry()
    assert registry.lookup("alpha").name == "Alpha Plot"
    assert registry.lookup("missing") is None
    assert "alpha" in registry

    removed = registry.remove("alpha")
    assert removed.name == "Alpha Plot"
    assert registry.lookup("alpha") is None
    assert "alpha" not in registry
    assert _names(registry.list_by_kind(ModuleKind.PLOTTING)) == ["beta plot", "Gamma"]


def test_remove_absent_is_a_no_op():
    registry = _plotting_registry()
    assert registry.remove("missing") is None
    assert len(registry) == 3


def test_can_select_non_repeatable_once():
    registry = ModuleRegistry()
    once = registry.register(
        _descriptor("reroot", "Reroot", kind=ModuleKind.FURTHER_TRANSFORMATION, repeatable=False)
    )

    assert registry.can_select(once, [])
    assert not registry.can_select(once, [once])


def test_can_select_repeatable_always():
    registry = ModuleRegistry()
    many = registry.register(_descriptor("labels", "Labels", repeatable=True))
    assert registry.can_select(many, [many, many])


def test_can_select_compares_ids():
    registry = ModuleRegistry()
    once = registry.register(_descriptor("reroot", "Reroot", repeatable=False))
    other = _descriptor("unroot", "Unroot", repeatable=False)
    same_id = _descriptor("reroot", "Reroot copy", repeatable=False)

    assert registry.can_select(once, [other])
    assert not registry.can_select(once, [other, same_id])


def test_selectable_pairs_modules_with_availability():
    registry = ModuleRegistry()
    once = registry.register(_descriptor("once", "Once", repeatable=False))
    registry.register(_descriptor("many", "Many"))

    pairs = registry.selectable(ModuleKind.PLOTTING, [once])
    assert [(d.id, ok) for d, ok in pairs] == [("many", True), ("once", False)]


def test_listeners_are_notified_of_registrations():
    registry = ModuleRegistry()
    seen = []
    registry.add_listener(seen.append)

    registry.register(_descriptor("a", "A"))
    with pytest.raises(DuplicateIdError):
        registry.register(_descriptor("a", "A again"))

    registry.remove_listener(seen.append)
    registry.register(_descriptor("b", "B"))

    assert [d.id for d in seen] == ["a"]


def test_info_summaries():
    registry = _plotting_registry()
    registry.register(_descriptor("act", "Zoom", kind=ModuleKind.ACTION))

    info = registry.info()
    assert [i.id for i in info] == ["act", "alpha", "beta", "gamma"]
    assert info[0].kind == ModuleKind.ACTION


def test_concurrent_registration():
    registry = ModuleRegistry()

    def register(index: int):
        return registry.register(_descriptor(f"m{index}", f"Module {index}"))

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(register, range(200)))

    assert len(registry) == 200
    assert len(registry.list_by_kind(ModuleKind.PLOTTING)) == 200

from fuselang.modules import (
    Module,
    ModuleGraph,
    ModulePath,
    build_module_graph,
    collect_imports,
    split_module_path,
)
from fuselang.parser import parse
from fuselang.syntax import File


def build(sources):
    parsed = {}
    for path, src in sources.items():
        f, errs = parse(path + ".fuse", src)
        assert errs == []
        parsed[path] = f
    return build_module_graph(parsed)


def test_module_path_str():
    assert str(ModulePath(["core", "list"])) == "core.list"
    assert str(ModulePath()) == ""


def test_split_module_path():
    assert split_module_path("core.list") == ModulePath(["core", "list"])
    assert split_module_path("main") == ("main",)
    assert split_module_path("") == ("",)


def test_deterministic_order():
    g = build({"c": "", "a": "", "b": ""})
    assert g.order == ["a", "b", "c"]


def test_lookup():
    g = build({"core.list": "pub fn new() { }"})
    mod = g.lookup(ModulePath(["core", "list"]))
    assert mod is not None
    assert str(mod.path) == "core.list"
    assert g.lookup(["core", "missing"]) is None


def test_order_requires_finalize():
    g = ModuleGraph()
    g.add(Module(ModulePath(["b"]), File()))
    g.add(Module(ModulePath(["a"]), File()))
    assert g.order == []
    g.finalize()
    assert g.order == ["a", "b"]


def test_fresh_scopes_are_separate():
    g = build({"a": "", "b": ""})
    assert g.modules["a"].symbols is not g.modules["b"].symbols
    assert g.modules["a"].symbols.names() == []


def test_collect_imports():
    g = build({"main": "import core.list; fn f() { } import core.io as io;"})
    imports = collect_imports(g.lookup(["main"]))
    assert [i.path for i in imports] == [["core", "list"], ["core", "io"]]
    assert imports[1].alias == "io"
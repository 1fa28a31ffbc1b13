"""Module paths, modules and the module graph of a compilation unit."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional

from fuselang.scope import Scope
from fuselang.syntax import File, ImportDecl
from fuselang.tokens import Span


class ModulePath(tuple):
    """A dotted module identifier such as ``core.list``, held as segments."""

    def __new__(cls, segments: Iterable[str] = ()) -> "ModulePath":
        return super().__new__(cls, segments)

    def __str__(self) -> str:
        return ".".join(self)


@dataclass
class Module:
    """One source module: its path, syntax tree and module-level scope."""

    path: ModulePath
    file: File
    symbols: Scope = field(default_factory=Scope)


class ModuleGraph:
    """All modules of a compilation unit, keyed by dotted path."""

    def __init__(self) -> None:
        self.modules: Dict[str, Module] = {}
        self.order: List[str] = []

    def add(self, module: Module) -> None:
        """Register a module; call finalize afterwards to fix the order."""
        self.modules[str(module.path)] = module

    def finalize(self) -> None:
        """Sort module keys so traversal is deterministic."""
        self.order = sorted(self.modules)

    def lookup(self, path: Iterable[str]) -> Optional[Module]:
        """The module at the given path, or None."""
        return self.modules.get(str(ModulePath(path)))


@dataclass(frozen=True)
class ImportEdge:
    """A dependency of one module on another, or on an item inside it."""

    from_path: ModulePath
    to_path: ModulePath
    item_name: str = ""
    alias: str = ""
    span: Span = field(default_factory=Span)


def split_module_path(s: str) -> ModulePath:
    """Split ``a.b.c`` into its segments."""
    return ModulePath(s.split("."))


def build_module_graph(files: Mapping[str, File]) -> ModuleGraph:
    """Build a finalized graph from parsed files keyed by dotted module path."""
    graph = ModuleGraph()
    for path, file in files.items():
        graph.add(Module(split_module_path(path), file, Scope(None)))
    graph.finalize()
    return graph


def collect_imports(module: Module) -> List[ImportDecl]:
    """The import declarations of a module, in source order."""
    return [item for item in module.file.items if isinstance(item, ImportDecl)]
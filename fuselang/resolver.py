"""Name resolution across a module graph: symbol indexing, imports and cycles."""

from __future__ import annotations

from typing import Dict, List, Optional

from fuselang.modules import Module, ModuleGraph, ModulePath
from fuselang.scope import Scope, Symbol, SymbolKind
from fuselang.syntax import (
    ConstDecl,
    EnumDecl,
    ExternFnDecl,
    FnDecl,
    ImportDecl,
    StructDecl,
    TraitDecl,
    TypeAliasDecl,
    Variant,
)
from fuselang.tokens import Diagnostic, Span

_ITEM_KINDS = (
    (FnDecl, SymbolKind.FUNC),
    (StructDecl, SymbolKind.STRUCT),
    (EnumDecl, SymbolKind.ENUM),
    (TraitDecl, SymbolKind.TRAIT),
    (ConstDecl, SymbolKind.CONST),
    (TypeAliasDecl, SymbolKind.TYPE_ALIAS),
    (ExternFnDecl, SymbolKind.EXTERN_FN),
)

_WHITE, _GRAY, _BLACK = 0, 1, 2


def _quote(name: str) -> str:
    return '"' + name.replace("\\", "\\\\").replace('"', '\\"') + '"'


class Resolver:
    """Indexes symbols, resolves imports and detects import cycles.

    Problems are collected in ``errors`` so that every one is reported.
    """

    def __init__(self, graph: ModuleGraph) -> None:
        self.graph = graph
        self.errors: List[Diagnostic] = []

    def resolve(self) -> List[Diagnostic]:
        """Run every resolution phase and return the collected errors."""
        for key in self.graph.order:
            self._index_module(self.graph.modules[key])
        for key in self.graph.order:
            module = self.graph.modules[key]
            for item in module.file.items:
                if isinstance(item, ImportDecl):
                    self._resolve_import(module, item)
        self._detect_cycles()
        return self.errors

    # --- indexing ---

    def _index_module(self, module: Module) -> None:
        for item in module.file.items:
            for node_type, kind in _ITEM_KINDS:
                if isinstance(item, node_type):
                    self._define(module, item.name, kind, item.public, item.span)
                    break
            if isinstance(item, EnumDecl):
                # Variants are hoisted into the module scope.
                for variant in item.variants:
                    self._define_variant(module, item.name, variant)

    def _define(
        self, module: Module, name: str, kind: SymbolKind, public: bool, span: Span
    ) -> None:
        sym = Symbol(name, kind, public, span, module.path)
        if not module.symbols.define(sym):
            prev = module.symbols.lookup_local(name)
            self._error(
                span, f"duplicate definition of {_quote(name)} (previous at {prev.span})"
            )

    def _define_variant(self, module: Module, enum_name: str, variant: Variant) -> None:
        sym = Symbol(
            variant.name,
            SymbolKind.ENUM_VARIANT,
            True,
            variant.span,
            module.path,
            enum_name,
        )
        if not module.symbols.define(sym):
            prev = module.symbols.lookup_local(variant.name)
            self._error(
                variant.span,
                f"enum variant {_quote(variant.name)} conflicts with existing "
                f"{prev.kind} {_quote(prev.name)} (at {prev.span})",
            )

    # --- imports ---

    def _resolve_import(self, module: Module, imp: ImportDecl) -> None:
        """Module-first: the full path as a module, else its last segment as an item."""
        path = imp.path
        full_path = ModulePath(path)
        if self.graph.lookup(full_path) is not None:
            name = imp.alias or path[-1]
            sym = Symbol(name, SymbolKind.MODULE, False, imp.span, full_path)
            self._define_import(module, sym, imp.span)
            return

        if len(path) >= 2:
            mod_path = ModulePath(path[:-1])
            item_name = path[-1]
            target = self.graph.lookup(mod_path)
            if target is not None:
                src = target.symbols.lookup_local(item_name)
                if src is None:
                    self._error(
                        imp.span,
                        f"module {mod_path} has no exported item {_quote(item_name)}",
                    )
                    return
                name = imp.alias or item_name
                sym = Symbol(name, src.kind, False, imp.span, src.module, src.parent)
                self._define_import(module, sym, imp.span)
                return

        self._error(imp.span, f"unresolved import: {full_path}")

    def _define_import(self, module: Module, sym: Symbol, span: Span) -> None:
        if not module.symbols.define(sym):
            name = _quote(sym.name)
            self._error(span, f"import {name} conflicts with existing symbol {name}")

    def _import_target(self, imp: ImportDecl) -> str:
        full_path = ModulePath(imp.path)
        if self.graph.lookup(full_path) is not None:
            return str(full_path)
        if len(imp.path) >= 2:
            mod_path = ModulePath(imp.path[:-1])
            if self.graph.lookup(mod_path) is not None:
                return str(mod_path)
        return ""

    # --- cycles ---

    def _detect_cycles(self) -> None:
        adjacency: Dict[str, List[str]] = {}
        for key in self.graph.order:
            for item in self.graph.modules[key].file.items:
                if isinstance(item, ImportDecl):
                    target = self._import_target(item)
                    if target:
                        adjacency.setdefault(key, []).append(target)

        color: Dict[str, int] = {}
        parent: Dict[str, str] = {}

        def visit(node: str) -> bool:
            color[node] = _GRAY
            for nxt in adjacency.get(node, []):
                state = color.get(nxt, _WHITE)
                if state == _GRAY:
                    cycle = self._cycle_path(nxt, node, parent)
                    module = self.graph.modules.get(node)
                    span = module.file.span if module and module.file else Span()
                    self._error(span, f"import cycle detected: {cycle}")
                    return True
                if state == _WHITE:
                    parent[nxt] = node
                    if visit(nxt):
                        return True
            color[node] = _BLACK
            return False

        for key in self.graph.order:
            if color.get(key, _WHITE) == _WHITE:
                visit(key)

    @staticmethod
    def _cycle_path(start: str, end: str, parent: Dict[str, str]) -> str:
        path = [start]
        cur = end
        while cur != start:
            path.append(cur)
            cur = parent[cur]
        path.reverse()
        path.append(start)
        return " -> ".join(path)

    def _error(self, span: Span, message: str) -> None:
        self.errors.append(Diagnostic.error(span, message))


def resolve_qualified_variant(
    scope: Scope, enum_name: str, variant_name: str
) -> Optional[Symbol]:
    """Look up ``EnumName.Variant``; the variant symbol or None."""
    enum_sym = scope.lookup(enum_name)
    if enum_sym is None or enum_sym.kind is not SymbolKind.ENUM:
        return None
    var_sym = scope.lookup(variant_name)
    if (
        var_sym is not None
        and var_sym.kind is SymbolKind.ENUM_VARIANT
        and var_sym.parent == enum_name
    ):
        return var_sym
    return None
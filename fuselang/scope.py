"""Symbols and lexical scopes."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from fuselang.tokens import Span


class SymbolKind(enum.Enum):
    """What a symbol refers to; each value is its description."""

    FUNC = "function"
    STRUCT = "struct"
    ENUM = "enum"
    ENUM_VARIANT = "enum variant"
    TRAIT = "trait"
    CONST = "constant"
    TYPE_ALIAS = "type alias"
    EXTERN_FN = "extern function"
    PARAM = "parameter"
    LOCAL = "local"
    IMPORT = "import"
    MODULE = "module"

    def __str__(self) -> str:
        return self.value


@dataclass
class Symbol:
    """A resolved name binding."""

    name: str
    kind: SymbolKind = SymbolKind.FUNC
    public: bool = False
    span: Span = field(default_factory=Span)
    module: Tuple[str, ...] = ()
    parent: str = ""


class Scope:
    """A mapping of names to symbols, chained to an optional parent scope."""

    def __init__(self, parent: Optional["Scope"] = None) -> None:
        self.parent = parent
        self.symbols: Dict[str, Symbol] = {}

    def define(self, sym: Symbol) -> bool:
        """Add a symbol; False if the name is already bound in this scope."""
        if sym.name in self.symbols:
            return False
        self.symbols[sym.name] = sym
        return True

    def lookup(self, name: str) -> Optional[Symbol]:
        """Find a name here or in any enclosing scope."""
        scope: Optional[Scope] = self
        while scope is not None:
            sym = scope.symbols.get(name)
            if sym is not None:
                return sym
            scope = scope.parent
        return None

    def lookup_local(self, name: str) -> Optional[Symbol]:
        """Find a name in this scope only."""
        return self.symbols.get(name)

    def names(self) -> List[str]:
        """Names bound in this scope, sorted."""
        return sorted(self.symbols)
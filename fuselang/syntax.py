"""Syntax tree nodes produced by the parser."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List, Optional

from fuselang.tokens import Span, Token, TokenKind


@dataclass
class Node:
    """Base of every syntax node."""

    span: Span = field(default_factory=Span)


class Item(Node):
    """A declaration at module or block level."""


class Expr(Node):
    """An expression."""


class Stmt(Node):
    """A statement inside a block."""


class TypeExpr(Node):
    """A type as written in source."""


class Pattern(Node):
    """A match pattern."""


# --- items ---


@dataclass
class File(Node):
    items: List[Item] = field(default_factory=list)


@dataclass
class ImportDecl(Item):
    path: List[str] = field(default_factory=list)
    alias: str = ""


@dataclass
class Decorator(Node):
    name: str = ""
    args: List[Expr] = field(default_factory=list)


@dataclass
class GenericParam(Node):
    name: str = ""
    bounds: List[TypeExpr] = field(default_factory=list)


@dataclass
class WhereConstraint(Node):
    type: Optional[TypeExpr] = None
    bounds: List[TypeExpr] = field(default_factory=list)


@dataclass
class WhereClause(Node):
    constraints: List[WhereConstraint] = field(default_factory=list)


@dataclass
class Param(Node):
    ownership: Optional[TokenKind] = None
    name: str = ""
    type: Optional[TypeExpr] = None


@dataclass
class Field(Node):
    name: str = ""
    type: Optional[TypeExpr] = None


@dataclass
class FnDecl(Item):
    public: bool = False
    name: str = ""
    generic_params: List[GenericParam] = field(default_factory=list)
    params: List[Param] = field(default_factory=list)
    return_type: Optional[TypeExpr] = None
    where: Optional[WhereClause] = None
    body: Optional["BlockExpr"] = None


@dataclass
class StructDecl(Item):
    public: bool = False
    decorators: List[Decorator] = field(default_factory=list)
    name: str = ""
    generic_params: List[GenericParam] = field(default_factory=list)
    fields: List[Field] = field(default_factory=list)


class VariantKind(enum.Enum):
    UNIT = "unit"
    TUPLE = "tuple"
    STRUCT = "struct"


@dataclass
class Variant(Node):
    name: str = ""
    kind: VariantKind = VariantKind.UNIT
    types: List[TypeExpr] = field(default_factory=list)
    fields: List[Field] = field(default_factory=list)


@dataclass
class EnumDecl(Item):
    public: bool = False
    name: str = ""
    generic_params: List[GenericParam] = field(default_factory=list)
    variants: List[Variant] = field(default_factory=list)


@dataclass
class TraitDecl(Item):
    public: bool = False
    name: str = ""
    generic_params: List[GenericParam] = field(default_factory=list)
    supertraits: List[TypeExpr] = field(default_factory=list)
    items: List[Item] = field(default_factory=list)


@dataclass
class ImplDecl(Item):
    generic_params: List[GenericParam] = field(default_factory=list)
    target: Optional[TypeExpr] = None
    trait: Optional[TypeExpr] = None
    where: Optional[WhereClause] = None
    items: List[Item] = field(default_factory=list)


@dataclass
class ConstDecl(Item):
    public: bool = False
    name: str = ""
    type: Optional[TypeExpr] = None
    value: Optional[Expr] = None


@dataclass
class TypeAliasDecl(Item):
    public: bool = False
    name: str = ""
    generic_params: List[GenericParam] = field(default_factory=list)
    type: Optional[TypeExpr] = None


@dataclass
class ExternFnDecl(Item):
    public: bool = False
    name: str = ""
    params: List[Param] = field(default_factory=list)
    return_type: Optional[TypeExpr] = None


# --- type expressions ---


@dataclass
class PathType(TypeExpr):
    segments: List[str] = field(default_factory=list)
    type_args: List[TypeExpr] = field(default_factory=list)


@dataclass
class TupleType(TypeExpr):
    elems: List[TypeExpr] = field(default_factory=list)


@dataclass
class ArrayType(TypeExpr):
    elem: Optional[TypeExpr] = None
    size: Optional[Expr] = None


@dataclass
class SliceType(TypeExpr):
    elem: Optional[TypeExpr] = None


@dataclass
class PtrType(TypeExpr):
    elem: Optional[TypeExpr] = None


# --- expressions ---


@dataclass
class LiteralExpr(Expr):
    token: Token = field(default_factory=Token)


@dataclass
class IdentExpr(Expr):
    name: str = ""


@dataclass
class BinaryExpr(Expr):
    left: Optional[Expr] = None
    op: Token = field(default_factory=Token)
    right: Optional[Expr] = None


@dataclass
class UnaryExpr(Expr):
    op: Token = field(default_factory=Token)
    operand: Optional[Expr] = None


@dataclass
class AssignExpr(Expr):
    target: Optional[Expr] = None
    op: Token = field(default_factory=Token)
    value: Optional[Expr] = None


@dataclass
class CallExpr(Expr):
    callee: Optional[Expr] = None
    args: List[Expr] = field(default_factory=list)


@dataclass
class IndexExpr(Expr):
    expr: Optional[Expr] = None
    index: Optional[Expr] = None


@dataclass
class FieldExpr(Expr):
    expr: Optional[Expr] = None
    name: str = ""


@dataclass
class QDotExpr(Expr):
    expr: Optional[Expr] = None
    name: str = ""


@dataclass
class QuestionExpr(Expr):
    expr: Optional[Expr] = None


@dataclass
class BlockExpr(Expr):
    stmts: List[Stmt] = field(default_factory=list)
    tail: Optional[Expr] = None
    unsafe: bool = False


@dataclass
class IfExpr(Expr):
    cond: Optional[Expr] = None
    then: Optional[BlockExpr] = None
    else_: Optional[Expr] = None


@dataclass
class MatchArm(Node):
    pattern: Optional[Pattern] = None
    guard: Optional[Expr] = None
    body: Optional[Expr] = None


@dataclass
class MatchExpr(Expr):
    subject: Optional[Expr] = None
    arms: List[MatchArm] = field(default_factory=list)


@dataclass
class ForExpr(Expr):
    binding: str = ""
    iterable: Optional[Expr] = None
    body: Optional[BlockExpr] = None


@dataclass
class WhileExpr(Expr):
    cond: Optional[Expr] = None
    body: Optional[BlockExpr] = None


@dataclass
class LoopExpr(Expr):
    body: Optional[BlockExpr] = None


@dataclass
class ReturnExpr(Expr):
    value: Optional[Expr] = None


@dataclass
class BreakExpr(Expr):
    value: Optional[Expr] = None


@dataclass
class ContinueExpr(Expr):
    pass


@dataclass
class SpawnExpr(Expr):
    expr: Optional[Expr] = None


@dataclass
class ClosureExpr(Expr):
    params: List[Param] = field(default_factory=list)
    return_type: Optional[TypeExpr] = None
    body: Optional[BlockExpr] = None


@dataclass
class TupleExpr(Expr):
    elems: List[Expr] = field(default_factory=list)


@dataclass
class FieldInit(Node):
    name: str = ""
    value: Optional[Expr] = None


@dataclass
class StructLitExpr(Expr):
    name: str = ""
    fields: List[FieldInit] = field(default_factory=list)


@dataclass
class ArrayLitExpr(Expr):
    elems: List[Expr] = field(default_factory=list)


# --- statements ---


@dataclass
class LetStmt(Stmt):
    name: str = ""
    type: Optional[TypeExpr] = None
    value: Optional[Expr] = None


@dataclass
class VarStmt(Stmt):
    name: str = ""
    type: Optional[TypeExpr] = None
    value: Optional[Expr] = None


@dataclass
class ExprStmt(Stmt):
    expr: Optional[Expr] = None


@dataclass
class ItemStmt(Stmt):
    item: Optional[Item] = None


# --- patterns ---


@dataclass
class WildcardPat(Pattern):
    pass


@dataclass
class BindPat(Pattern):
    name: str = ""


@dataclass
class LitPat(Pattern):
    value: str = ""


@dataclass
class ConstructorPat(Pattern):
    name: str = ""
    args: List[Pattern] = field(default_factory=list)


@dataclass
class FieldPat(Node):
    name: str = ""
    pat: Optional[Pattern] = None


@dataclass
class StructPat(Pattern):
    name: str = ""
    fields: List[FieldPat] = field(default_factory=list)


@dataclass
class TuplePat(Pattern):
    elems: List[Pattern] = field(default_factory=list)
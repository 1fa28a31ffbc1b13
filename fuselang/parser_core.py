"""Token cursor, recovery and the shared grammar: blocks, parameters, types."""

from __future__ import annotations

import abc
from typing import List, Optional, Sequence

from fuselang.syntax import (
    ArrayType,
    BlockExpr,
    Expr,
    ExprStmt,
    Field,
    GenericParam,
    Item,
    ItemStmt,
    LetStmt,
    Param,
    PathType,
    PtrType,
    SliceType,
    Stmt,
    TupleType,
    TypeExpr,
    VarStmt,
    WhereClause,
    WhereConstraint,
)
from fuselang.tokens import Diagnostic, Span, Token, TokenKind

_SYNC_KINDS = frozenset(
    {
        TokenKind.KW_FN,
        TokenKind.KW_PUB,
        TokenKind.KW_STRUCT,
        TokenKind.KW_ENUM,
        TokenKind.KW_TRAIT,
        TokenKind.KW_IMPL,
        TokenKind.KW_CONST,
        TokenKind.KW_TYPE,
        TokenKind.KW_EXTERN,
        TokenKind.KW_IMPORT,
    }
)

_BLOCK_ITEM_KINDS = frozenset(
    {
        TokenKind.KW_STRUCT,
        TokenKind.KW_ENUM,
        TokenKind.KW_TRAIT,
        TokenKind.KW_IMPL,
        TokenKind.KW_CONST,
        TokenKind.KW_TYPE,
        TokenKind.KW_EXTERN,
    }
)

_AFTER_PUB_ITEM_KINDS = frozenset(
    {
        TokenKind.KW_FN,
        TokenKind.KW_STRUCT,
        TokenKind.KW_ENUM,
        TokenKind.KW_TRAIT,
        TokenKind.KW_CONST,
        TokenKind.KW_TYPE,
        TokenKind.KW_EXTERN,
    }
)

_OWNERSHIP_KINDS = (TokenKind.KW_REF, TokenKind.KW_MUTREF, TokenKind.KW_OWNED)


class ParserCore(abc.ABC):
    """Recursive-descent base: a token cursor with error recovery.

    Errors are collected in ``errors`` rather than raised so that one
    parse reports every problem it can find. Subclasses supply
    ``parse_expr`` and may override ``parse_item``.
    """

    def __init__(self, tokens: Sequence[Token]) -> None:
        self._tokens: List[Token] = list(tokens)
        self._pos = 0
        self.errors: List[Diagnostic] = []

    # --- hooks ---

    @abc.abstractmethod
    def parse_expr(self) -> Expr:
        """Parse one expression."""

    def parse_item(self) -> Optional[Item]:
        """Parse an item declaration; this base grammar has none to offer."""
        tok = self._advance()
        self._error(tok.span, f"expected item declaration, got {tok.kind}")
        self._synchronize()
        return None

    # --- token access ---

    def _peek(self) -> Token:
        return self._peek_at(0)

    def _peek_kind(self) -> TokenKind:
        return self._peek().kind

    def _peek_at(self, offset: int) -> Token:
        idx = self._pos + offset
        if 0 <= idx < len(self._tokens):
            return self._tokens[idx]
        return Token(TokenKind.EOF)

    def _advance(self) -> Token:
        tok = self._peek()
        if self._pos < len(self._tokens):
            self._pos += 1
        return tok

    def _expect(self, kind: TokenKind) -> Token:
        """Consume a token of the given kind; on mismatch report and stay put."""
        tok = self._peek()
        if tok.kind is not kind:
            self._error(tok.span, f"expected {kind}, got {tok.kind}")
            return tok
        return self._advance()

    def _expect_ident_like(self) -> Token:
        """Accept an identifier or a keyword used as a name."""
        tok = self._peek()
        if tok.kind is TokenKind.IDENT or tok.is_keyword():
            return self._advance()
        self._error(tok.span, f"expected identifier, got {tok.kind}")
        return tok

    def _match(self, kind: TokenKind) -> Optional[Token]:
        if self._peek_kind() is kind:
            return self._advance()
        return None

    def _at(self, kind: TokenKind) -> bool:
        return self._peek_kind() is kind

    def _at_any(self, *kinds: TokenKind) -> bool:
        return self._peek_kind() in kinds

    # --- diagnostics and recovery ---

    def _error(self, span: Span, message: str) -> None:
        self.errors.append(Diagnostic.error(span, message))

    def _synchronize(self) -> None:
        """Skip to a likely item start, or just past a ';' or '}'."""
        while not self._at(TokenKind.EOF):
            kind = self._peek_kind()
            if kind in _SYNC_KINDS:
                return
            self._advance()
            if kind in (TokenKind.SEMI, TokenKind.RBRACE):
                return

    def _span_from(self, start: Span) -> Span:
        end = start
        if 0 < self._pos <= len(self._tokens):
            end = self._tokens[self._pos - 1].span
        return Span(start.file, start.start, end.end)

    @staticmethod
    def _span_start_end(a: Span, b: Span) -> Span:
        return Span(a.file, a.start, b.end)

    # --- generic params and where clauses ---

    def _parse_bounds(self) -> List[TypeExpr]:
        bounds = [self.parse_type_expr()]
        while self._match(TokenKind.PLUS):
            bounds.append(self.parse_type_expr())
        return bounds

    def parse_generic_params(self) -> List[GenericParam]:
        """Parse ``[T, U: Bound + Other]`` if present."""
        if not self._at(TokenKind.LBRACK):
            return []
        self._advance()
        params: List[GenericParam] = []
        while not self._at_any(TokenKind.RBRACK, TokenKind.EOF):
            start = self._peek().span
            name = self._expect(TokenKind.IDENT)
            bounds: List[TypeExpr] = []
            if self._match(TokenKind.COLON):
                bounds = self._parse_bounds()
            params.append(GenericParam(self._span_from(start), name.literal, bounds))
            if not self._at(TokenKind.RBRACK):
                self._expect(TokenKind.COMMA)
        self._expect(TokenKind.RBRACK)
        return params

    def parse_where_clause(self) -> Optional[WhereClause]:
        """Parse ``where T: A + B, U: C`` if present."""
        if not self._at(TokenKind.KW_WHERE):
            return None
        start = self._advance().span
        constraints: List[WhereConstraint] = []
        while True:
            cs = self._peek().span
            ty = self.parse_type_expr()
            self._expect(TokenKind.COLON)
            bounds = self._parse_bounds()
            constraints.append(WhereConstraint(self._span_from(cs), ty, bounds))
            if not self._match(TokenKind.COMMA):
                break
        return WhereClause(self._span_from(start), constraints)

    # --- parameters and fields ---

    def _finish_list_entry(self) -> None:
        if not self._at(TokenKind.RPAREN):
            self._expect(TokenKind.COMMA)

    def parse_param_list(self) -> List[Param]:
        """Parse parameters up to (not including) the closing ')'."""
        params: List[Param] = []
        while not self._at_any(TokenKind.RPAREN, TokenKind.EOF):
            start = self._peek().span

            if (
                self._at_any(*_OWNERSHIP_KINDS)
                and self._peek_at(1).kind is TokenKind.KW_SELF_VALUE
            ):
                ownership = self._advance().kind
                name = self._advance()
                params.append(Param(self._span_from(start), ownership, name.literal))
                self._finish_list_entry()
                continue
            if self._at(TokenKind.KW_SELF_VALUE):
                name = self._advance()
                params.append(Param(self._span_from(start), None, name.literal))
                self._finish_list_entry()
                continue

            name = self._expect(TokenKind.IDENT)
            self._expect(TokenKind.COLON)
            ownership = None
            if self._at_any(*_OWNERSHIP_KINDS):
                ownership = self._advance().kind
            ty = self.parse_type_expr()
            params.append(Param(self._span_from(start), ownership, name.literal, ty))
            self._finish_list_entry()
        return params

    def parse_field_list(self) -> List[Field]:
        """Parse ``name: Type`` fields up to the closing '}' or the first non-field."""
        fields: List[Field] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            if not self._at(TokenKind.IDENT):
                break
            start = self._peek().span
            name = self._advance()
            self._expect(TokenKind.COLON)
            ty = self.parse_type_expr()
            fields.append(Field(self._span_from(start), name.literal, ty))
            if not self._at(TokenKind.RBRACE) and not self._match(TokenKind.COMMA):
                break
        return fields

    # --- blocks and statements ---

    def parse_block(self) -> BlockExpr:
        """Parse ``{ stmts... [tail] }``."""
        start = self._expect(TokenKind.LBRACE).span
        stmts: List[Stmt] = []
        tail: Optional[Expr] = None

        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            if self._is_item_start():
                item = self.parse_item()
                if item is not None:
                    stmts.append(ItemStmt(item.span, item))
                continue
            if self._at(TokenKind.KW_LET):
                stmts.append(self._parse_binding(LetStmt))
                continue
            if self._at(TokenKind.KW_VAR):
                stmts.append(self._parse_binding(VarStmt))
                continue

            expr = self.parse_expr()
            if self._match(TokenKind.SEMI):
                stmts.append(ExprStmt(expr.span, expr))
            elif self._at(TokenKind.RBRACE):
                tail = expr
            else:
                stmts.append(ExprStmt(expr.span, expr))

        end = self._expect(TokenKind.RBRACE)
        return BlockExpr(self._span_start_end(start, end.span), stmts, tail)

    def _is_item_start(self) -> bool:
        kind = self._peek_kind()
        if kind is TokenKind.KW_FN:
            # `fn name` declares; `fn (` is a closure expression.
            return self._peek_at(1).kind is TokenKind.IDENT
        if kind in _BLOCK_ITEM_KINDS or kind is TokenKind.AT:
            return True
        if kind is TokenKind.KW_PUB:
            return self._peek_at(1).kind in _AFTER_PUB_ITEM_KINDS
        return False

    def _parse_binding(self, node_type):
        start = self._advance().span  # let / var
        name = self._expect(TokenKind.IDENT)
        ty = self.parse_type_expr() if self._match(TokenKind.COLON) else None
        value = self.parse_expr() if self._match(TokenKind.EQ) else None
        self._expect(TokenKind.SEMI)
        return node_type(self._span_from(start), name.literal, ty, value)

    # --- type expressions ---

    def parse_type_expr(self) -> TypeExpr:
        """Parse a path, tuple, slice, array or pointer type."""
        kind = self._peek_kind()
        if kind is TokenKind.LPAREN:
            return self._parse_tuple_or_unit_type()
        if kind is TokenKind.LBRACK:
            return self._parse_array_or_slice_type()
        if kind in (TokenKind.IDENT, TokenKind.KW_SELF_TYPE):
            return self._parse_path_type()
        self._error(self._peek().span, f"expected type expression, got {kind}")
        tok = self._advance()
        return PathType(tok.span, ["<error>"])

    def _parse_tuple_or_unit_type(self) -> TypeExpr:
        start = self._advance().span  # (
        if self._at(TokenKind.RPAREN):
            end = self._advance()
            return TupleType(self._span_start_end(start, end.span), [])
        first = self.parse_type_expr()
        if self._at(TokenKind.COMMA):
            elems = [first]
            while self._match(TokenKind.COMMA):
                if self._at(TokenKind.RPAREN):
                    break
                elems.append(self.parse_type_expr())
            end = self._expect(TokenKind.RPAREN)
            return TupleType(self._span_start_end(start, end.span), elems)
        self._expect(TokenKind.RPAREN)
        return first

    def _parse_array_or_slice_type(self) -> TypeExpr:
        start = self._advance().span  # [
        elem = self.parse_type_expr()
        if self._match(TokenKind.SEMI):
            size = self.parse_expr()
            end = self._expect(TokenKind.RBRACK)
            return ArrayType(self._span_start_end(start, end.span), elem, size)
        end = self._expect(TokenKind.RBRACK)
        return SliceType(self._span_start_end(start, end.span), elem)

    def _parse_path_type(self) -> TypeExpr:
        start = self._peek().span
        segments = [self._advance().literal]
        while self._match(TokenKind.DOT):
            segments.append(self._expect(TokenKind.IDENT).literal)
        type_args: List[TypeExpr] = []
        if self._at(TokenKind.LBRACK):
            type_args = self._parse_type_arg_list()
        span = self._span_from(start)
        if segments == ["Ptr"] and len(type_args) == 1:
            return PtrType(span, type_args[0])
        return PathType(span, segments, type_args)

    def _parse_type_arg_list(self) -> List[TypeExpr]:
        self._advance()  # [
        args: List[TypeExpr] = []
        while not self._at_any(TokenKind.RBRACK, TokenKind.EOF):
            args.append(self.parse_type_expr())
            if not self._at(TokenKind.RBRACK):
                self._expect(TokenKind.COMMA)
        self._expect(TokenKind.RBRACK)
        return args
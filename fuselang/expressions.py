"""Expression and pattern grammar: a Pratt parser over the shared core."""

from __future__ import annotations

import enum
from typing import Dict, List, Optional

from fuselang.parser_core import ParserCore
from fuselang.syntax import (
    ArrayLitExpr,
    AssignExpr,
    BinaryExpr,
    BindPat,
    BlockExpr,
    BreakExpr,
    CallExpr,
    ClosureExpr,
    ConstructorPat,
    ContinueExpr,
    Expr,
    FieldExpr,
    FieldInit,
    FieldPat,
    ForExpr,
    IdentExpr,
    IfExpr,
    IndexExpr,
    LitPat,
    LiteralExpr,
    LoopExpr,
    MatchArm,
    MatchExpr,
    Pattern,
    QDotExpr,
    QuestionExpr,
    ReturnExpr,
    SpawnExpr,
    StructLitExpr,
    StructPat,
    TupleExpr,
    TuplePat,
    TypeExpr,
    UnaryExpr,
    WhileExpr,
    WildcardPat,
)
from fuselang.tokens import Span, Token, TokenKind


class _Prec(enum.IntEnum):
    """Binding strength of infix operators, weakest first."""

    NONE = 0
    ASSIGN = 1
    OR = 2
    AND = 3
    EQ = 4
    CMP = 5
    BIT_OR = 6
    BIT_XOR = 7
    BIT_AND = 8
    SHIFT = 9
    ADD = 10
    MUL = 11


_ASSIGN_OPS = frozenset(
    {
        TokenKind.EQ,
        TokenKind.PLUS_EQ,
        TokenKind.MINUS_EQ,
        TokenKind.STAR_EQ,
        TokenKind.SLASH_EQ,
        TokenKind.PERCENT_EQ,
        TokenKind.AMP_EQ,
        TokenKind.PIPE_EQ,
        TokenKind.CARET_EQ,
        TokenKind.SHL_EQ,
        TokenKind.SHR_EQ,
    }
)

_INFIX_PREC: Dict[TokenKind, _Prec] = {
    **{kind: _Prec.ASSIGN for kind in _ASSIGN_OPS},
    TokenKind.PIPE_PIPE: _Prec.OR,
    TokenKind.AMP_AMP: _Prec.AND,
    TokenKind.EQ_EQ: _Prec.EQ,
    TokenKind.BANG_EQ: _Prec.EQ,
    TokenKind.LT: _Prec.CMP,
    TokenKind.GT: _Prec.CMP,
    TokenKind.LT_EQ: _Prec.CMP,
    TokenKind.GT_EQ: _Prec.CMP,
    TokenKind.PIPE: _Prec.BIT_OR,
    TokenKind.CARET: _Prec.BIT_XOR,
    TokenKind.AMP: _Prec.BIT_AND,
    TokenKind.SHL: _Prec.SHIFT,
    TokenKind.SHR: _Prec.SHIFT,
    TokenKind.PLUS: _Prec.ADD,
    TokenKind.MINUS: _Prec.ADD,
    TokenKind.STAR: _Prec.MUL,
    TokenKind.SLASH: _Prec.MUL,
    TokenKind.PERCENT: _Prec.MUL,
}

_PREFIX_OPS = frozenset(
    {
        TokenKind.BANG,
        TokenKind.MINUS,
        TokenKind.TILDE,
        TokenKind.KW_REF,
        TokenKind.KW_MUTREF,
        TokenKind.KW_OWNED,
        TokenKind.KW_MOVE,
    }
)

_LITERAL_KINDS = frozenset(
    {
        TokenKind.INT_LIT,
        TokenKind.FLOAT_LIT,
        TokenKind.STRING_LIT,
        TokenKind.RAW_STRING_LIT,
        TokenKind.KW_TRUE,
        TokenKind.KW_FALSE,
        TokenKind.KW_NONE,
    }
)

_VALUE_STOPPERS = (TokenKind.SEMI, TokenKind.RBRACE, TokenKind.EOF)


def _join(a: Span, b: Span) -> Span:
    return Span(a.file, a.start, b.end)


class ExpressionParser(ParserCore):
    """Parses expressions, with precedence climbing, and match patterns."""

    def parse_expr(self) -> Expr:
        """Parse one expression, assignment included."""
        return self._parse_prec(_Prec.ASSIGN)

    # --- infix ---

    def _parse_prec(self, min_prec: _Prec) -> Expr:
        left = self._parse_unary()
        while True:
            kind = self._peek_kind()
            prec = _INFIX_PREC.get(kind)
            if prec is None:
                break
            is_assign = kind in _ASSIGN_OPS
            # Assignment is right-associative; everything else left.
            if (prec < min_prec) if is_assign else (prec <= min_prec):
                break
            op = self._advance()
            if is_assign:
                right = self._parse_prec(_Prec.ASSIGN)
                left = AssignExpr(_join(left.span, right.span), left, op, right)
            else:
                right = self._parse_prec(prec)
                left = BinaryExpr(_join(left.span, right.span), left, op, right)
        return left

    def _parse_unary(self) -> Expr:
        if self._peek_kind() in _PREFIX_OPS:
            op = self._advance()
            operand = self._parse_unary()
            return UnaryExpr(_join(op.span, operand.span), op, operand)
        return self._parse_postfix()

    # --- postfix ---

    def _parse_postfix(self) -> Expr:
        expr = self._parse_primary()
        while True:
            kind = self._peek_kind()
            if kind is TokenKind.DOT:
                self._advance()
                if self._at(TokenKind.INT_LIT):
                    name = self._advance()
                else:
                    name = self._expect(TokenKind.IDENT)
                expr = FieldExpr(_join(expr.span, name.span), expr, name.literal)
            elif kind is TokenKind.QDOT:
                self._advance()
                name = self._expect(TokenKind.IDENT)
                expr = QDotExpr(_join(expr.span, name.span), expr, name.literal)
            elif kind is TokenKind.QUESTION:
                tok = self._advance()
                expr = QuestionExpr(_join(expr.span, tok.span), expr)
            elif kind is TokenKind.LPAREN:
                expr = self._parse_call(expr)
            elif kind is TokenKind.LBRACK:
                expr = self._parse_index(expr)
            else:
                return expr

    def _parse_comma_list(self, close: TokenKind, parse_one) -> List:
        items = []
        while not self._at_any(close, TokenKind.EOF):
            items.append(parse_one())
            if not self._at(close):
                self._expect(TokenKind.COMMA)
        return items

    def _parse_call(self, callee: Expr) -> CallExpr:
        self._advance()  # (
        args = self._parse_comma_list(TokenKind.RPAREN, self.parse_expr)
        end = self._expect(TokenKind.RPAREN)
        return CallExpr(_join(callee.span, end.span), callee, args)

    def _parse_index(self, expr: Expr) -> IndexExpr:
        self._advance()  # [
        first = self.parse_expr()
        if self._at(TokenKind.COMMA):
            # A comma-separated list is a type argument list.
            elems = [first]
            while self._match(TokenKind.COMMA):
                elems.append(self.parse_expr())
            end = self._expect(TokenKind.RBRACK)
            index = TupleExpr(_join(first.span, elems[-1].span), elems)
            return IndexExpr(_join(expr.span, end.span), expr, index)
        end = self._expect(TokenKind.RBRACK)
        return IndexExpr(_join(expr.span, end.span), expr, first)

    # --- primary ---

    def _parse_primary(self) -> Expr:
        kind = self._peek_kind()
        if kind in _LITERAL_KINDS:
            tok = self._advance()
            return LiteralExpr(tok.span, tok)
        if kind is TokenKind.KW_SOME:
            tok = self._advance()
            return IdentExpr(tok.span, tok.literal)
        if kind in (TokenKind.IDENT, TokenKind.KW_SELF_VALUE, TokenKind.KW_SELF_TYPE):
            return self._parse_ident_or_struct_lit()
        if kind is TokenKind.LPAREN:
            return self._parse_paren_or_tuple()
        if kind is TokenKind.LBRACE:
            return self.parse_block()
        if kind is TokenKind.KW_IF:
            return self._parse_if()
        if kind is TokenKind.KW_MATCH:
            return self._parse_match()
        if kind is TokenKind.KW_FOR:
            return self._parse_for()
        if kind is TokenKind.KW_WHILE:
            return self._parse_while()
        if kind is TokenKind.KW_LOOP:
            start = self._advance().span
            body = self.parse_block()
            return LoopExpr(self._span_from(start), body)
        if kind is TokenKind.KW_RETURN:
            start = self._advance().span
            value = self._parse_optional_value()
            return ReturnExpr(self._span_from(start), value)
        if kind is TokenKind.KW_BREAK:
            start = self._advance().span
            value = self._parse_optional_value()
            return BreakExpr(self._span_from(start), value)
        if kind is TokenKind.KW_CONTINUE:
            tok = self._advance()
            return ContinueExpr(tok.span)
        if kind is TokenKind.KW_SPAWN:
            start = self._advance().span
            inner = self.parse_expr()
            return SpawnExpr(self._span_from(start), inner)
        if kind is TokenKind.KW_FN:
            return self._parse_closure()
        if kind is TokenKind.KW_UNSAFE:
            start = self._advance().span
            block = self.parse_block()
            block.span = _join(start, block.span)
            block.unsafe = True
            return block
        if kind is TokenKind.LBRACK:
            return self._parse_array_lit()

        self._error(self._peek().span, f"expected expression, got {kind}")
        tok = self._advance()  # consume so callers make progress
        return LiteralExpr(tok.span, tok)

    def _parse_optional_value(self) -> Optional[Expr]:
        if self._at_any(*_VALUE_STOPPERS):
            return None
        return self.parse_expr()

    def _parse_array_lit(self) -> ArrayLitExpr:
        start = self._advance().span  # [
        elems = self._parse_comma_list(TokenKind.RBRACK, self.parse_expr)
        self._expect(TokenKind.RBRACK)
        return ArrayLitExpr(self._span_from(start), elems)

    # --- identifiers and struct literals ---

    def _parse_ident_or_struct_lit(self) -> Expr:
        tok = self._advance()
        if self._at(TokenKind.LBRACE) and self._is_struct_lit_start():
            return self._parse_struct_lit_body(tok)
        return IdentExpr(tok.span, tok.literal)

    def _is_struct_lit_start(self) -> bool:
        """``Name {`` starts a struct literal only for ``{}`` or ``{ ident :``."""
        first = self._peek_at(1).kind
        if first is TokenKind.RBRACE:
            return True
        return first is TokenKind.IDENT and self._peek_at(2).kind is TokenKind.COLON

    def _parse_struct_lit_body(self, name_tok: Token) -> StructLitExpr:
        self._advance()  # {
        fields: List[FieldInit] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            start = self._peek().span
            name = self._expect(TokenKind.IDENT)
            self._expect(TokenKind.COLON)
            value = self.parse_expr()
            fields.append(FieldInit(self._span_from(start), name.literal, value))
            if not self._at(TokenKind.RBRACE):
                self._expect(TokenKind.COMMA)
        end = self._expect(TokenKind.RBRACE)
        return StructLitExpr(_join(name_tok.span, end.span), name_tok.literal, fields)

    # --- grouping and tuples ---

    def _parse_paren_or_tuple(self) -> Expr:
        start = self._advance().span  # (
        if self._at(TokenKind.RPAREN):
            end = self._advance()
            return TupleExpr(_join(start, end.span), [])
        first = self.parse_expr()
        if self._at(TokenKind.COMMA):
            elems = [first]
            while self._match(TokenKind.COMMA):
                if self._at(TokenKind.RPAREN):
                    break  # trailing comma
                elems.append(self.parse_expr())
            end = self._expect(TokenKind.RPAREN)
            return TupleExpr(_join(start, end.span), elems)
        self._expect(TokenKind.RPAREN)
        return first

    # --- control flow ---

    def _parse_if(self) -> IfExpr:
        start = self._advance().span  # if
        cond = self.parse_expr()
        then = self.parse_block()
        else_expr: Optional[Expr] = None
        if self._match(TokenKind.KW_ELSE):
            else_expr = self._parse_if() if self._at(TokenKind.KW_IF) else self.parse_block()
        return IfExpr(self._span_from(start), cond, then, else_expr)

    def _parse_match(self) -> MatchExpr:
        start = self._advance().span  # match
        subject = self.parse_expr()
        self._expect(TokenKind.LBRACE)
        arms = self._parse_comma_list(TokenKind.RBRACE, self._parse_match_arm)
        self._expect(TokenKind.RBRACE)
        return MatchExpr(self._span_from(start), subject, arms)

    def _parse_match_arm(self) -> MatchArm:
        start = self._peek().span
        pattern = self.parse_pattern()
        guard = self.parse_expr() if self._match(TokenKind.KW_IF) else None
        self._expect(TokenKind.FAT_ARROW)
        body = self.parse_expr()
        return MatchArm(self._span_from(start), pattern, guard, body)

    def _parse_for(self) -> ForExpr:
        start = self._advance().span  # for
        binding = self._expect(TokenKind.IDENT)
        self._expect(TokenKind.KW_IN)
        iterable = self.parse_expr()
        body = self.parse_block()
        return ForExpr(self._span_from(start), binding.literal, iterable, body)

    def _parse_while(self) -> WhileExpr:
        start = self._advance().span  # while
        cond = self.parse_expr()
        body = self.parse_block()
        return WhileExpr(self._span_from(start), cond, body)

    def _parse_closure(self) -> ClosureExpr:
        start = self._advance().span  # fn
        self._expect(TokenKind.LPAREN)
        params = self.parse_param_list()
        self._expect(TokenKind.RPAREN)
        ret: Optional[TypeExpr] = None
        if self._match(TokenKind.ARROW):
            ret = self.parse_type_expr()
        body = self.parse_block()
        return ClosureExpr(self._span_from(start), params, ret, body)

    # --- patterns ---

    def parse_pattern(self) -> Pattern:
        """Parse a match pattern."""
        kind = self._peek_kind()
        if kind is TokenKind.IDENT:
            tok = self._advance()
            if tok.literal == "_":
                return WildcardPat(tok.span)
            if self._at(TokenKind.LPAREN):
                return self._parse_constructor_pat(tok)
            if self._at(TokenKind.LBRACE):
                return self._parse_struct_pat(tok)
            # A bare name: a binding or a unit variant; resolution decides.
            return BindPat(tok.span, tok.literal)
        if kind in (TokenKind.KW_TRUE, TokenKind.KW_FALSE, TokenKind.KW_NONE, TokenKind.KW_SOME):
            tok = self._advance()
            if tok.kind is TokenKind.KW_SOME and self._at(TokenKind.LPAREN):
                return self._parse_constructor_pat(tok)
            return LitPat(tok.span, tok.literal)
        if kind in (
            TokenKind.INT_LIT,
            TokenKind.FLOAT_LIT,
            TokenKind.STRING_LIT,
            TokenKind.RAW_STRING_LIT,
        ):
            tok = self._advance()
            return LitPat(tok.span, tok.literal)
        if kind is TokenKind.LPAREN:
            start = self._advance().span
            elems = self._parse_comma_list(TokenKind.RPAREN, self.parse_pattern)
            end = self._expect(TokenKind.RPAREN)
            return TuplePat(_join(start, end.span), elems)

        self._error(self._peek().span, f"expected pattern, got {kind}")
        tok = self._advance()
        return WildcardPat(tok.span)

    def _parse_constructor_pat(self, name: Token) -> ConstructorPat:
        self._advance()  # (
        args = self._parse_comma_list(TokenKind.RPAREN, self.parse_pattern)
        end = self._expect(TokenKind.RPAREN)
        return ConstructorPat(_join(name.span, end.span), name.literal, args)

    def _parse_struct_pat(self, name: Token) -> StructPat:
        self._advance()  # {
        fields: List[FieldPat] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            start = self._peek().span
            field_name = self._expect(TokenKind.IDENT)
            pat = self.parse_pattern() if self._match(TokenKind.COLON) else None
            fields.append(FieldPat(self._span_from(start), field_name.literal, pat))
            if not self._at(TokenKind.RBRACE):
                self._expect(TokenKind.COMMA)
        end = self._expect(TokenKind.RBRACE)
        return StructPat(_join(name.span, end.span), name.literal, fields)
"""Item grammar and the entry point that turns source text into a syntax tree."""

from __future__ import annotations

from typing import List, Optional, Tuple, Union

from fuselang.expressions import ExpressionParser
from fuselang.syntax import (
    ConstDecl,
    Decorator,
    EnumDecl,
    Expr,
    ExternFnDecl,
    File,
    FnDecl,
    ImplDecl,
    ImportDecl,
    Item,
    StructDecl,
    TraitDecl,
    TypeAliasDecl,
    TypeExpr,
    Variant,
    VariantKind,
)
from fuselang.tokens import Diagnostic, TokenKind, tokenize


class Parser(ExpressionParser):
    """Full recursive-descent parser for a source file."""

    def parse_file(self) -> File:
        """Parse every top-level item up to the end of input."""
        start = self._peek().span
        items: List[Item] = []
        while not self._at(TokenKind.EOF):
            before = self._pos
            if self._at(TokenKind.KW_IMPORT):
                item: Optional[Item] = self._parse_import()
            else:
                item = self.parse_item()
            if item is not None:
                items.append(item)
            self._ensure_progress(before)
        return File(self._span_from(start), items)

    def parse_item(self) -> Optional[Item]:
        """Parse an item declaration with its optional decorators and ``pub``."""
        decorators: List[Decorator] = []
        while self._at(TokenKind.AT):
            decorators.append(self._parse_decorator())

        public = self._match(TokenKind.KW_PUB) is not None

        kind = self._peek_kind()
        if kind is TokenKind.KW_FN:
            return self._parse_fn(public)
        if kind is TokenKind.KW_STRUCT:
            return self._parse_struct(public, decorators)
        if kind is TokenKind.KW_ENUM:
            return self._parse_enum(public)
        if kind is TokenKind.KW_TRAIT:
            return self._parse_trait(public)
        if kind is TokenKind.KW_IMPL:
            return self._parse_impl()
        if kind is TokenKind.KW_CONST:
            return self._parse_const(public)
        if kind is TokenKind.KW_TYPE:
            return self._parse_type_alias(public)
        if kind is TokenKind.KW_EXTERN:
            return self._parse_extern(public)

        self._error(self._peek().span, f"expected item declaration, got {kind}")
        self._synchronize()
        return None

    # --- helpers ---

    def _ensure_progress(self, before: int) -> None:
        """Skip one token if recovery left the cursor where it started."""
        if self._pos == before and not self._at(TokenKind.EOF):
            self._advance()

    def _parse_decorator(self) -> Decorator:
        start = self._advance().span  # @
        name = self._expect(TokenKind.IDENT)
        args: List[Expr] = []
        if self._match(TokenKind.LPAREN):
            args = self._parse_comma_list(TokenKind.RPAREN, self.parse_expr)
            self._expect(TokenKind.RPAREN)
        return Decorator(self._span_from(start), name.literal, args)

    def _parse_import(self) -> ImportDecl:
        start = self._advance().span  # import
        path = [self._expect_ident_like().literal]
        while self._match(TokenKind.DOT):
            path.append(self._expect_ident_like().literal)
        alias = ""
        if self._match(TokenKind.KW_AS):
            alias = self._expect(TokenKind.IDENT).literal
        self._expect(TokenKind.SEMI)
        return ImportDecl(self._span_from(start), path, alias)

    def _parse_return_type(self) -> Optional[TypeExpr]:
        if self._match(TokenKind.ARROW):
            return self.parse_type_expr()
        return None

    def _parse_fn(self, public: bool, allow_signature: bool = False) -> FnDecl:
        start = self._advance().span  # fn
        name = self._expect(TokenKind.IDENT)
        generic_params = self.parse_generic_params()
        self._expect(TokenKind.LPAREN)
        params = self.parse_param_list()
        self._expect(TokenKind.RPAREN)
        return_type = self._parse_return_type()
        where = self.parse_where_clause()
        if allow_signature and not self._at(TokenKind.LBRACE):
            self._expect(TokenKind.SEMI)
            body = None
        else:
            body = self.parse_block()
        return FnDecl(
            span=self._span_from(start),
            public=public,
            name=name.literal,
            generic_params=generic_params,
            params=params,
            return_type=return_type,
            where=where,
            body=body,
        )

    def _parse_struct(self, public: bool, decorators: List[Decorator]) -> StructDecl:
        start = self._advance().span  # struct
        name = self._expect(TokenKind.IDENT)
        generic_params = self.parse_generic_params()
        self._expect(TokenKind.LBRACE)
        fields = self.parse_field_list()
        self._expect(TokenKind.RBRACE)
        return StructDecl(
            span=self._span_from(start),
            public=public,
            decorators=decorators,
            name=name.literal,
            generic_params=generic_params,
            fields=fields,
        )

    def _parse_enum(self, public: bool) -> EnumDecl:
        start = self._advance().span  # enum
        name = self._expect(TokenKind.IDENT)
        generic_params = self.parse_generic_params()
        self._expect(TokenKind.LBRACE)
        variants = self._parse_comma_list(TokenKind.RBRACE, self._parse_variant)
        self._expect(TokenKind.RBRACE)
        return EnumDecl(
            span=self._span_from(start),
            public=public,
            name=name.literal,
            generic_params=generic_params,
            variants=variants,
        )

    def _parse_variant(self) -> Variant:
        start = self._peek().span
        name = self._expect_ident_like()
        if self._match(TokenKind.LPAREN):
            types = self._parse_comma_list(TokenKind.RPAREN, self.parse_type_expr)
            self._expect(TokenKind.RPAREN)
            return Variant(self._span_from(start), name.literal, VariantKind.TUPLE, types=types)
        if self._match(TokenKind.LBRACE):
            fields = self.parse_field_list()
            self._expect(TokenKind.RBRACE)
            return Variant(self._span_from(start), name.literal, VariantKind.STRUCT, fields=fields)
        return Variant(self._span_from(start), name.literal, VariantKind.UNIT)

    def _parse_trait(self, public: bool) -> TraitDecl:
        start = self._advance().span  # trait
        name = self._expect(TokenKind.IDENT)
        generic_params = self.parse_generic_params()
        supertraits: List[TypeExpr] = []
        if self._match(TokenKind.COLON):
            supertraits = self._parse_bounds()
        self._expect(TokenKind.LBRACE)
        items: List[Item] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            before = self._pos
            if self._at(TokenKind.KW_FN):
                items.append(self._parse_fn(False, allow_signature=True))
            else:
                self._error(self._peek().span, f"expected trait item, got {self._peek_kind()}")
                self._synchronize()
            self._ensure_progress(before)
        self._expect(TokenKind.RBRACE)
        return TraitDecl(
            span=self._span_from(start),
            public=public,
            name=name.literal,
            generic_params=generic_params,
            supertraits=supertraits,
            items=items,
        )

    def _parse_impl(self) -> ImplDecl:
        start = self._advance().span  # impl
        generic_params = self.parse_generic_params()
        target = self.parse_type_expr()
        trait: Optional[TypeExpr] = None
        if self._match(TokenKind.COLON):
            # `impl Trait : Type` - the first type named the trait.
            trait = target
            target = self.parse_type_expr()
        where = self.parse_where_clause()
        self._expect(TokenKind.LBRACE)
        items: List[Item] = []
        while not self._at_any(TokenKind.RBRACE, TokenKind.EOF):
            before = self._pos
            public = self._match(TokenKind.KW_PUB) is not None
            if self._at(TokenKind.KW_FN):
                items.append(self._parse_fn(public))
            else:
                self._error(
                    self._peek().span,
                    f"expected method in impl block, got {self._peek_kind()}",
                )
                self._synchronize()
            self._ensure_progress(before)
        self._expect(TokenKind.RBRACE)
        return ImplDecl(
            span=self._span_from(start),
            generic_params=generic_params,
            target=target,
            trait=trait,
            where=where,
            items=items,
        )

    def _parse_const(self, public: bool) -> ConstDecl:
        start = self._advance().span  # const
        name = self._expect(TokenKind.IDENT)
        ty = self.parse_type_expr() if self._match(TokenKind.COLON) else None
        self._expect(TokenKind.EQ)
        value = self.parse_expr()
        self._expect(TokenKind.SEMI)
        return ConstDecl(self._span_from(start), public, name.literal, ty, value)

    def _parse_type_alias(self, public: bool) -> TypeAliasDecl:
        start = self._advance().span  # type
        name = self._expect(TokenKind.IDENT)
        generic_params = self.parse_generic_params()
        self._expect(TokenKind.EQ)
        ty = self.parse_type_expr()
        self._expect(TokenKind.SEMI)
        return TypeAliasDecl(self._span_from(start), public, name.literal, generic_params, ty)

    def _parse_extern(self, public: bool) -> ExternFnDecl:
        start = self._advance().span  # extern
        self._expect(TokenKind.KW_FN)
        name = self._expect(TokenKind.IDENT)
        self._expect(TokenKind.LPAREN)
        params = self.parse_param_list()
        self._expect(TokenKind.RPAREN)
        return_type = self._parse_return_type()
        self._expect(TokenKind.SEMI)
        return ExternFnDecl(self._span_from(start), public, name.literal, params, return_type)


def parse(filename: str, src: Union[str, bytes, bytearray]) -> Tuple[File, List[Diagnostic]]:
    """Tokenize and parse source text; return the file and all diagnostics."""
    tokens, lex_errors = tokenize(filename, src)
    parser = Parser(tokens)
    file = parser.parse_file()
    return file, [*lex_errors, *parser.errors]
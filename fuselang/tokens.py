"""Source spans, diagnostics, token kinds and the tokenizer."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Dict, List, Tuple, Union


@dataclass(frozen=True)
class Span:
    """A half-open character range [start, end) in a named source file."""

    file: str = ""
    start: int = 0
    end: int = 0

    def __str__(self) -> str:
        return f"{self.file}:{self.start}-{self.end}"


class Severity(enum.Enum):
    """How serious a diagnostic is."""

    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Diagnostic:
    """A message attached to a source span."""

    span: Span
    message: str
    severity: Severity = Severity.ERROR

    @classmethod
    def error(cls, span: Span, message: str) -> "Diagnostic":
        return cls(span, message, Severity.ERROR)

    def __str__(self) -> str:
        return f"{self.span}: {self.severity}: {self.message}"


class TokenKind(enum.Enum):
    """Token classes; each value is the text used in messages."""

    EOF = "end of file"
    ILLEGAL = "illegal token"
    IDENT = "identifier"
    INT_LIT = "integer literal"
    FLOAT_LIT = "float literal"
    STRING_LIT = "string literal"
    RAW_STRING_LIT = "raw string literal"

    KW_FN = "fn"
    KW_PUB = "pub"
    KW_STRUCT = "struct"
    KW_ENUM = "enum"
    KW_TRAIT = "trait"
    KW_IMPL = "impl"
    KW_CONST = "const"
    KW_TYPE = "type"
    KW_EXTERN = "extern"
    KW_IMPORT = "import"
    KW_AS = "as"
    KW_LET = "let"
    KW_VAR = "var"
    KW_IF = "if"
    KW_ELSE = "else"
    KW_MATCH = "match"
    KW_FOR = "for"
    KW_IN = "in"
    KW_WHILE = "while"
    KW_LOOP = "loop"
    KW_RETURN = "return"
    KW_BREAK = "break"
    KW_CONTINUE = "continue"
    KW_SPAWN = "spawn"
    KW_UNSAFE = "unsafe"
    KW_WHERE = "where"
    KW_TRUE = "true"
    KW_FALSE = "false"
    KW_NONE = "None"
    KW_SOME = "Some"
    KW_SELF_VALUE = "self"
    KW_SELF_TYPE = "Self"
    KW_REF = "ref"
    KW_MUTREF = "mutref"
    KW_OWNED = "owned"
    KW_MOVE = "move"

    LPAREN = "("
    RPAREN = ")"
    LBRACE = "{"
    RBRACE = "}"
    LBRACK = "["
    RBRACK = "]"
    COMMA = ","
    SEMI = ";"
    COLON = ":"
    DOT = "."
    QDOT = "?."
    QUESTION = "?"
    ARROW = "->"
    FAT_ARROW = "=>"
    AT = "@"
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    PERCENT = "%"
    AMP = "&"
    PIPE = "|"
    CARET = "^"
    TILDE = "~"
    BANG = "!"
    SHL = "<<"
    SHR = ">>"
    EQ = "="
    EQ_EQ = "=="
    BANG_EQ = "!="
    LT = "<"
    GT = ">"
    LT_EQ = "<="
    GT_EQ = ">="
    AMP_AMP = "&&"
    PIPE_PIPE = "||"
    PLUS_EQ = "+="
    MINUS_EQ = "-="
    STAR_EQ = "*="
    SLASH_EQ = "/="
    PERCENT_EQ = "%="
    AMP_EQ = "&="
    PIPE_EQ = "|="
    CARET_EQ = "^="
    SHL_EQ = "<<="
    SHR_EQ = ">>="

    def __str__(self) -> str:
        return self.value


_KEYWORDS = frozenset(k for k in TokenKind if k.name.startswith("KW_"))
_KEYWORD_BY_TEXT: Dict[str, TokenKind] = {k.value: k for k in _KEYWORDS}
_NON_PUNCT = frozenset(
    {
        TokenKind.EOF,
        TokenKind.ILLEGAL,
        TokenKind.IDENT,
        TokenKind.INT_LIT,
        TokenKind.FLOAT_LIT,
        TokenKind.STRING_LIT,
        TokenKind.RAW_STRING_LIT,
    }
)
_PUNCT_BY_TEXT: Dict[str, TokenKind] = {
    k.value: k for k in TokenKind if k not in _KEYWORDS and k not in _NON_PUNCT
}


@dataclass(frozen=True)
class Token:
    """A lexical token: its kind, its source text and where it came from."""

    kind: TokenKind = TokenKind.EOF
    literal: str = ""
    span: Span = field(default_factory=Span)

    def is_keyword(self) -> bool:
        return self.kind in _KEYWORDS


_PUNCT_ALT = "|".join(
    re.escape(text) for text in sorted(_PUNCT_BY_TEXT, key=len, reverse=True)
)

_TOKEN_RE = re.compile(
    rf"""
      (?P<space>\s+)
    | (?P<line_comment>//[^\n]*)
    | (?P<block_comment>/\*.*?\*/)
    | (?P<open_comment>/\*.*)
    | (?P<raw>r"[^"]*")
    | (?P<open_raw>r"[^"]*)
    | (?P<string>"(?:\\.|[^"\\])*")
    | (?P<open_string>"(?:\\.|[^"\\])*\\?)
    | (?P<float>[0-9][0-9_]*\.[0-9][0-9_]*(?:[eE][+-]?[0-9]+)?[A-Za-z0-9_]*
               |[0-9][0-9_]*[eE][+-]?[0-9]+[A-Za-z0-9_]*)
    | (?P<int>0[xXoObB][0-9a-fA-F_]+[A-Za-z0-9_]*|[0-9][A-Za-z0-9_]*)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<punct>{_PUNCT_ALT})
    | (?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)
_DIGITS_RE = re.compile(r"[0-9]+")

_SKIPPED = frozenset({"space", "line_comment", "block_comment"})
_UNTERMINATED = {
    "open_comment": "unterminated block comment",
    "open_raw": "unterminated raw string literal",
    "open_string": "unterminated string literal",
}
_GROUP_KINDS = {
    "raw": TokenKind.RAW_STRING_LIT,
    "open_raw": TokenKind.RAW_STRING_LIT,
    "string": TokenKind.STRING_LIT,
    "open_string": TokenKind.STRING_LIT,
    "float": TokenKind.FLOAT_LIT,
    "int": TokenKind.INT_LIT,
}


def tokenize(
    filename: str, src: Union[str, bytes, bytearray]
) -> Tuple[List[Token], List[Diagnostic]]:
    """Split source text into tokens, always ending with an EOF token."""
    text = (
        bytes(src).decode("utf-8", errors="replace")
        if isinstance(src, (bytes, bytearray))
        else src
    )
    tokens: List[Token] = []
    diagnostics: List[Diagnostic] = []
    pos = 0
    while pos < len(text):
        match = _TOKEN_RE.match(text, pos)
        group = match.lastgroup
        lexeme = match.group()
        # After a dot, digits are a tuple index, never a float.
        if group == "float" and tokens and tokens[-1].kind is TokenKind.DOT:
            group = "int"
            lexeme = _DIGITS_RE.match(text, pos).group()
        span = Span(filename, pos, pos + len(lexeme))
        pos = span.end

        if group in _SKIPPED:
            continue
        if group in _UNTERMINATED:
            diagnostics.append(Diagnostic.error(span, _UNTERMINATED[group]))
            if group == "open_comment":
                continue

        if group in _GROUP_KINDS:
            kind = _GROUP_KINDS[group]
        elif group == "ident":
            kind = _KEYWORD_BY_TEXT.get(lexeme, TokenKind.IDENT)
        elif group == "punct":
            kind = _PUNCT_BY_TEXT[lexeme]
        else:
            diagnostics.append(Diagnostic.error(span, f"unexpected character {lexeme!r}"))
            kind = TokenKind.ILLEGAL
        tokens.append(Token(kind, lexeme, span))

    tokens.append(Token(TokenKind.EOF, "", Span(filename, len(text), len(text))))
    return tokens, diagnostics
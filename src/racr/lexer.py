# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Tokenizer for the racr language.

Converts source text into a list of classified tokens. Whitespace, ``//`` line comments and
``/* */`` block comments are discarded. A ``#[doc = "..."]`` attribute is returned as a single
DOC token whose value is the unescaped documentation string.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, NamedTuple

from .errors import RacrLexError


@enum.unique
class TokenKind(enum.Enum):
    """
    Classes of tokens in racr source.
    Keyword and punctuation values are their exact spelling; the remaining values are
    descriptions used in error messages.
    """

    IDENT = "identifier"
    INTEGER = "integer literal"
    DOC = "documentation attribute"
    EOF = "end of input"

    # Keywords
    MOD = "mod"
    USE = "use"
    AS = "as"
    CRATE = "crate"
    REGISTER = "register"
    ENUM = "enum"
    RESERVED = "reserved"
    FIELD = "field"
    PERIPHERAL = "peripheral"
    DEVICE = "device"
    RO = "ro"
    WO = "wo"
    RW = "rw"
    RAW = "raw"

    # Punctuation
    LBRACE = "{"
    RBRACE = "}"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    SEMICOLON = ";"
    COLON = ":"
    PATH_SEP = "::"
    COMMA = ","
    EQUALS = "="
    RANGE = ".."
    AT = "@"
    PIPE = "|"

    @property
    def description(self) -> str:
        """Human readable name of the token kind."""
        if self in _DESCRIPTIVE_KINDS:
            return self.value
        return f"'{self.value}'"


_DESCRIPTIVE_KINDS = frozenset(
    (TokenKind.IDENT, TokenKind.INTEGER, TokenKind.DOC, TokenKind.EOF)
)

# Identifier spellings that are promoted to keyword tokens
KEYWORDS: Dict[str, TokenKind] = {
    kind.value: kind
    for kind in TokenKind
    if kind.value.isidentifier() and kind not in _DESCRIPTIVE_KINDS
}


class Position(NamedTuple):
    """Location of a token or error in the source text."""

    # Zero-based character offset
    offset: int
    # One-based line number
    line: int
    # One-based column number
    column: int

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True)
class Token:
    """A single token from the lexer."""

    kind: TokenKind
    # Source spelling, or the unescaped string for DOC tokens
    value: str
    position: Position

    def describe(self) -> str:
        """Description of the token for use in error messages."""
        if self.kind in (TokenKind.IDENT, TokenKind.INTEGER):
            return f"{self.kind.value} {self.value!r}"
        return self.kind.description


_TOKEN_RE = re.compile(
    r"""
      (?P<whitespace>\s+)
    | (?P<line_comment>//[^\n]*)
    | (?P<block_comment>/\*.*?\*/)
    | (?P<doc>\#\[\s*doc\s*=\s*"(?P<doc_text>(?:[^"\\]|\\.)*)"\s*\])
    | (?P<integer>[0-9][0-9A-Za-z_]*)
    | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    | (?P<punct>::|\.\.|[{}()\[\];:,=@|])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPE_RE = re.compile(r"\\(.)", re.DOTALL)

_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\"}


def unescape(text: str) -> str:
    """Resolve the backslash escapes in a documentation string. Unknown escapes are kept as-is."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES.get(m[1], m[0]), text)


def escape(text: str) -> str:
    """Inverse of unescape()."""
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )


def iter_tokens(text: str) -> Iterator[Token]:
    """
    Generate tokens from racr source text. The last token is always an EOF token.

    :param text: Source text.

    :raises RacrLexError: At the first character that does not start a token.
    """
    pos = 0
    line = 1
    line_start = 0
    length = len(text)

    while pos < length:
        position = Position(pos, line, pos - line_start + 1)

        match = _TOKEN_RE.match(text, pos)
        if match is None:
            raise RacrLexError(position, text[pos])

        group = match.lastgroup
        value = match[0]

        if group == "doc":
            yield Token(TokenKind.DOC, unescape(match["doc_text"]), position)
        elif group == "integer":
            yield Token(TokenKind.INTEGER, value, position)
        elif group == "ident":
            yield Token(KEYWORDS.get(value, TokenKind.IDENT), value, position)
        elif group == "punct":
            yield Token(TokenKind(value), value, position)

        newlines = value.count("\n")
        if newlines:
            line += newlines
            line_start = pos + value.rindex("\n") + 1

        pos = match.end()

    yield Token(TokenKind.EOF, "", Position(length, line, length - line_start + 1))


def tokenize(text: str) -> List[Token]:
    """
    Tokenize racr source text.

    :param text: Source text.

    :raises RacrLexError: If the text contains an unrecognized character.

    :return: List of tokens, terminated by an EOF token.
    """
    return list(iter_tokens(text))

# Copyright (c) 2022 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Recursive descent parser for the racr language.

Every entry point tokenizes the given text, parses it with one grammar rule and requires the
whole text to be consumed. The first error aborts the parse; no partial result is returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from time import perf_counter_ns
from typing import Callable, List, NoReturn, Optional, Sequence, Tuple, TypeVar

import racr

from . import ast
from .errors import (
    RacrBitRangeError,
    RacrNumericLiteralError,
    RacrUnexpectedEndError,
    RacrUnexpectedTokenError,
)
from .lexer import Token, TokenKind, tokenize
from .path import Path

T = TypeVar("T")

# Digits accepted after each integer literal prefix
_RADIXES = {
    "0x": (16, frozenset("0123456789abcdefABCDEF")),
    "0b": (2, frozenset("01")),
}
_DECIMAL_DIGITS = frozenset("0123456789")

_ACCESS = {
    TokenKind.RO: ast.Access.READ_ONLY,
    TokenKind.WO: ast.Access.WRITE_ONLY,
    TokenKind.RW: ast.Access.READ_WRITE,
    TokenKind.RAW: ast.Access.READ_AS_WRITE,
}

# Tokens that may start a path segment
_SEGMENT_KINDS = (TokenKind.IDENT, TokenKind.CRATE)

# Keywords that start an item other than a register definition
_ITEM_KINDS = (
    TokenKind.USE,
    TokenKind.MOD,
    TokenKind.PERIPHERAL,
    TokenKind.DEVICE,
)


@dataclass(frozen=True)
class Options:
    """Options to configure the racr parsing behavior."""

    # Accept several documentation attributes in front of one definition, joining them with
    # newlines. If set to False, an exception is raised on the second attribute.
    allow_stacked_documentation: bool = False

    # Accept union register slots with a single alternative.
    # If set to False, unions must list at least two alternatives.
    allow_single_alternative_union: bool = False

    # Raise an exception for fields whose bit range extends past the register size.
    check_field_bounds: bool = True


class Parser:
    """
    Parser for racr source text.

    The parser object only holds its options, so one instance can be shared freely, including
    between threads. Each call works on its own token cursor.
    """

    def __init__(self, options: Options = Options()) -> None:
        self._options: Options = options

    @property
    def options(self) -> Options:
        return self._options

    def access(self, text: str) -> ast.Access:
        return self._parse(text, _Cursor.access)

    def path(self, text: str) -> Path:
        return self._parse(text, _Cursor.path)

    def module(self, text: str) -> ast.Module:
        return self._parse(text, _Cursor.module)

    def use(self, text: str) -> ast.Use:
        return self._parse(text, _Cursor.use)

    def register_definition(self, text: str) -> ast.RegisterDefinition:
        return self._parse(text, _Cursor.register_definition)

    def peripheral_definition(self, text: str) -> ast.PeripheralDefinition:
        return self._parse(text, _Cursor.peripheral_definition)

    def device_definition(self, text: str) -> ast.DeviceDefinition:
        return self._parse(text, _Cursor.device_definition)

    def item(self, text: str) -> ast.Item:
        return self._parse(text, _Cursor.item)

    def content(self, text: str) -> ast.Content:
        return self._parse(text, _Cursor.content)

    def _parse(self, text: str, rule: Callable[[_Cursor], T]) -> T:
        """Tokenize text, apply rule to the tokens and check that all tokens were consumed."""
        t_start = perf_counter_ns()

        tokens = tokenize(text)
        cursor = _Cursor(tokens, self._options)
        result = rule(cursor)
        cursor.expect(TokenKind.EOF)

        t_parse = (perf_counter_ns() - t_start) / 1_000_000
        racr.log.debug(
            f"Parsed {rule.__name__} from {len(tokens)} tokens in {t_parse:.3f} ms"
        )

        return result


class _Cursor:
    """Position in a token list, with one method per grammar rule."""

    def __init__(self, tokens: Sequence[Token], options: Options) -> None:
        if not tokens or tokens[-1].kind != TokenKind.EOF:
            raise RuntimeError(
                "Token list is not terminated by an EOF token. "
                "This should never happen, and likely indicates a bug in the lexer."
            )

        self._tokens: Sequence[Token] = tokens
        self._options: Options = options
        self._pos: int = 0

    # Token access helpers

    @property
    def current(self) -> Token:
        return self._tokens[self._pos]

    def check(self, *kinds: TokenKind) -> bool:
        return self.current.kind in kinds

    def advance(self) -> Token:
        token = self.current
        if token.kind != TokenKind.EOF:
            self._pos += 1
        return token

    def accept(self, kind: TokenKind) -> Optional[Token]:
        """Consume and return the current token if it is of the given kind."""
        if self.current.kind == kind:
            return self.advance()
        return None

    def expect(self, *kinds: TokenKind) -> Token:
        """Consume the current token, which must be of one of the given kinds."""
        if self.current.kind not in kinds:
            self.fail(*(k.description for k in kinds))
        return self.advance()

    def fail(self, *expected: str) -> NoReturn:
        token = self.current
        if token.kind == TokenKind.EOF:
            raise RacrUnexpectedEndError(expected, token.position)
        raise RacrUnexpectedTokenError(token, expected)

    def ident(self) -> str:
        return self.expect(TokenKind.IDENT).value

    def separated(
        self, element: Callable[[], T], close: TokenKind, separator: TokenKind = TokenKind.COMMA
    ) -> List[T]:
        """
        Parse separated elements up to and including the closing token.
        A trailing separator before the closing token is allowed.
        """
        elements: List[T] = []
        while not self.accept(close):
            elements.append(element())
            if not self.accept(separator):
                self.expect(close)
                break
        return elements

    # Primitive rules

    def access(self) -> ast.Access:
        return _ACCESS[self.expect(*_ACCESS).kind]

    def path(self) -> Path:
        segments = [self.expect(*_SEGMENT_KINDS).value]
        while self.accept(TokenKind.PATH_SEP):
            segments.append(self.expect(*_SEGMENT_KINDS).value)
        return Path(segments)

    def integer(self) -> int:
        token = self.expect(TokenKind.INTEGER)
        text = token.value.lower()

        radix, digits = 10, _DECIMAL_DIGITS
        for prefix, (prefix_radix, prefix_digits) in _RADIXES.items():
            if text.startswith(prefix):
                radix, digits = prefix_radix, prefix_digits
                text = text[len(prefix) :]
                break

        # Underscores may separate digits, but a literal needs at least one digit
        if not text or text[0] == "_" or any(c not in digits for c in text.replace("_", "")):
            raise RacrNumericLiteralError(token.value, token.position)

        return int(text.replace("_", ""), radix)

    def bit_range(self) -> range:
        position = self.current.position
        start = self.integer()
        if not self.accept(TokenKind.RANGE):
            return range(start, start + 1)

        end = self.integer()
        if end <= start:
            raise RacrBitRangeError(start, end, position)
        return range(start, end)

    def documentation(self) -> Optional[str]:
        """Parse the documentation attributes in front of a definition, if any."""
        token = self.accept(TokenKind.DOC)
        if token is None:
            return None

        docs = [token.value]
        while self.check(TokenKind.DOC):
            if not self._options.allow_stacked_documentation:
                self.fail("a single documentation attribute")
            docs.append(self.advance().value)

        return "\n".join(docs)

    # Use trees

    def use(self) -> ast.Use:
        self.expect(TokenKind.USE)
        tree = self.use_tree()
        self.expect(TokenKind.SEMICOLON)
        return ast.Use(tree)

    def use_tree(self) -> ast.UseTree:
        ident = self.expect(*_SEGMENT_KINDS).value

        if self.accept(TokenKind.PATH_SEP):
            return ast.UsePath(ident, self.use_tree())
        if self.accept(TokenKind.AS):
            return ast.UseRename(ident, self.ident())
        if self.check(TokenKind.SEMICOLON):
            return ast.UseIdent(ident)

        self.fail(
            TokenKind.PATH_SEP.description,
            TokenKind.AS.description,
            TokenKind.SEMICOLON.description,
        )

    # Modules and items

    def module(self, documentation: Optional[str] = None) -> ast.Module:
        if documentation is None:
            documentation = self.documentation()

        self.expect(TokenKind.MOD)
        ident = self.ident()

        if self.accept(TokenKind.SEMICOLON):
            return ast.Module(ident, None, documentation)

        self.expect(TokenKind.LBRACE)
        items: List[ast.Item] = []
        while not self.accept(TokenKind.RBRACE):
            items.append(self.item())

        return ast.Module(ident, tuple(items), documentation)

    def item(self) -> ast.Item:
        documentation = self.documentation()

        if self.check(*_ACCESS):
            return self.register_definition(documentation)
        if self.check(TokenKind.MOD):
            return self.module(documentation)
        if self.check(TokenKind.PERIPHERAL):
            return self.peripheral_definition(documentation)
        if self.check(TokenKind.DEVICE):
            return self.device_definition(documentation)
        if self.check(TokenKind.USE) and documentation is None:
            return self.use()

        # Use statements take no documentation
        item_kinds = _ITEM_KINDS if documentation is None else _ITEM_KINDS[1:]
        self.fail(*(k.description for k in (*_ACCESS, *item_kinds)))

    def content(self) -> ast.Content:
        items: List[ast.Item] = []
        while not self.check(TokenKind.EOF):
            items.append(self.item())
        return tuple(items)

    # Registers

    def register_definition(
        self, documentation: Optional[str] = None
    ) -> ast.RegisterDefinition:
        if documentation is None:
            documentation = self.documentation()

        access = self.access()
        self.expect(TokenKind.REGISTER)
        self.expect(TokenKind.LBRACKET)
        size_token = self.current
        size = self.integer()
        if size == 0:
            raise RacrUnexpectedTokenError(size_token, ["a positive register size"])
        self.expect(TokenKind.RBRACKET)
        ident = self.ident()

        reset_value = self.integer() if self.accept(TokenKind.EQUALS) else None

        self.expect(TokenKind.LBRACE)
        fields = self.separated(lambda: self.field_instance(size), TokenKind.RBRACE)

        return ast.RegisterDefinition(
            access=access,
            ident=ident,
            size=size,
            fields=tuple(fields),
            reset_value=reset_value,
            documentation=documentation,
        )

    def field_instance(self, register_size: int) -> ast.FieldInstance:
        documentation = self.documentation()
        access = self.access() if self.check(*_ACCESS) else None

        kind = self.expect(TokenKind.FIELD, TokenKind.ENUM, TokenKind.RESERVED).kind
        self.expect(TokenKind.LBRACKET)
        range_position = self.current.position
        bit_range = self.bit_range()
        self.expect(TokenKind.RBRACKET)

        if self._options.check_field_bounds and bit_range.stop > register_size:
            raise RacrBitRangeError(
                bit_range.start,
                bit_range.stop,
                range_position,
                f"register is {register_size} bits wide",
            )

        ty: ast.FieldType
        if kind == TokenKind.FIELD:
            ty = ast.NamedField(self.ident())
        elif kind == TokenKind.ENUM:
            ident = self.ident()
            self.expect(TokenKind.LBRACE)
            ty = ast.EnumField(ident, tuple(self.separated(self.field_variant, TokenKind.RBRACE)))
        elif kind == TokenKind.RESERVED:
            self.expect(TokenKind.EQUALS)
            ty = ast.ReservedField(self.integer())
        else:
            raise RuntimeError(f"Unhandled field kind {kind}. This should never happen.")

        return ast.FieldInstance(
            ty=ty, bit_range=bit_range, documentation=documentation, access=access
        )

    def field_variant(self) -> ast.FieldVariant:
        documentation = self.documentation()
        ident = self.ident()
        self.expect(TokenKind.EQUALS)
        return ast.FieldVariant(ident, self.integer(), documentation)

    # Peripherals

    def peripheral_definition(
        self, documentation: Optional[str] = None
    ) -> ast.PeripheralDefinition:
        if documentation is None:
            documentation = self.documentation()

        self.expect(TokenKind.PERIPHERAL)
        ident = self.ident()
        self.expect(TokenKind.LBRACE)
        slots = self.separated(self.register_slot, TokenKind.RBRACE)

        return ast.PeripheralDefinition(ident, tuple(slots), documentation)

    def register_slot(self) -> ast.RegisterSlot:
        if not self.check(TokenKind.LPAREN):
            instance = ast.RegisterInstance(*self._typed_ident(self.register_type))
            self.expect(TokenKind.AT)
            return ast.SingleSlot(instance, self.integer())

        self.advance()
        alternatives = [ast.RegisterInstance(*self._typed_ident(self._single_register))]
        while self.accept(TokenKind.PIPE):
            alternatives.append(
                ast.RegisterInstance(*self._typed_ident(self._single_register))
            )

        if len(alternatives) < 2 and not self._options.allow_single_alternative_union:
            self.fail(TokenKind.PIPE.description)

        self.expect(TokenKind.RPAREN)
        self.expect(TokenKind.AT)
        return ast.UnionSlot(tuple(alternatives), self.integer())

    def register_type(self) -> ast.RegisterType:
        if not self.accept(TokenKind.LBRACKET):
            return self._single_register()

        path = self.path()
        self.expect(TokenKind.SEMICOLON)
        size = self.integer()
        self.expect(TokenKind.RBRACKET)
        return ast.RegisterArray(path, size)

    def _single_register(self) -> ast.SingleRegister:
        return ast.SingleRegister(self.path())

    def _typed_ident(self, ty: Callable[[], T]) -> Tuple[str, T]:
        """Parse ``ident : ty``."""
        ident = self.ident()
        self.expect(TokenKind.COLON)
        return ident, ty()

    # Devices

    def device_definition(
        self, documentation: Optional[str] = None
    ) -> ast.DeviceDefinition:
        if documentation is None:
            documentation = self.documentation()

        self.expect(TokenKind.DEVICE)
        ident = self.ident()
        self.expect(TokenKind.LBRACE)
        peripherals = self.separated(self.peripheral_instance, TokenKind.RBRACE)

        return ast.DeviceDefinition(ident, tuple(peripherals), documentation)

    def peripheral_instance(self) -> ast.PeripheralInstance:
        ident, path = self._typed_ident(self.path)
        self.expect(TokenKind.AT)
        return ast.PeripheralInstance(ident, path, self.integer())


def parse_access(text: str, options: Options = Options()) -> ast.Access:
    """
    Parse an access qualifier (``ro``, ``wo``, ``rw`` or ``raw``).

    :raises RacrParseError: If the text is not a single access qualifier.
    """
    return Parser(options).access(text)


def parse_path(text: str, options: Options = Options()) -> Path:
    """Parse a ``::`` separated path."""
    return Parser(options).path(text)


def parse_module(text: str, options: Options = Options()) -> ast.Module:
    """Parse a module declaration or an inline module."""
    return Parser(options).module(text)


def parse_use(text: str, options: Options = Options()) -> ast.Use:
    """Parse a use statement, including the terminating semicolon."""
    return Parser(options).use(text)


def parse_register_definition(
    text: str, options: Options = Options()
) -> ast.RegisterDefinition:
    """Parse a register definition."""
    return Parser(options).register_definition(text)


def parse_peripheral_definition(
    text: str, options: Options = Options()
) -> ast.PeripheralDefinition:
    """Parse a peripheral definition."""
    return Parser(options).peripheral_definition(text)


def parse_device_definition(
    text: str, options: Options = Options()
) -> ast.DeviceDefinition:
    """Parse a device definition."""
    return Parser(options).device_definition(text)


def parse_item(text: str, options: Options = Options()) -> ast.Item:
    """Parse a single item: a module, use statement or register, peripheral or device definition."""
    return Parser(options).item(text)


def parse_content(text: str, options: Options = Options()) -> ast.Content:
    """
    Parse a complete racr source unit.

    :param text: Source text.
    :param options: Parsing options.

    :raises RacrParseError: If the text is not a valid racr source unit.

    :return: The items of the source unit, in source order.
    """
    return Parser(options).content(text)

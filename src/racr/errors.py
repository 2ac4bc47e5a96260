# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional, Tuple

if TYPE_CHECKING:
    from .lexer import Position, Token


class RacrError(Exception):
    """Base class for errors raised by the library."""

    ...


class RacrParseError(RacrError):
    """Raised when racr source text is not syntactically valid."""

    def __init__(self, message: str, position: Optional[Position] = None) -> None:
        self.position: Optional[Position] = position
        if position is not None:
            message = f"{message} at {position}"
        super().__init__(message)


class RacrLexError(RacrParseError):
    """Raised when the source contains a character that does not start any token."""

    def __init__(self, position: Position, character: str) -> None:
        self.character: str = character
        super().__init__(f"Unrecognized character {character!r}", position)


class RacrUnexpectedTokenError(RacrParseError):
    """Raised when a token other than one of the expected ones was found."""

    def __init__(self, found: Token, expected: Iterable[str]) -> None:
        self.found: Token = found
        self.expected: Tuple[str, ...] = tuple(expected)
        super().__init__(
            f"Unexpected {found.describe()}, expected {_format_expected(self.expected)}",
            found.position,
        )


class RacrUnexpectedEndError(RacrParseError):
    """Raised when the input ends in the middle of a construct."""

    def __init__(
        self, expected: Iterable[str], position: Optional[Position] = None
    ) -> None:
        self.expected: Tuple[str, ...] = tuple(expected)
        super().__init__(
            f"Unexpected end of input, expected {_format_expected(self.expected)}",
            position,
        )


class RacrNumericLiteralError(RacrParseError, ValueError):
    """Raised when an integer literal has no digits or digits invalid for its base."""

    def __init__(self, text: str, position: Optional[Position] = None) -> None:
        self.text: str = text
        super().__init__(f"Invalid numeric literal {text!r}", position)


class RacrBitRangeError(RacrParseError, ValueError):
    """Raised when a bit range is empty, reversed or exceeds the register size."""

    def __init__(
        self,
        start: int,
        end: int,
        position: Optional[Position] = None,
        explanation: str = "end must be greater than start",
    ) -> None:
        self.start: int = start
        self.end: int = end
        super().__init__(f"Invalid bit range {start}..{end} ({explanation})", position)


def _format_expected(expected: Tuple[str, ...]) -> str:
    if not expected:
        return "nothing"
    if len(expected) == 1:
        return expected[0]
    return ", ".join(expected[:-1]) + f" or {expected[-1]}"

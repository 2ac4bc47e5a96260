# Copyright (c) 2022 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

from .ast import (
    Access,
    Content,
    DeviceDefinition,
    EnumField,
    FieldInstance,
    FieldType,
    FieldVariant,
    Item,
    Module,
    NamedField,
    PeripheralDefinition,
    PeripheralInstance,
    RegisterArray,
    RegisterDefinition,
    RegisterInstance,
    RegisterSlot,
    RegisterType,
    ReservedField,
    SingleRegister,
    SingleSlot,
    UnionSlot,
    Use,
    UseIdent,
    UsePath,
    UseRename,
    UseTree,
    render,
)
from .errors import (
    RacrError,
    RacrParseError,
    RacrLexError,
    RacrUnexpectedTokenError,
    RacrUnexpectedEndError,
    RacrNumericLiteralError,
    RacrBitRangeError,
)
from .lexer import Position, Token, TokenKind, tokenize
from .parsing import (
    Options,
    Parser,
    parse_access,
    parse_path,
    parse_module,
    parse_use,
    parse_register_definition,
    parse_peripheral_definition,
    parse_device_definition,
    parse_item,
    parse_content,
)
from .path import Path

import importlib.metadata
import logging

__version__ = importlib.metadata.version("racr")


def _init_logger() -> logging.Logger:
    formatter = logging.Formatter("{message}", style="{")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    logger = logging.getLogger("racr")
    logger.setLevel(logging.ERROR)
    logger.addHandler(handler)

    return logger


# logging.Logger instance used for log output from racr
log = _init_logger()

__all__ = [
    # from ast
    "Access",
    "Content",
    "DeviceDefinition",
    "EnumField",
    "FieldInstance",
    "FieldType",
    "FieldVariant",
    "Item",
    "Module",
    "NamedField",
    "PeripheralDefinition",
    "PeripheralInstance",
    "RegisterArray",
    "RegisterDefinition",
    "RegisterInstance",
    "RegisterSlot",
    "RegisterType",
    "ReservedField",
    "SingleRegister",
    "SingleSlot",
    "UnionSlot",
    "Use",
    "UseIdent",
    "UsePath",
    "UseRename",
    "UseTree",
    "render",
    # from errors
    "RacrError",
    "RacrParseError",
    "RacrLexError",
    "RacrUnexpectedTokenError",
    "RacrUnexpectedEndError",
    "RacrNumericLiteralError",
    "RacrBitRangeError",
    # from lexer
    "Position",
    "Token",
    "TokenKind",
    "tokenize",
    # from parsing
    "Options",
    "Parser",
    "parse_access",
    "parse_path",
    "parse_module",
    "parse_use",
    "parse_register_definition",
    "parse_peripheral_definition",
    "parse_device_definition",
    "parse_item",
    "parse_content",
    # from path
    "Path",
    # other
    "log",
    "__version__",
]

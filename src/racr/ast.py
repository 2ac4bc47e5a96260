# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Read-only Python representation of a racr source unit.
Each syntactic construct of the language is represented by a frozen dataclass in this module.
Constructs with several alternative forms (field types, register types, register slots and
use trees) are represented by one class per form, grouped by a Union alias.

Calling str() on any node renders it back to racr source that parses to an equal node.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple, Union

from .lexer import escape
from .path import Path

# Indentation used when rendering nested constructs
INDENT = "    "


@enum.unique
class Access(enum.Enum):
    """Access rights for a given register or field."""

    # Read access is permitted. Writes have no effect.
    READ_ONLY = "ro"
    # Write access is permitted. Reads have an undefined result.
    WRITE_ONLY = "wo"
    # Read and write accesses are permitted.
    READ_WRITE = "rw"
    # Read access returns the value last written.
    READ_AS_WRITE = "raw"

    @property
    def is_readable(self) -> bool:
        return self != Access.WRITE_ONLY

    @property
    def is_writable(self) -> bool:
        return self != Access.READ_ONLY

    def __str__(self) -> str:
        return self.value


def _freeze(node: object, name: str) -> None:
    """Store the sequence attribute of a frozen dataclass as a tuple."""
    object.__setattr__(node, name, tuple(getattr(node, name)))


def _doc_lines(documentation: Optional[str]) -> str:
    if documentation is None:
        return ""
    return f'#[doc = "{escape(documentation)}"]\n'


def _indented(lines: Iterable[str]) -> str:
    return "".join(
        "\n".join(INDENT + line if line else line for line in text.split("\n")) + "\n"
        for text in lines
    )


def _bit_range(bit_range: range) -> str:
    if len(bit_range) == 1:
        return str(bit_range.start)
    return f"{bit_range.start}..{bit_range.stop}"


@dataclass(frozen=True)
class UseIdent:
    """Import of a single name."""

    ident: str

    def __str__(self) -> str:
        return self.ident


@dataclass(frozen=True)
class UsePath:
    """A path segment followed by the rest of the import tree."""

    path_segment: str
    sub_tree: UseTree

    def __str__(self) -> str:
        return f"{self.path_segment}::{self.sub_tree}"


@dataclass(frozen=True)
class UseRename:
    """Import of ident, bound locally under the name rename."""

    ident: str
    rename: str

    def __str__(self) -> str:
        return f"{self.ident} as {self.rename}"


UseTree = Union[UseIdent, UsePath, UseRename]


@dataclass(frozen=True)
class Use:
    """A complete import statement."""

    tree: UseTree

    def __str__(self) -> str:
        return f"use {self.tree};"


@dataclass(frozen=True)
class Module:
    """
    A named module. Forward declared modules (``mod foo;``) have no content, as opposed to
    inline modules with an empty body, whose content is an empty tuple.
    """

    ident: str
    content: Optional[Tuple[Item, ...]] = None
    documentation: Optional[str] = None

    def __post_init__(self) -> None:
        if self.content is not None:
            _freeze(self, "content")

    def __str__(self) -> str:
        doc = _doc_lines(self.documentation)
        if self.content is None:
            return f"{doc}mod {self.ident};"
        return f"{doc}mod {self.ident} {{\n{_indented(str(i) for i in self.content)}}}"


@dataclass(frozen=True)
class FieldVariant:
    """One named value of an enumerated field."""

    ident: str
    value: int
    documentation: Optional[str] = None

    def __str__(self) -> str:
        return f"{_doc_lines(self.documentation)}{self.ident} = {self.value}"


@dataclass(frozen=True)
class NamedField:
    """A named field without enumerated values."""

    ident: str


@dataclass(frozen=True)
class EnumField:
    """A named field whose values are enumerated."""

    ident: str
    variants: Tuple[FieldVariant, ...] = ()

    def __post_init__(self) -> None:
        _freeze(self, "variants")


@dataclass(frozen=True)
class ReservedField:
    """Unnamed bits that must hold a fixed value."""

    value: int


FieldType = Union[NamedField, EnumField, ReservedField]


@dataclass(frozen=True)
class FieldInstance:
    """Placement of a field in a register."""

    ty: FieldType
    # Half-open range of the bits occupied by the field
    bit_range: range
    documentation: Optional[str] = None
    # Overrides the register access when set
    access: Optional[Access] = None

    @property
    def width(self) -> int:
        return len(self.bit_range)

    def effective_access(self, register_access: Access) -> Access:
        """:return: The access of the field inside a register with the given access."""
        return self.access if self.access is not None else register_access

    def __str__(self) -> str:
        access = f"{self.access} " if self.access is not None else ""
        bits = _bit_range(self.bit_range)
        ty = self.ty

        if isinstance(ty, NamedField):
            body = f"field[{bits}] {ty.ident}"
        elif isinstance(ty, EnumField):
            variants = _indented(f"{v}," for v in ty.variants)
            body = f"enum[{bits}] {ty.ident} {{\n{variants}}}"
        elif isinstance(ty, ReservedField):
            body = f"reserved[{bits}] = {ty.value:#x}"
        else:
            raise TypeError(f"Unknown field type {ty!r}")

        return f"{_doc_lines(self.documentation)}{access}{body}"


@dataclass(frozen=True)
class RegisterDefinition:
    """Definition of a register type and its fields."""

    access: Access
    ident: str
    # Register width in bits
    size: int
    fields: Tuple[FieldInstance, ...] = ()
    reset_value: Optional[int] = None
    documentation: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "fields")

    def __str__(self) -> str:
        reset = f" = {self.reset_value:#x}" if self.reset_value is not None else ""
        fields = _indented(f"{f}," for f in self.fields)
        return (
            f"{_doc_lines(self.documentation)}{self.access} register[{self.size}] "
            f"{self.ident}{reset} {{\n{fields}}}"
        )


@dataclass(frozen=True)
class SingleRegister:
    """Reference to one instance of a register definition."""

    path: Path

    def __str__(self) -> str:
        return str(self.path)


@dataclass(frozen=True)
class RegisterArray:
    """Reference to a contiguous array of instances of a register definition."""

    path: Path
    size: int

    def __str__(self) -> str:
        return f"[{self.path}; {self.size}]"


RegisterType = Union[SingleRegister, RegisterArray]


@dataclass(frozen=True)
class RegisterInstance:
    """A named, typed register inside a peripheral."""

    ident: str
    ty: RegisterType

    def __str__(self) -> str:
        return f"{self.ident}: {self.ty}"


@dataclass(frozen=True)
class SingleSlot:
    """One register instance at a byte offset."""

    instance: RegisterInstance
    offset: int

    def __str__(self) -> str:
        return f"{self.instance} @ {self.offset:#x}"


@dataclass(frozen=True)
class UnionSlot:
    """Mutually exclusive register instances sharing one byte offset."""

    alternatives: Tuple[RegisterInstance, ...]
    offset: int

    def __post_init__(self) -> None:
        _freeze(self, "alternatives")

    def __str__(self) -> str:
        alternatives = " | ".join(str(a) for a in self.alternatives)
        return f"({alternatives}) @ {self.offset:#x}"


RegisterSlot = Union[SingleSlot, UnionSlot]


@dataclass(frozen=True)
class PeripheralDefinition:
    """Definition of a peripheral as a map of register slots."""

    ident: str
    registers: Tuple[RegisterSlot, ...] = ()
    documentation: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "registers")

    def __str__(self) -> str:
        slots = _indented(f"{s}," for s in self.registers)
        return f"{_doc_lines(self.documentation)}peripheral {self.ident} {{\n{slots}}}"


@dataclass(frozen=True)
class PeripheralInstance:
    """A peripheral placed at an absolute address."""

    ident: str
    path: Path
    address: int

    def __str__(self) -> str:
        return f"{self.ident}: {self.path} @ {self.address:#x}"


@dataclass(frozen=True)
class DeviceDefinition:
    """Definition of a device as a map of peripheral instances."""

    ident: str
    peripherals: Tuple[PeripheralInstance, ...] = ()
    documentation: Optional[str] = None

    def __post_init__(self) -> None:
        _freeze(self, "peripherals")

    def __str__(self) -> str:
        peripherals = _indented(f"{p}," for p in self.peripherals)
        return f"{_doc_lines(self.documentation)}device {self.ident} {{\n{peripherals}}}"


Item = Union[Module, Use, RegisterDefinition, PeripheralDefinition, DeviceDefinition]

# Ordered items of a source unit
Content = Tuple[Item, ...]


def render(content: Sequence[Item]) -> str:
    """Render the items of a source unit as racr source, separated by blank lines."""
    return "\n\n".join(str(item) for item in content) + "\n" if content else ""

# Copyright (c) 2023 Nordic Semiconductor ASA
# SPDX-License-Identifier: Apache-2.0

"""
Paths used to refer to racr definitions by name, e.g. ``crate::uart::Config``.
"""

from __future__ import annotations

from itertools import chain
from typing import Any, List, Optional, Sequence, Tuple, Union, overload

from typing_extensions import Self

# Separator between path segments
SEPARATOR = "::"


class Path(Sequence[str]):
    """
    Immutable, non-empty sequence of identifier segments.
    A Path like "foo::bar::Baz" refers to the definition named "Baz" in the module "bar",
    which in turn is contained in the module "foo".

    No segment has special meaning; a leading "crate" is a segment like any other.
    """

    __slots__ = "_segments"

    def __init__(self, *segments: Union[str, Sequence[str]]) -> None:
        """
        :param segments: Path segments. Strings are split on "::".
        """
        split_segments: List[str] = []

        for segment in segments:
            if isinstance(segment, str):
                split_segments.extend(segment.split(SEPARATOR))
            elif isinstance(segment, Path):
                split_segments.extend(segment)
            else:
                sub_segments = (s.split(SEPARATOR) for s in segment)
                split_segments.extend(chain.from_iterable(sub_segments))

        if not split_segments:
            raise ValueError(f"Empty {self.__class__.__name__} not allowed")

        if any(not s for s in split_segments):
            raise ValueError(f"Invalid {self.__class__.__name__} segments: {segments}")

        self._segments: Tuple[str, ...] = tuple(split_segments)

    @property
    def segments(self) -> Tuple[str, ...]:
        """:return: Path components, in source order."""
        return self._segments

    @property
    def name(self) -> str:
        """:return: Name of the definition pointed to by the path."""
        return self._segments[-1]

    @property
    def parent(self) -> Optional[Path]:
        """:return: Path to the module containing this path, if it exists."""
        if len(self._segments) <= 1:
            return None
        return self.__class__(*self._segments[:-1])

    def join(self, *other: Union[str, Sequence[str]]) -> Self:
        """:return: The path resulting from appending other to the end of this path."""
        return self.__class__(*self._segments, *other)

    @overload
    def __getitem__(self, item: int, /) -> str:
        ...

    @overload
    def __getitem__(self, item: slice, /) -> Self:
        ...

    def __getitem__(self, item: Union[int, slice], /) -> Union[str, Self]:
        if isinstance(item, slice):
            return self.__class__(*self._segments[item])
        else:
            return self._segments[item]

    def __len__(self) -> int:
        return len(self._segments)

    def __hash__(self) -> int:
        return hash(self._segments)

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Path):
            return self._segments == other._segments
        if isinstance(other, (tuple, list)):
            return self._segments == tuple(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({str(self)!r})"

    def __str__(self) -> str:
        return SEPARATOR.join(self._segments)

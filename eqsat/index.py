"""Column-level indexes from the values of one sort to table offsets."""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from eqsat.table import Value


class ColumnIndex:
    """Maps the bits of values of a single sort to the offsets that hold them."""

    def __init__(self, sort: str) -> None:
        self.sort = sort
        self._ids: dict[int, list[int]] = {}

    def add(self, value: Value, offset: int) -> None:
        if value.tag != self.sort:
            raise ValueError(f"value of sort {value.tag} added to index of sort {self.sort}")
        self._ids.setdefault(value.bits, []).append(offset)

    def clear(self) -> None:
        self._ids.clear()

    def __len__(self) -> int:
        return len(self._ids)

    def get(self, value: Value) -> Optional[tuple[int, ...]]:
        """The offsets recorded for ``value``, or None if there are none."""
        offsets = self._ids.get(value.bits)
        return None if offsets is None else tuple(offsets)

    def __iter__(self) -> Iterator[tuple[Value, tuple[int, ...]]]:
        for bits, offsets in self._ids.items():
            yield Value(self.sort, bits), tuple(offsets)

    def to_canonicalize(self, dirty_ids: Iterable[int]) -> Iterator[int]:
        """Offsets of rows holding any of ``dirty_ids``, which need canonicalizing."""
        for dirty in dirty_ids:
            yield from self._ids.get(dirty, ())


class CompositeColumnIndex:
    """One :class:`ColumnIndex` per sort seen, for columns holding several sorts."""

    def __init__(self) -> None:
        self._indexes: list[ColumnIndex] = []

    def add(self, value: Value, offset: int) -> None:
        for index in self._indexes:
            if index.sort == value.tag:
                index.add(value, offset)
                return
        index = ColumnIndex(value.tag)
        index.add(value, offset)
        self._indexes.append(index)

    def clear(self) -> None:
        for index in self._indexes:
            index.clear()

    def __iter__(self) -> Iterator[ColumnIndex]:
        return iter(self._indexes)
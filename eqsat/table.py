"""An insertion-ordered table from value tuples to values, with stale-entry tracking.

Removals only mark entries as stale, keeping offsets stable until an explicit
rehash. Entries are appended in timestamp order, so timestamp ranges map to
offset ranges by binary search.
"""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional

U32_MAX = 2**32 - 1


@dataclass(frozen=True)
class Value:
    """A tagged machine value."""

    tag: str
    bits: int


@dataclass(frozen=True)
class TupleOutput:
    value: Value
    timestamp: int


@dataclass
class _Input:
    data: tuple
    stale_at: int = U32_MAX

    @property
    def live(self) -> bool:
        return self.stale_at == U32_MAX


class Table:
    """Maps input tuples to outputs, preserving insertion order."""

    def __init__(self) -> None:
        self._max_ts = 0
        self._n_stale = 0
        self._offsets: dict[tuple, int] = {}
        self._vals: list[tuple[_Input, TupleOutput]] = []

    def clear(self) -> None:
        self._max_ts = 0
        self._n_stale = 0
        self._offsets.clear()
        self._vals.clear()

    def too_stale(self) -> bool:
        """Whether stale entries make up more than half of the table."""
        return self._n_stale > len(self._vals) // 2

    def rehash(self) -> None:
        """Drop stale entries, invalidating all previously handed-out offsets."""
        self._vals = [(inp, out) for inp, out in self._vals if inp.live]
        self._offsets = {inp.data: i for i, (inp, _) in enumerate(self._vals)}
        self._n_stale = 0

    def get(self, inputs: Iterable[Value]) -> Optional[TupleOutput]:
        off = self._offsets.get(tuple(inputs))
        if off is None:
            return None
        return self._vals[off][1]

    def insert(self, inputs: Iterable[Value], out: Value, ts: int) -> Optional[Value]:
        """Map ``inputs`` to ``out`` at ``ts``; return the previous value, if any."""
        previous: list[Optional[Value]] = [None]

        def replace(prev: Optional[Value]) -> Value:
            previous[0] = prev
            return out

        self.insert_and_merge(inputs, ts, replace)
        return previous[0]

    def insert_and_merge(
        self,
        inputs: Iterable[Value],
        ts: int,
        on_merge: Callable[[Optional[Value]], Value],
    ) -> None:
        """Insert at ``ts``, letting ``on_merge`` pick the value given the previous one."""
        if ts < self._max_ts:
            raise ValueError(f"timestamp {ts} is older than the table's latest {self._max_ts}")
        self._max_ts = ts
        key = tuple(inputs)
        off = self._offsets.get(key)
        if off is not None:
            inp, prev = self._vals[off]
            merged = on_merge(prev.value)
            if merged == prev.value:
                return
            inp.stale_at = ts
            self._n_stale += 1
            self._offsets[key] = len(self._vals)
            self._vals.append((_Input(key), TupleOutput(merged, ts)))
            return
        value = on_merge(None)
        self._offsets[key] = len(self._vals)
        self._vals.append((_Input(key), TupleOutput(value, ts)))

    def num_offsets(self) -> int:
        """One more than the largest offset that may be valid, stale entries included."""
        return len(self._vals)

    def __len__(self) -> int:
        return len(self._vals) - self._n_stale

    def is_empty(self) -> bool:
        """Whether the table holds no entries at all, stale ones included."""
        return not self._vals

    def min_ts(self) -> Optional[int]:
        return self._vals[0][1].timestamp if self._vals else None

    @property
    def max_ts(self) -> int:
        """An upper bound on every timestamp in the table."""
        return self._max_ts

    def get_timestamp(self, i: int) -> Optional[int]:
        if 0 <= i < len(self._vals):
            return self._vals[i][1].timestamp
        return None

    def remove(self, inputs: Iterable[Value], ts: int) -> bool:
        """Mark the entry for ``inputs`` stale; return whether one was present."""
        off = self._offsets.pop(tuple(inputs), None)
        if off is None:
            return False
        self._vals[off][0].stale_at = ts
        self._n_stale += 1
        return True

    def get_index(self, i: int) -> Optional[tuple[tuple, TupleOutput]]:
        if not 0 <= i < len(self._vals):
            return None
        inp, out = self._vals[i]
        if not inp.live:
            return None
        return inp.data, out

    def __iter__(self) -> Iterator[tuple[tuple, TupleOutput]]:
        for _, data, out in self.iter_range(0, self.num_offsets()):
            yield data, out

    def iter_range(self, start: int, stop: int) -> Iterator[tuple[int, tuple, TupleOutput]]:
        """Yield ``(offset, inputs, output)`` for live entries in the offset range."""
        if not 0 <= start <= stop <= len(self._vals):
            raise IndexError(f"offset range {start}..{stop} out of bounds")
        for offset in range(start, stop):
            inp, out = self._vals[offset]
            if inp.live:
                yield offset, inp.data, out

    def iter_timestamp_range(
        self, start: int, stop: int
    ) -> Iterator[tuple[int, tuple, TupleOutput]]:
        offsets = self.transform_range(start, stop)
        return self.iter_range(offsets.start, offsets.stop)

    def approximate_range_size(self, start: int, stop: int) -> int:
        return len(self.transform_range(start, stop))

    def transform_range(self, start: int, stop: int) -> range:
        """Map a timestamp range to the corresponding range of offsets."""
        first = binary_search_table_by_key(self, start)
        if first is None:
            return range(0, 0)
        last = binary_search_table_by_key(self, stop)
        return range(first, self.num_offsets() if last is None else last)


def binary_search_table_by_key(data: Table, target: int) -> Optional[int]:
    """Smallest offset whose timestamp is at least ``target``, or None if there is none."""
    if data.is_empty() or data.max_ts < target:
        return None
    if data.min_ts() > target:
        return 0
    return bisect_left(data._vals, target, key=lambda entry: entry[1].timestamp)
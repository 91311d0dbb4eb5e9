"""core.py – Data types shared by the matching engine.

Defines MatchOptions (the immutable knobs the scorer reads), DataRegionIndex
(a read-only, numpy-backed set of static-data ranges) and Match (one scored
candidate).
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

import numpy as np

from wasm_remap.binary_loader import DataRegion, Function

_U64_MAX = 0xFFFFFFFFFFFFFFFF


@dataclass(frozen=True)
class MatchOptions:
    """Equivalence and gating rules applied when scoring a function pair."""

    # Treat two constants/offsets as equal when both point into static data.
    ignore_constant_data_section_pointers: bool = True
    # Reject candidates whose declared locals differ.
    require_exact_function_locals: bool = True


class DataRegionIndex:
    """Pooled data-segment ranges used to spot pointer-like constants.

    Regions are kept sorted by start together with the running maximum of
    their ends, so a lookup is one ``np.searchsorted`` over the starts no
    matter how many segments (possibly overlapping) the modules declare.
    The arrays are made read-only, so one index can be shared by every
    worker scoring functions in parallel.
    """

    def __init__(self, regions: Iterable[DataRegion]) -> None:
        ordered = sorted(regions, key=lambda r: r.start)
        self._starts = np.array([r.start for r in ordered], dtype=np.uint64)
        ends = np.array([min(r.end, _U64_MAX) for r in ordered], dtype=np.uint64)
        # _reach[i]: furthest end of any region starting at or before _starts[i]
        self._reach = np.maximum.accumulate(ends)
        self._starts.flags.writeable = False
        self._reach.flags.writeable = False

    def __len__(self) -> int:
        return int(self._starts.size)

    def contains(self, offset: int) -> bool:
        """Return True if *offset* lies inside any region (end inclusive)."""
        return self.contains_all(offset)

    def contains_all(self, *offsets: int) -> bool:
        """Return True if every offset lies inside some (not necessarily the same) region."""
        if not all(0 <= offset <= _U64_MAX for offset in offsets):
            return False
        values = np.array(offsets, dtype=np.uint64)
        idx = np.searchsorted(self._starts, values, side="right") - 1
        if np.any(idx < 0):
            return False
        return bool(np.all(self._reach[idx] >= values))


@dataclass(frozen=True)
class Match:
    """A reference function paired with its similarity weight in [0, 1]."""

    function: Function
    weight: float

    def rank_key(self) -> tuple[bool, float, int]:
        """Sort key: weight descending, NaN last, then lowest reference id."""
        is_nan = math.isnan(self.weight)
        return (is_nan, 0.0 if is_nan else -self.weight, self.function.id)

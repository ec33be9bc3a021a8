# slot_engine/domain/machine/entities/reel_grid.py
from typing import Callable, Iterator, List, NamedTuple, Sequence, Tuple

from .symbol import Symbol


class Position(NamedTuple):
    """A single cell of the grid, reel 0 is leftmost, row 0 is top."""
    reel: int
    row: int


class ReelGrid:
    """
    The visible window of one spin: `reel_count` reels of `row_count` symbols.

    Indexed reel-major, `grid[reel][row]`. A grid is never modified after
    creation; cells hold frozen `Symbol` instances.
    """
    __slots__ = ("_reels",)

    def __init__(self, reels: Sequence[Sequence[Symbol]]):
        self._reels: Tuple[Tuple[Symbol, ...], ...] = tuple(tuple(reel) for reel in reels)

        if not self._reels or not self._reels[0]:
            raise ValueError("A reel grid needs at least one reel and one row")
        row_count = len(self._reels[0])
        if any(len(reel) != row_count for reel in self._reels):
            raise ValueError(
                f"Ragged reel grid: row counts {[len(reel) for reel in self._reels]}"
            )

    @property
    def reel_count(self) -> int:
        return len(self._reels)

    @property
    def row_count(self) -> int:
        return len(self._reels[0])

    @property
    def shape(self) -> Tuple[int, int]:
        return self.reel_count, self.row_count

    def symbol_at(self, reel: int, row: int) -> Symbol:
        return self._reels[reel][row]

    def __getitem__(self, reel: int) -> Tuple[Symbol, ...]:
        return self._reels[reel]

    def __iter__(self) -> Iterator[Tuple[Symbol, ...]]:
        return iter(self._reels)

    def cells(self) -> Iterator[Tuple[Position, Symbol]]:
        """Iterate every cell, reel by reel, top to bottom."""
        for reel_index, reel in enumerate(self._reels):
            for row_index, symbol in enumerate(reel):
                yield Position(reel_index, row_index), symbol

    def positions_where(self, predicate: Callable[[Symbol], bool]) -> List[Position]:
        return [position for position, symbol in self.cells() if predicate(symbol)]

    def count_where(self, predicate: Callable[[Symbol], bool]) -> int:
        """Count cells matching `predicate`, e.g. `lambda s: s.is_train`."""
        return sum(1 for _, symbol in self.cells() if predicate(symbol))

    def to_ids(self) -> List[List[str]]:
        return [[symbol.id for symbol in reel] for reel in self._reels]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ReelGrid):
            return NotImplemented
        return self._reels == other._reels

    def __hash__(self) -> int:
        return hash(self._reels)

    def __repr__(self) -> str:
        return f"ReelGrid({self.to_ids()})"

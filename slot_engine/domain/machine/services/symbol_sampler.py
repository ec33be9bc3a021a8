# slot_engine/domain/machine/services/symbol_sampler.py
import logging
from bisect import bisect_left
from itertools import accumulate

from slot_engine.infrastructure.rng.strategies.rng_strategy import RNGStrategy
from ..entities.reel_grid import ReelGrid
from ..entities.symbol import Symbol, SymbolCatalog


class WeightedSymbolSampler:
    """
    Draws symbols with probability weight / total_weight.

    Every cell of the grid is an independent draw from the same catalog;
    reel position has no influence on the distribution.
    """
    def __init__(self, catalog: SymbolCatalog, rng: RNGStrategy):
        self.catalog = catalog
        self.rng = rng
        self._symbols = catalog.symbols
        self._cumulative = list(accumulate(symbol.weight for symbol in self._symbols))
        self._total_weight = self._cumulative[-1]
        self.logger = logging.getLogger("domain.machine.sampler")

    def draw_symbol(self) -> Symbol:
        """
        Draw one symbol.

        Resolves r in [0, total_weight) to the first symbol, in declaration
        order, whose cumulative weight is >= r.
        """
        r = self.rng.next() * self._total_weight
        index = bisect_left(self._cumulative, r)
        if index >= len(self._symbols):
            # r rounded up to total_weight
            return self._symbols[-1]
        return self._symbols[index]

    def draw_grid(self, reel_count: int, row_count: int) -> ReelGrid:
        """
        Draw a full grid of `reel_count` reels by `row_count` rows.

        Args:
            reel_count: Number of reels (columns)
            row_count: Number of visible rows per reel

        Returns:
            A fresh ReelGrid
        """
        draw = self.draw_symbol
        grid = ReelGrid([[draw() for _ in range(row_count)] for _ in range(reel_count)])
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Drew grid {grid.to_ids()}")
        return grid

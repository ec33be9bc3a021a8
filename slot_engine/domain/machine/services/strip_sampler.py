# slot_engine/domain/machine/services/strip_sampler.py
import logging
from typing import Sequence

from slot_engine.infrastructure.rng.strategies.rng_strategy import RNGStrategy
from ..entities.reel import Reel
from ..entities.reel_grid import ReelGrid


class ReelStripSampler:
    """
    Grid source for cabinets configured with physical reel strips.

    Each reel stops at a uniformly random position and shows `row_count`
    consecutive symbols, wrapping past the end of the strip.
    """
    def __init__(self, reels: Sequence[Reel], rng: RNGStrategy):
        self.reels = tuple(reels)
        self.rng = rng
        self.logger = logging.getLogger("domain.machine.strip_sampler")

    def draw_grid(self, reel_count: int, row_count: int) -> ReelGrid:
        if reel_count != len(self.reels):
            raise ValueError(f"Configured with {len(self.reels)} reel strips, asked for {reel_count}")

        window = []
        stops = []
        for reel in self.reels:
            stop = self.rng.get_random_int(0, len(reel) - 1)
            stops.append(stop)
            window.append(reel.get_symbols_at_position(stop, row_count))

        grid = ReelGrid(window)
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(f"Reel stops {stops} -> {grid.to_ids()}")
        return grid

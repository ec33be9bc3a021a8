# slot_engine/domain/machine/entities/slot_machine.py
import logging
from typing import Any, Dict

from slot_engine.infrastructure.rng.strategies.rng_strategy import RNGStrategy
from slot_engine.domain.session.entities.spin_result import SpinResult
from ..services.strip_sampler import ReelStripSampler
from ..services.symbol_sampler import WeightedSymbolSampler
from ..services.win_evaluation import WinEvaluator
from .machine_config import MachineConfig
from .reel_grid import ReelGrid


class SlotMachine:
    """
    Represents a slot machine with its configuration, grid source and win
    evaluation logic. Core entity in the machine domain.

    The catalog and payline table always come from the injected
    MachineConfig; there is no fallback to shared tables.
    """
    def __init__(self, config: MachineConfig, rng_strategy: RNGStrategy):
        """
        Initialize the slot machine.

        Args:
            config: Validated machine configuration
            rng_strategy: Random number generator owned by this machine
        """
        self.id = config.machine_id
        self.config = config
        self.logger = logging.getLogger(f"domain.machine.{self.id}")

        self.rng = rng_strategy
        self._sampler = self._create_sampler(rng_strategy)
        self._evaluator = WinEvaluator(config.catalog, config.paylines, config.win_tiers)

        self.logger.info(
            f"Slot machine {self.id} initialized: {config.reel_count}x{config.row_count}, "
            f"{config.payline_count} paylines, {len(config.catalog)} symbols, "
            f"{'reel strips' if config.reel_strips else 'weighted draws'}"
        )

    def _create_sampler(self, rng_strategy: RNGStrategy):
        if self.config.reel_strips:
            return ReelStripSampler(self.config.reel_strips, rng_strategy)
        return WeightedSymbolSampler(self.config.catalog, rng_strategy)

    @property
    def sampler(self):
        return self._sampler

    @property
    def evaluator(self) -> WinEvaluator:
        return self._evaluator

    @property
    def payline_count(self) -> int:
        return self.config.payline_count

    def draw_grid(self) -> ReelGrid:
        """Draw a fresh grid of the configured shape."""
        return self._sampler.draw_grid(self.config.reel_count, self.config.row_count)

    def evaluate_win(self, grid: ReelGrid, bet_per_line: int) -> SpinResult:
        return self._evaluator.evaluate_all(grid, bet_per_line)

    def play(self, bet_per_line: int) -> SpinResult:
        """Draw and evaluate one outcome. No counters are touched."""
        return self.evaluate_win(self.draw_grid(), bet_per_line)

    def get_info(self) -> Dict[str, Any]:
        """
        Get information about this machine.

        Returns:
            Dictionary with machine information
        """
        catalog = self.config.catalog
        return {
            'id': self.id,
            'reels': self.config.reel_count,
            'rows': self.config.row_count,
            'num_paylines': self.config.payline_count,
            'symbols': [symbol.id for symbol in catalog],
            'total_weight': catalog.total_weight,
            'wild_symbols': [symbol.id for symbol in catalog.wild_symbols],
            'scatter_symbol': catalog.scatter_symbol.id if catalog.scatter_symbol else None,
            'reel_strips': bool(self.config.reel_strips),
            'max_bet_per_line': self.config.max_bet_allowed,
        }

# slot_engine/infrastructure/rng/rng_provider.py
import logging
from typing import Optional, Dict, Any

from .strategies.rng_strategy import RNGStrategy
from .strategies.xorshift_rng import XorShiftRNG
from .strategies.mersenne_rng import MersenneTwisterRNG
from .strategies.numpy_rng import NumpyRNG

DEFAULT_STRATEGY = "xorshift"


class RNGProvider:
    """
    Factory for creating Random Number Generator strategies.

    Every call returns a fresh instance. Sessions never share a generator,
    so concurrent sessions cannot interleave one another's sequences.
    """
    def __init__(self):
        """Initialize the RNG provider."""
        self.logger = logging.getLogger("infrastructure.rng.provider")

    def get_rng(self, strategy_name: str = DEFAULT_STRATEGY, seed: Optional[int] = None) -> RNGStrategy:
        """
        Get a RNG strategy instance by name.

        Args:
            strategy_name: Name of the RNG strategy ("xorshift", "mersenne", "numpy")
            seed: Optional seed value for the RNG

        Returns:
            An instance of the requested RNG strategy

        Raises:
            ValueError: If the strategy name is unknown
        """
        strategy_name = strategy_name.lower()

        if strategy_name == "xorshift":
            self.logger.debug(f"Creating xorshift128+ RNG with seed: {seed}")
            return XorShiftRNG(seed)
        elif strategy_name == "mersenne":
            self.logger.debug(f"Creating MersenneTwister RNG with seed: {seed}")
            return MersenneTwisterRNG(seed)
        elif strategy_name == "numpy":
            self.logger.debug(f"Creating NumPy RNG with seed: {seed}")
            return NumpyRNG(seed)
        else:
            self.logger.error(f"Unknown RNG strategy: {strategy_name}")
            raise ValueError(f"Unknown RNG strategy: {strategy_name}")

    def create_from_config(self, config: Dict[str, Any]) -> RNGStrategy:
        """
        Create an RNG strategy from a configuration dictionary.

        Args:
            config: Dictionary with 'strategy' and optional 'seed' keys

        Returns:
            An RNG strategy instance

        Example config:
            {"strategy": "numpy", "seed": 12345}
        """
        strategy_name = config.get('strategy', DEFAULT_STRATEGY)
        seed = config.get('seed', None)

        return self.get_rng(strategy_name, seed)

    @staticmethod
    def get_available_strategies() -> Dict[str, str]:
        """
        Get a dictionary of available RNG strategies with descriptions.

        Returns:
            Dictionary mapping strategy names to descriptions
        """
        return {
            "xorshift": "xorshift128+ with splitmix64 seeding (default)",
            "mersenne": "Mersenne Twister (Python's default random generator)",
            "numpy": "NumPy RandomState with buffered draws (better performance for large batches)"
        }

# slot_engine/infrastructure/rng/strategies/mersenne_rng.py
import random
from typing import List, Optional

from .rng_strategy import default_seed


class MersenneTwisterRNG:
    """
    Random number generator using the Mersenne Twister algorithm (Python's default).
    """
    def __init__(self, seed_value: Optional[int] = None):
        """
        Initialize the RNG with an optional seed.

        Args:
            seed_value: Optional seed value for reproducible random numbers
        """
        # Create a dedicated random instance to avoid global state issues
        self._random = random.Random()
        self.seed(default_seed() if seed_value is None else seed_value)

    def next(self) -> float:
        """Get the next uniform float in [0, 1)."""
        return self._random.random()

    def get_random_int(self, min_val: int, max_val: int) -> int:
        """
        Get a random integer in the range [min_val, max_val].

        Args:
            min_val: Minimum value (inclusive)
            max_val: Maximum value (inclusive)

        Returns:
            Random integer in the specified range
        """
        return self._random.randint(min_val, max_val)

    def get_batch_floats(self, count: int) -> List[float]:
        """
        Get a batch of uniform floats.

        Args:
            count: Number of random values to generate

        Returns:
            List of random floats in [0, 1)
        """
        return [self._random.random() for _ in range(count)]

    def seed(self, seed_value: int) -> None:
        """
        Set the seed for the RNG.

        Args:
            seed_value: Seed value to use
        """
        self._random.seed(seed_value)

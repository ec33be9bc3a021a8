# slot_engine/infrastructure/rng/strategies/rng_strategy.py
import time
from typing import List, Protocol


def default_seed() -> int:
    """
    Seed used when none is supplied: the current time at construction,
    so restarted processes do not replay the same sequence.
    """
    return time.time_ns()


class RNGStrategy(Protocol):
    """Protocol defining the interface for random number generators."""

    def next(self) -> float:
        """
        Get the next uniform float in the range [0, 1).

        Returns:
            Random float, 0.0 inclusive, 1.0 exclusive
        """
        ...

    def get_random_int(self, min_val: int, max_val: int) -> int:
        """
        Get a random integer in the range [min_val, max_val].

        Args:
            min_val: Minimum value (inclusive)
            max_val: Maximum value (inclusive)

        Returns:
            Random integer in the specified range
        """
        ...

    def get_batch_floats(self, count: int) -> List[float]:
        """
        Get a batch of uniform floats in [0, 1).

        Args:
            count: Number of random values to generate

        Returns:
            List of random floats
        """
        ...

    def seed(self, seed_value: int) -> None:
        """
        Reset the RNG to a reproducible state.

        Args:
            seed_value: Seed value to use
        """
        ...

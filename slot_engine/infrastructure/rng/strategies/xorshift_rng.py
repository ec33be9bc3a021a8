# slot_engine/infrastructure/rng/strategies/xorshift_rng.py
from typing import List, Optional, Tuple

from .rng_strategy import default_seed

MASK64 = 0xFFFFFFFFFFFFFFFF
DOUBLE_UNIT = 1.0 / (1 << 53)


def _splitmix64(state: int) -> Tuple[int, int]:
    """Advance a splitmix64 state, returning (new_state, output)."""
    state = (state + 0x9E3779B97F4A7C15) & MASK64
    z = state
    z = ((z ^ (z >> 30)) * 0xBF58476D1CE4E5B9) & MASK64
    z = ((z ^ (z >> 27)) * 0x94D049BB133111EB) & MASK64
    return state, z ^ (z >> 31)


class XorShiftRNG:
    """
    xorshift128+ generator producing 53-bit uniform doubles.

    The 128-bit state is expanded from the seed with splitmix64, so small or
    sequential seeds still give well-mixed, independent streams.
    """
    def __init__(self, seed_value: Optional[int] = None):
        """
        Initialize the RNG with an optional seed.

        Args:
            seed_value: Optional seed value; current time is used when omitted
        """
        self._s0 = 0
        self._s1 = 0
        self.seed(default_seed() if seed_value is None else seed_value)

    def seed(self, seed_value: int) -> None:
        """
        Set the seed for the RNG.

        Args:
            seed_value: Seed value to use
        """
        state = seed_value & MASK64
        state, self._s0 = _splitmix64(state)
        state, self._s1 = _splitmix64(state)

        # An all-zero state is a fixed point of xorshift
        if self._s0 == 0 and self._s1 == 0:
            self._s1 = 1

    def _next_u64(self) -> int:
        s1 = self._s0
        s0 = self._s1
        result = (s0 + s1) & MASK64
        self._s0 = s0
        s1 ^= (s1 << 23) & MASK64
        self._s1 = s1 ^ s0 ^ (s1 >> 18) ^ (s0 >> 5)
        return result

    def next(self) -> float:
        """
        Get the next uniform float in [0, 1).

        Returns:
            Random float built from the top 53 bits of the next output
        """
        return (self._next_u64() >> 11) * DOUBLE_UNIT

    def get_random_int(self, min_val: int, max_val: int) -> int:
        """
        Get a random integer in the range [min_val, max_val].

        Args:
            min_val: Minimum value (inclusive)
            max_val: Maximum value (inclusive)

        Returns:
            Random integer in the specified range
        """
        if max_val < min_val:
            raise ValueError(f"Empty range: [{min_val}, {max_val}]")
        span = max_val - min_val + 1
        return min_val + min(int(self.next() * span), span - 1)

    def get_batch_floats(self, count: int) -> List[float]:
        """
        Get a batch of uniform floats.

        Args:
            count: Number of random values to generate

        Returns:
            List of random floats in [0, 1)
        """
        return [self.next() for _ in range(count)]

# slot_engine/domain/machine/entities/reel.py
from typing import List, Sequence, Tuple

from .symbol import Symbol


class Reel:
    """
    A physical reel strip: an ordered, circular sequence of symbols.
    The visible window starts at a stop position and wraps around the strip.
    """
    def __init__(self, symbols: Sequence[Symbol], reel_id: str = ""):
        """
        Initialize a reel with symbols.

        Args:
            symbols: Symbols in strip order
            reel_id: Optional identifier for the reel
        """
        if not symbols:
            raise ValueError(f"Reel {reel_id or '?'} has no symbols")
        self.id = reel_id
        self.symbols: Tuple[Symbol, ...] = tuple(symbols)

    def get_symbols_at_position(self, position: int, window_size: int = 3) -> List[Symbol]:
        """
        Get the symbols visible in the window at the given stop position.

        Args:
            position: Stop position on the strip
            window_size: Number of visible rows

        Returns:
            Visible symbols, top to bottom
        """
        length = len(self.symbols)
        return [self.symbols[(position + i) % length] for i in range(window_size)]

    def __len__(self) -> int:
        return len(self.symbols)

    def __repr__(self) -> str:
        return f"Reel(id={self.id}, length={len(self.symbols)})"

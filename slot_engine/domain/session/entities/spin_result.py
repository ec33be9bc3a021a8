# slot_engine/domain/session/entities/spin_result.py
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from slot_engine.domain.machine.entities.payline import Payline
from slot_engine.domain.machine.entities.reel_grid import Position, ReelGrid
from slot_engine.domain.machine.entities.symbol import Symbol


@dataclass(frozen=True)
class LineWin:
    """A paying payline: `win = bet_per_line * multiplier`."""
    payline: Payline
    symbol: Symbol
    count: int
    multiplier: int
    win: int
    positions: Tuple[Position, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "payline_id": self.payline.id,
            "payline_name": self.payline.name,
            "symbol": self.symbol.id,
            "count": self.count,
            "multiplier": self.multiplier,
            "win": self.win,
            "positions": [list(p) for p in self.positions],
        }


@dataclass(frozen=True)
class ScatterWin:
    """A scatter pay: `win = total_bet * multiplier`, independent of paylines."""
    symbol: Symbol
    count: int
    multiplier: int
    win: int
    positions: Tuple[Position, ...]
    triggers_bonus: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol.id,
            "count": self.count,
            "multiplier": self.multiplier,
            "win": self.win,
            "positions": [list(p) for p in self.positions],
            "triggers_bonus": self.triggers_bonus,
        }


@dataclass(frozen=True)
class SpinResult:
    """
    Complete outcome of one spin. Built in full before anything is paid or
    shown, then handed to the caller; the session keeps no copy.

    Amounts are integer minor units (cents).
    """
    grid: ReelGrid
    line_wins: Tuple[LineWin, ...]
    scatter_win: Optional[ScatterWin]
    total_win: int
    bet_per_line: int
    total_bet: int
    big_win: bool = False
    mega_win: bool = False
    jackpot: bool = False

    @property
    def is_win(self) -> bool:
        return self.total_win > 0

    @property
    def win_multiplier(self) -> float:
        return self.total_win / self.total_bet if self.total_bet else 0.0

    @property
    def triggers_bonus(self) -> bool:
        return self.scatter_win is not None and self.scatter_win.triggers_bonus

    @property
    def scatter_count(self) -> int:
        return self.grid.count_where(lambda s: s.is_scatter)

    @property
    def feature_symbol_count(self) -> int:
        """Number of feature-trigger (train) symbols visible anywhere on the grid."""
        return self.grid.count_where(lambda s: s.is_train)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典格式，方便存储或传输。"""
        return {
            "grid": self.grid.to_ids(),
            "line_wins": [win.to_dict() for win in self.line_wins],
            "scatter_win": self.scatter_win.to_dict() if self.scatter_win else None,
            "total_win": self.total_win,
            "bet_per_line": self.bet_per_line,
            "total_bet": self.total_bet,
            "win_multiplier": self.win_multiplier,
            "big_win": self.big_win,
            "mega_win": self.mega_win,
            "jackpot": self.jackpot,
            "triggers_bonus": self.triggers_bonus,
            "feature_symbol_count": self.feature_symbol_count,
        }

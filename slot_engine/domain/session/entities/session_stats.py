# slot_engine/domain/session/entities/session_stats.py
from dataclasses import dataclass, fields
from typing import Any, Dict

from .spin_result import SpinResult


@dataclass
class SessionStats:
    """
    Running counters for one session. All amounts are integer minor units.

    Counters only ever grow; `reset()` is the single way back to zero.
    Merging two stats objects is a plain sum, so shards of a simulation can
    be combined in any order.
    """
    total_spins: int = 0
    total_wagered: int = 0
    total_won: int = 0
    win_count: int = 0
    big_win_count: int = 0
    mega_win_count: int = 0
    jackpot_count: int = 0
    bonus_trigger_count: int = 0

    def update_spin(self, result: SpinResult) -> None:
        """更新单次旋转的统计数据。"""
        self.total_spins += 1
        self.total_wagered += result.total_bet
        self.total_won += result.total_win

        if result.total_win > 0:
            self.win_count += 1
        if result.big_win:
            self.big_win_count += 1
        if result.mega_win:
            self.mega_win_count += 1
        if result.jackpot:
            self.jackpot_count += 1
        if result.triggers_bonus:
            self.bonus_trigger_count += 1

    @property
    def rtp(self) -> float:
        """Return to player in percent, 0.0 before anything is wagered."""
        if self.total_wagered == 0:
            return 0.0
        return self.total_won / self.total_wagered * 100

    @property
    def hit_frequency(self) -> float:
        if self.total_spins == 0:
            return 0.0
        return self.win_count / self.total_spins * 100

    def reset(self) -> None:
        for f in fields(self):
            setattr(self, f.name, 0)

    def merge(self, other: "SessionStats") -> "SessionStats":
        """Return a new stats object holding the sum of both."""
        return SessionStats(**{
            f.name: getattr(self, f.name) + getattr(other, f.name) for f in fields(self)
        })

    def to_dict(self) -> Dict[str, Any]:
        stats = {f.name: getattr(self, f.name) for f in fields(self)}
        stats["rtp"] = self.rtp
        stats["hit_frequency"] = self.hit_frequency
        return stats

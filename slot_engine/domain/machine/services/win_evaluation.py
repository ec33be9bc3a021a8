# slot_engine/domain/machine/services/win_evaluation.py
import logging
from typing import Iterable, List, Optional

from slot_engine.domain.session.entities.spin_result import LineWin, ScatterWin, SpinResult
from ..entities.machine_config import WinTiers
from ..entities.payline import Payline, PaylineTable
from ..entities.reel_grid import ReelGrid
from ..entities.symbol import Symbol, SymbolCatalog

BONUS_TRIGGER_COUNT = 3


class WinEvaluator:
    """
    Service for evaluating slot machine win combinations.

    Lines are scored left to right from reel 0. Every payline is evaluated
    on its own, so one spin can pay on any number of lines at once. Scatters
    pay on their total count anywhere on the grid, against the total bet.
    """

    def __init__(self, catalog: SymbolCatalog, paylines: PaylineTable,
                 win_tiers: Optional[WinTiers] = None):
        self._catalog = catalog
        self._paylines = paylines
        self._scatter_symbol = catalog.scatter_symbol
        self._win_tiers = win_tiers or WinTiers()

        self.logger = logging.getLogger("domain.machine.win_evaluator")

    @property
    def paylines(self) -> PaylineTable:
        return self._paylines

    @staticmethod
    def _is_scatter(symbol: Symbol) -> bool:
        return symbol.is_scatter

    @staticmethod
    def _is_wild(symbol: Symbol) -> bool:
        return symbol.is_wild

    def _match_symbol(self, line_symbols: List[Symbol]) -> Optional[Symbol]:
        # First natural symbol decides the line
        for symbol in line_symbols:
            if not self._is_wild(symbol) and not self._is_scatter(symbol):
                return symbol
        # No natural symbol: an all-wild line pays as the leftmost wild
        for symbol in line_symbols:
            if self._is_wild(symbol):
                return symbol
        return None

    def evaluate_payline(self, grid: ReelGrid, payline: Payline, bet_per_line: int) -> Optional[LineWin]:
        """
        Evaluate a single payline.

        Args:
            grid: Spin grid
            payline: Line to read
            bet_per_line: Bet per line in minor units

        Returns:
            LineWin if the line pays, otherwise None
        """
        line_symbols = [grid.symbol_at(reel, row) for reel, row in enumerate(payline.positions)]

        match_symbol = self._match_symbol(line_symbols)
        if match_symbol is None:
            # Scatters never form line wins
            return None

        count = 0
        for symbol in line_symbols:
            if symbol.id == match_symbol.id or self._is_wild(symbol):
                count += 1
            else:
                break

        multiplier = match_symbol.pay_for(count)
        if multiplier is None:
            return None

        return LineWin(
            payline=payline,
            symbol=match_symbol,
            count=count,
            multiplier=multiplier,
            win=bet_per_line * multiplier,
            positions=payline.cells()[:count],
        )

    def evaluate_scatter(self, grid: ReelGrid, bet_per_line: int, payline_count: int) -> Optional[ScatterWin]:
        """
        Evaluate the scatter rule.

        Args:
            grid: Spin grid
            bet_per_line: Bet per line in minor units
            payline_count: Number of paylines making up the total bet

        Returns:
            ScatterWin if the scatter count has a pay entry, otherwise None
        """
        if self._scatter_symbol is None:
            return None

        positions = grid.positions_where(self._is_scatter)
        count = len(positions)
        multiplier = self._scatter_symbol.pay_for(count)
        if multiplier is None:
            return None

        total_bet = bet_per_line * payline_count
        return ScatterWin(
            symbol=self._scatter_symbol,
            count=count,
            multiplier=multiplier,
            win=total_bet * multiplier,
            positions=tuple(positions),
            triggers_bonus=count >= BONUS_TRIGGER_COUNT,
        )

    def evaluate_all(self, grid: ReelGrid, bet_per_line: int,
                     paylines: Optional[Iterable[Payline]] = None) -> SpinResult:
        """
        Evaluate every payline and the scatter rule and aggregate the result.

        Args:
            grid: Spin grid
            bet_per_line: Bet per line in minor units
            paylines: Lines to evaluate, defaults to the configured table

        Returns:
            SpinResult with itemized wins, total and win-tier flags
        """
        lines = list(self._paylines if paylines is None else paylines)

        line_wins = []
        for payline in lines:
            line_win = self.evaluate_payline(grid, payline, bet_per_line)
            if line_win is not None:
                line_wins.append(line_win)

        scatter_win = self.evaluate_scatter(grid, bet_per_line, len(lines))

        total_win = sum(win.win for win in line_wins)
        if scatter_win is not None:
            total_win += scatter_win.win

        total_bet = bet_per_line * len(lines)
        tiers = self._win_tiers

        # Integer comparison, no float rounding at the tier boundaries
        paid = total_win > 0 and total_bet > 0
        big_win = paid and total_win >= tiers.big * total_bet
        mega_win = paid and total_win >= tiers.mega * total_bet
        jackpot = paid and total_win >= tiers.jackpot * total_bet

        if total_win and self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(
                f"Win {total_win} on bet {total_bet}: {len(line_wins)} lines, "
                f"scatter={scatter_win.win if scatter_win else 0}"
            )

        return SpinResult(
            grid=grid,
            line_wins=tuple(line_wins),
            scatter_win=scatter_win,
            total_win=total_win,
            bet_per_line=bet_per_line,
            total_bet=total_bet,
            big_win=big_win,
            mega_win=mega_win,
            jackpot=jackpot,
        )

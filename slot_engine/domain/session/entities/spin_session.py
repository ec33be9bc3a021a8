# slot_engine/domain/session/entities/spin_session.py
import logging
import uuid
from typing import Any, Dict, Optional

from slot_engine.domain.machine.entities.slot_machine import SlotMachine
from .session_stats import SessionStats
from .spin_result import SpinResult


class InvalidBetError(ValueError):
    """Bet level rejected by the engine. Clamping is the caller's job."""
    pass


class SpinSession:
    """
    One player's run of spins on one machine.

    Owns the running counters for that run and nothing else: results are
    returned to the caller and not retained. A session is not thread-safe;
    concurrent play needs one session (and one RNG) per thread or process.
    """
    def __init__(self, machine: SlotMachine, session_id: Optional[str] = None):
        """
        Initialize a spin session.

        Args:
            machine: SlotMachine entity instance, owned by this session
            session_id: Optional identifier, generated when omitted
        """
        self.id = session_id or uuid.uuid4().hex[:12]
        self.machine = machine
        self.stats = SessionStats()

        self.logger = logging.getLogger(f"domain.session.{self.id}")
        self.logger.info(f"Session {self.id} opened on machine {machine.id}")

    def _validate_bet(self, bet_level: Any) -> int:
        if not isinstance(bet_level, int) or isinstance(bet_level, bool):
            raise InvalidBetError(f"Bet level must be an integer, got {bet_level!r}")
        if bet_level < 1:
            raise InvalidBetError(f"Bet level must be positive, got {bet_level}")

        max_bet = self.machine.config.max_bet_allowed
        if bet_level > max_bet:
            raise InvalidBetError(f"Bet level {bet_level} exceeds the maximum of {max_bet}")
        return bet_level

    def spin(self, bet_level: int) -> SpinResult:
        """
        Play one spin.

        The outcome is fully drawn and evaluated before the counters move.

        Args:
            bet_level: Bet per line in minor units

        Returns:
            The complete SpinResult

        Raises:
            InvalidBetError: If the bet is not a positive integer within limits
        """
        bet_per_line = self._validate_bet(bet_level)

        result = self.machine.play(bet_per_line)

        self.stats.update_spin(result)

        if result.big_win:
            self.logger.debug(
                f"Spin {self.stats.total_spins}: won {result.total_win} "
                f"({result.win_multiplier:.1f}x bet)"
            )
        return result

    def get_rtp(self) -> float:
        """Realized return to player in percent."""
        return self.stats.rtp

    def get_stats(self) -> Dict[str, Any]:
        """
        Get session statistics.

        Returns:
            Dictionary with total_spins, total_wagered, total_won, rtp and
            the hit / win-tier / bonus counters
        """
        return self.stats.to_dict()

    def reset_stats(self) -> None:
        """Zero every counter. The machine's RNG keeps its position."""
        self.logger.info(f"Session {self.id} stats reset after {self.stats.total_spins} spins")
        self.stats.reset()

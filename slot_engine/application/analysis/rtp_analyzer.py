# slot_engine/application/analysis/rtp_analyzer.py
import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from slot_engine.infrastructure.concurrency.task_executor import ExecutionMode, TaskExecutor
from slot_engine.infrastructure.rng.rng_provider import RNGProvider
from slot_engine.infrastructure.rng.strategies.rng_strategy import default_seed
from slot_engine.domain.machine.entities.machine_config import MachineConfig
from slot_engine.domain.machine.entities.slot_machine import SlotMachine
from slot_engine.domain.machine.entities.symbol import SymbolCatalog
from slot_engine.domain.session.entities.incremental_stats import IncrementalStats
from slot_engine.domain.session.entities.session_stats import SessionStats
from slot_engine.domain.session.entities.spin_result import SpinResult
from slot_engine.domain.session.entities.spin_session import SpinSession

PROGRESS_CHUNK = 10_000


@dataclass
class RTPAccumulator:
    """
    Aggregate counters of one simulation shard.

    Everything here merges by summation, so shards can be combined in any
    order without changing the counters.
    """
    shard_index: int = 0
    stats: SessionStats = field(default_factory=SessionStats)
    histogram: Counter = field(default_factory=Counter)
    win_multiples: IncrementalStats = field(default_factory=IncrementalStats)

    def record(self, result: SpinResult) -> None:
        """Record the distribution data of one spin (counters live in `stats`)."""
        self.win_multiples.update(result.win_multiplier)
        if result.total_win > 0:
            self.histogram[result.total_win // result.total_bet] += 1

    def merge(self, other: "RTPAccumulator") -> "RTPAccumulator":
        return RTPAccumulator(
            shard_index=min(self.shard_index, other.shard_index),
            stats=self.stats.merge(other.stats),
            histogram=self.histogram + other.histogram,
            win_multiples=self.win_multiples.merge(other.win_multiples),
        )


@dataclass
class RTPReport:
    """Result of an RTP simulation. Percentages are 0-100."""
    machine_id: str
    spins: int
    bet_per_line: int
    total_bet_per_spin: int
    total_wagered: int
    total_won: int
    rtp: float
    hit_frequency: float
    house_edge: float
    win_count: int
    big_win_count: int
    mega_win_count: int
    jackpot_count: int
    bonus_trigger_count: int
    histogram: Dict[int, int]
    win_multiple_std_dev: float
    max_win_multiple: float
    seed: int
    shards: int
    rng_strategy: str
    duration: float = 0.0
    target_band: Optional[Tuple[float, float]] = None
    band_assessment: Optional[str] = None

    @property
    def net_result(self) -> int:
        return self.total_won - self.total_wagered

    def to_dict(self) -> Dict[str, Any]:
        return {
            "machine_id": self.machine_id,
            "spins": self.spins,
            "bet_per_line": self.bet_per_line,
            "total_bet_per_spin": self.total_bet_per_spin,
            "total_wagered": self.total_wagered,
            "total_won": self.total_won,
            "net_result": self.net_result,
            "rtp": self.rtp,
            "hit_frequency": self.hit_frequency,
            "house_edge": self.house_edge,
            "win_count": self.win_count,
            "big_win_count": self.big_win_count,
            "mega_win_count": self.mega_win_count,
            "jackpot_count": self.jackpot_count,
            "bonus_trigger_count": self.bonus_trigger_count,
            "histogram": {str(bucket): count for bucket, count in self.histogram.items()},
            "win_multiple_std_dev": self.win_multiple_std_dev,
            "max_win_multiple": self.max_win_multiple,
            "seed": self.seed,
            "shards": self.shards,
            "rng_strategy": self.rng_strategy,
            "duration": self.duration,
            "target_band": list(self.target_band) if self.target_band else None,
            "band_assessment": self.band_assessment,
        }


def assess_rtp(rtp: float, target_band: Tuple[float, float]) -> str:
    """
    Place a realized RTP relative to a target band.

    Returns:
        "below", "within" or "above"
    """
    low, high = target_band
    if rtp < low:
        return "below"
    if rtp > high:
        return "above"
    return "within"


def estimate_line_probability(catalog: SymbolCatalog, symbol_id: str, count: int,
                              reel_count: int = 5, include_wilds: bool = True) -> float:
    """
    Rough chance that one payline shows exactly `count` of `symbol_id` from
    the left, with wilds substituting. Treats every cell as an independent
    weighted draw and ignores the leftmost-natural-symbol rule, so it is a
    tuning aid, not an exact figure.
    """
    symbol = catalog.get(symbol_id)
    wild_weight = 0
    if include_wilds and not symbol.is_wild:
        wild_weight = sum(s.weight for s in catalog.wild_symbols)
    p = (symbol.weight + wild_weight) / catalog.total_weight

    if count >= reel_count:
        return p ** reel_count
    return p ** count * (1 - p)


def run_shard(config: MachineConfig, rng_strategy: str, seed: int, num_spins: int,
              bet_per_line: int, shard_index: int = 0, show_progress: bool = False) -> RTPAccumulator:
    """
    Play `num_spins` on a private machine and session. Module level so that
    process pools can pickle it.
    """
    rng = RNGProvider().get_rng(rng_strategy, seed)
    session = SpinSession(SlotMachine(config, rng), session_id=f"rtp-shard-{shard_index}")
    accumulator = RTPAccumulator(shard_index=shard_index)

    pbar = tqdm(total=num_spins, desc=f"shard {shard_index}", unit="spin") if show_progress else None

    remaining = num_spins
    while remaining > 0:
        chunk = min(PROGRESS_CHUNK, remaining)
        for _ in range(chunk):
            accumulator.record(session.spin(bet_per_line))
        remaining -= chunk
        if pbar:
            pbar.update(chunk)
            pbar.set_postfix(rtp=f"{session.get_rtp():.2f}%")

    if pbar:
        pbar.close()

    accumulator.stats = session.stats
    return accumulator


class RTPAnalyzer:
    """
    Monte Carlo verification harness: plays many spins and reports the
    realized RTP, hit frequency and win distribution of a configuration.

    It verifies whatever table it is given; it does not know or enforce a
    target RTP.
    """
    def __init__(self, config: MachineConfig, rng_strategy: Optional[str] = None,
                 task_executor: Optional[TaskExecutor] = None):
        """
        Initialize the analyzer.

        Args:
            config: Validated machine configuration
            rng_strategy: RNG strategy name, defaults to the machine's
            task_executor: Executor for shards, sequential when omitted
        """
        self.config = config
        self.rng_strategy = rng_strategy or config.rng_strategy
        self.task_executor = task_executor or TaskExecutor(ExecutionMode.SEQUENTIAL)
        self.logger = logging.getLogger("application.analysis.rtp")

    @staticmethod
    def derive_shard_seeds(seed: int, shards: int) -> List[int]:
        """Independent 32-bit seeds for each shard, reproducible from `seed`."""
        children = np.random.SeedSequence(seed).spawn(shards)
        return [int(child.generate_state(1, dtype=np.uint32)[0]) for child in children]

    @staticmethod
    def split_spins(num_spins: int, shards: int) -> List[int]:
        base, extra = divmod(num_spins, shards)
        return [base + (1 if i < extra else 0) for i in range(shards)]

    def run(self, num_spins: int, bet_per_line: int = 1, seed: Optional[int] = None,
            shards: int = 1, show_progress: bool = False,
            target_band: Optional[Tuple[float, float]] = None) -> RTPReport:
        """
        Run the simulation.

        Args:
            num_spins: Total spins across all shards
            bet_per_line: Bet per line in minor units
            seed: Master seed; a time-based seed is drawn (and reported) if None
            shards: Number of independent sessions to split the run into
            show_progress: Show tqdm progress bars (sequential mode only)
            target_band: Optional (low, high) RTP band in percent to assess

        Returns:
            RTPReport for the merged shards
        """
        if num_spins < 1:
            raise ValueError(f"num_spins must be positive, got {num_spins}")
        if shards < 1:
            raise ValueError(f"shards must be positive, got {shards}")
        shards = min(shards, num_spins)

        if seed is None:
            seed = default_seed()
        if seed < 0:
            raise ValueError(f"seed must be non-negative, got {seed}")

        self.logger.info(
            f"Simulating {num_spins:,} spins on {self.config.machine_id} "
            f"(bet {bet_per_line}/line, {shards} shard(s), seed {seed})"
        )

        sequential = self.task_executor.mode == ExecutionMode.SEQUENTIAL
        tasks = [
            partial(
                run_shard, self.config, self.rng_strategy, shard_seed, shard_spins,
                bet_per_line, index, show_progress and sequential,
            )
            for index, (shard_seed, shard_spins) in enumerate(
                zip(self.derive_shard_seeds(seed, shards), self.split_spins(num_spins, shards))
            )
        ]

        start_time = time.time()
        results = self.task_executor.execute(tasks)
        duration = time.time() - start_time

        # Fixed merge order keeps the float moments bit-identical across modes
        merged = RTPAccumulator()
        for accumulator in sorted(results, key=lambda a: a.shard_index):
            merged = merged.merge(accumulator)

        report = self._build_report(merged, bet_per_line, seed, shards, duration, target_band)
        self.logger.info(
            f"Simulation finished in {duration:.2f}s: RTP {report.rtp:.2f}%, "
            f"hit frequency {report.hit_frequency:.2f}%"
        )
        return report

    def _build_report(self, merged: RTPAccumulator, bet_per_line: int, seed: int, shards: int,
                      duration: float, target_band: Optional[Tuple[float, float]]) -> RTPReport:
        stats = merged.stats
        rtp = stats.rtp
        return RTPReport(
            machine_id=self.config.machine_id,
            spins=stats.total_spins,
            bet_per_line=bet_per_line,
            total_bet_per_spin=bet_per_line * self.config.payline_count,
            total_wagered=stats.total_wagered,
            total_won=stats.total_won,
            rtp=rtp,
            hit_frequency=stats.hit_frequency,
            house_edge=100 - rtp,
            win_count=stats.win_count,
            big_win_count=stats.big_win_count,
            mega_win_count=stats.mega_win_count,
            jackpot_count=stats.jackpot_count,
            bonus_trigger_count=stats.bonus_trigger_count,
            histogram=dict(sorted(merged.histogram.items())),
            win_multiple_std_dev=merged.win_multiples.get_std_dev(),
            max_win_multiple=merged.win_multiples.max_value or 0.0,
            seed=seed,
            shards=shards,
            rng_strategy=self.rng_strategy,
            duration=duration,
            target_band=tuple(target_band) if target_band else None,
            band_assessment=assess_rtp(rtp, target_band) if target_band else None,
        )

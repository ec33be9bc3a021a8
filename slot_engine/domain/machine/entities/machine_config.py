# slot_engine/domain/machine/entities/machine_config.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from slot_engine.infrastructure.config.loaders.yaml_loader import MachineConfigError
from slot_engine.infrastructure.rng.rng_provider import DEFAULT_STRATEGY, RNGProvider
from .payline import Payline, PaylineTable
from .reel import Reel
from .symbol import Symbol, SymbolCatalog, _is_int

DEFAULT_REEL_COUNT = 5
DEFAULT_ROW_COUNT = 3

# Payouts are handed to external ledgers as signed 64-bit minor units
INT64_MAX = 2 ** 63 - 1


@dataclass(frozen=True)
class WinTiers:
    """Win-tier thresholds as multiples of the total bet."""
    big: int = 10
    mega: int = 50
    jackpot: int = 100


@dataclass(frozen=True)
class MachineConfig:
    """
    Fully validated machine definition. Built once at startup; any instance
    that exists is playable, so nothing downstream re-checks it per spin.
    """
    machine_id: str
    catalog: SymbolCatalog
    paylines: PaylineTable
    reel_count: int = DEFAULT_REEL_COUNT
    row_count: int = DEFAULT_ROW_COUNT
    reel_strips: Optional[Tuple[Reel, ...]] = None
    win_tiers: WinTiers = field(default_factory=WinTiers)
    max_bet_per_line: Optional[int] = None
    rng_strategy: str = "xorshift"
    rng_seed: Optional[int] = None

    @property
    def payline_count(self) -> int:
        return len(self.paylines)

    @property
    def max_win_per_bet_unit(self) -> int:
        """
        Upper bound on the total win of one spin at bet_per_line=1: every line
        paying the best line multiplier plus the best scatter pay.
        """
        line_max = max((s.max_pay for s in self.catalog if not s.is_scatter), default=0)
        scatter = self.catalog.scatter_symbol
        scatter_max = scatter.max_pay if scatter else 0
        return self.payline_count * (line_max + scatter_max)

    @property
    def max_bet_allowed(self) -> int:
        """Largest bet per line whose worst-case payout still fits in int64."""
        overflow_cap = INT64_MAX // max(self.max_win_per_bet_unit, self.payline_count, 1)
        if self.max_bet_per_line is None:
            return overflow_cap
        return min(self.max_bet_per_line, overflow_cap)

    @classmethod
    def from_dict(cls, config: Dict[str, Any], source: Optional[str] = None) -> "MachineConfig":
        """
        Build a MachineConfig from a parsed configuration dictionary.

        All problems are collected and raised together.

        Args:
            config: Parsed machine configuration
            source: Optional name of the file the config came from

        Returns:
            Validated MachineConfig

        Raises:
            MachineConfigError: If the configuration is not playable
        """
        errors: List[str] = []

        reel_count = config.get("reels", DEFAULT_REEL_COUNT)
        row_count = config.get("rows", DEFAULT_ROW_COUNT)
        for key, value in (("reels", reel_count), ("rows", row_count)):
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(f"'{key}' must be a positive integer, got {value!r}")
        if errors:
            raise MachineConfigError(errors, source)

        catalog = None
        symbols = []
        for index, entry in enumerate(config.get("symbols") or []):
            try:
                symbols.append(Symbol.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                errors.append(f"symbols[{index}]: malformed entry ({e!r})")
        try:
            catalog = SymbolCatalog(symbols)
        except MachineConfigError as e:
            errors.extend(e.errors)

        paylines = None
        lines = []
        for index, entry in enumerate(config.get("paylines") or []):
            try:
                lines.append(Payline.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                errors.append(f"paylines[{index}]: malformed entry ({e!r})")
        try:
            paylines = PaylineTable(lines, reel_count, row_count)
        except MachineConfigError as e:
            errors.extend(e.errors)

        reel_strips = None
        if config.get("reel_strips") is not None and catalog is not None:
            reel_strips = cls._build_reel_strips(config["reel_strips"], catalog, reel_count, row_count, errors)

        tiers_config = config.get("win_tiers") or {}
        if not isinstance(tiers_config, dict):
            errors.append(f"win_tiers must be a mapping, got {tiers_config!r}")
            tiers_config = {}
        bad_tiers = {k: v for k, v in tiers_config.items() if not _is_int(v) or v < 1}
        unknown_tiers = sorted(set(tiers_config) - {"big", "mega", "jackpot"})
        if unknown_tiers:
            errors.append(f"win_tiers: unknown tiers {unknown_tiers}")
        if bad_tiers:
            errors.append(f"win_tiers values must be integers >= 1, got {bad_tiers}")
            win_tiers = WinTiers()
        else:
            win_tiers = WinTiers(**{k: tiers_config[k] for k in ("big", "mega", "jackpot") if k in tiers_config})
            if not win_tiers.big <= win_tiers.mega <= win_tiers.jackpot:
                errors.append(
                    f"win_tiers must ascend big <= mega <= jackpot, got "
                    f"{win_tiers.big}/{win_tiers.mega}/{win_tiers.jackpot}"
                )

        max_bet = config.get("max_bet_per_line")
        if max_bet is not None and (not _is_int(max_bet) or max_bet < 1):
            errors.append(f"max_bet_per_line must be a positive integer, got {max_bet!r}")

        rng_config = config.get("rng") or {}
        strategies = RNGProvider.get_available_strategies()
        rng_strategy = rng_config.get("strategy", DEFAULT_STRATEGY)
        if not isinstance(rng_strategy, str) or rng_strategy.lower() not in strategies:
            errors.append(f"rng.strategy must be one of {sorted(strategies)}, got {rng_strategy!r}")
        rng_seed = rng_config.get("seed")
        if rng_seed is not None and (not _is_int(rng_seed) or rng_seed < 0):
            errors.append(f"rng.seed must be a non-negative integer, got {rng_seed!r}")

        if errors:
            raise MachineConfigError(errors, source)

        return cls(
            machine_id=config.get("machine_id", "default"),
            catalog=catalog,
            paylines=paylines,
            reel_count=reel_count,
            row_count=row_count,
            reel_strips=reel_strips,
            win_tiers=win_tiers,
            max_bet_per_line=max_bet,
            rng_strategy=rng_strategy.lower(),
            rng_seed=rng_seed,
        )

    @staticmethod
    def _build_reel_strips(strips_config: List[List[str]], catalog: SymbolCatalog,
                           reel_count: int, row_count: int, errors: List[str]) -> Optional[Tuple[Reel, ...]]:
        if len(strips_config) != reel_count:
            errors.append(f"reel_strips: expected {reel_count} strips, got {len(strips_config)}")
            return None

        strips = []
        for index, strip in enumerate(strips_config):
            unknown = sorted({symbol_id for symbol_id in strip if symbol_id not in catalog})
            if unknown:
                errors.append(f"reel_strips[{index}]: unknown symbols {unknown}")
                continue
            if len(strip) < row_count:
                errors.append(f"reel_strips[{index}]: needs at least {row_count} stops, got {len(strip)}")
                continue
            strips.append(Reel([catalog.get(symbol_id) for symbol_id in strip], f"reel{index + 1}"))

        if len(strips) != reel_count:
            return None
        return tuple(strips)

# slot_engine/domain/machine/entities/symbol.py
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from slot_engine.infrastructure.config.loaders.yaml_loader import MachineConfigError

PayTable = Union[Mapping[int, int], Sequence[Tuple[int, int]]]


@dataclass(frozen=True)
class Symbol:
    """
    A single reel symbol: draw weight, role flags and pay table.

    `pays` maps a consecutive-match count (or, for the scatter, a total count)
    to a multiplier. It is stored as sorted (count, multiplier) pairs so the
    symbol stays immutable and hashable.
    """
    id: str
    weight: int
    name: str = ""
    icon: str = ""
    is_wild: bool = False
    is_scatter: bool = False
    is_train: bool = False
    pays: PayTable = ()
    _pay_lookup: Dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        pairs = tuple(sorted(dict(self.pays).items()))
        object.__setattr__(self, "pays", pairs)
        object.__setattr__(self, "_pay_lookup", dict(pairs))

    def pay_for(self, count: int) -> Optional[int]:
        """Multiplier for `count` matches, or None when the table has no entry."""
        return self._pay_lookup.get(count)

    @property
    def max_pay(self) -> int:
        return max(self._pay_lookup.values(), default=0)

    @classmethod
    def from_dict(cls, entry: Dict[str, Any]) -> "Symbol":
        """
        Build a symbol from a configuration entry.

        Pay table keys may arrive as strings when the YAML author quoted them.
        """
        pays = {int(count): multiplier for count, multiplier in (entry.get("pays") or {}).items()}
        return cls(
            id=entry["id"],
            weight=entry["weight"],
            name=entry.get("name", entry["id"]),
            icon=entry.get("icon", ""),
            is_wild=bool(entry.get("is_wild", False)),
            is_scatter=bool(entry.get("is_scatter", False)),
            is_train=bool(entry.get("is_train", False)),
            pays=pays,
        )


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class SymbolCatalog:
    """
    Immutable, validated collection of symbols in declaration order.

    Declaration order is significant: the weighted sampler walks the catalog
    in this order when resolving a draw.
    """
    def __init__(self, symbols: Sequence[Symbol]):
        self.logger = logging.getLogger("domain.machine.catalog")
        self._symbols: Tuple[Symbol, ...] = tuple(symbols)

        errors = self._validate(self._symbols)
        if errors:
            raise MachineConfigError(errors, "symbol catalog")

        self._by_id = {symbol.id: symbol for symbol in self._symbols}
        self.total_weight = sum(symbol.weight for symbol in self._symbols)
        self.wild_symbols = tuple(s for s in self._symbols if s.is_wild)
        scatters = [s for s in self._symbols if s.is_scatter]
        self.scatter_symbol: Optional[Symbol] = scatters[0] if scatters else None

        self.logger.debug(
            f"Catalog loaded: {len(self._symbols)} symbols, total weight {self.total_weight}"
        )

    @staticmethod
    def _validate(symbols: Tuple[Symbol, ...]) -> List[str]:
        errors = []
        if not symbols:
            return ["catalog defines no symbols"]

        seen = set()
        scatter_ids = []
        for symbol in symbols:
            label = f"symbol '{symbol.id}'"
            if symbol.id in seen:
                errors.append(f"duplicate symbol id '{symbol.id}'")
            seen.add(symbol.id)

            if not _is_int(symbol.weight) or symbol.weight < 1:
                errors.append(f"{label}: weight must be an integer >= 1, got {symbol.weight!r}")
            if symbol.is_wild and symbol.is_scatter:
                errors.append(f"{label}: cannot be both wild and scatter")
            if (symbol.is_wild or symbol.is_scatter) and not symbol.pays:
                errors.append(f"{label}: wild and scatter symbols must define at least one pay")
            if symbol.is_scatter:
                scatter_ids.append(symbol.id)

            for count, multiplier in symbol.pays:
                if not _is_int(count) or count < 1:
                    errors.append(f"{label}: pay count must be a positive integer, got {count!r}")
                if not _is_int(multiplier) or multiplier < 1:
                    errors.append(
                        f"{label}: multiplier for {count} must be a positive integer, got {multiplier!r}"
                    )

        if len(scatter_ids) > 1:
            errors.append(f"at most one scatter symbol is supported, found {scatter_ids}")
        return errors

    def get(self, symbol_id: str) -> Symbol:
        try:
            return self._by_id[symbol_id]
        except KeyError:
            raise KeyError(f"Unknown symbol id: {symbol_id}") from None

    def probability(self, symbol_id: str) -> float:
        """Chance of drawing `symbol_id` on one independent draw."""
        return self.get(symbol_id).weight / self.total_weight

    @property
    def symbols(self) -> Tuple[Symbol, ...]:
        return self._symbols

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __contains__(self, symbol_id: object) -> bool:
        return symbol_id in self._by_id

    def __repr__(self) -> str:
        return f"SymbolCatalog(symbols={len(self._symbols)}, total_weight={self.total_weight})"

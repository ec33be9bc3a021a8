# slot_engine/domain/machine/entities/payline.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Sequence, Tuple

from slot_engine.infrastructure.config.loaders.yaml_loader import MachineConfigError
from .reel_grid import Position
from .symbol import _is_int


@dataclass(frozen=True)
class Payline:
    """
    One line across the reels: `positions[reel]` is the row read on that reel.
    """
    id: int
    positions: Tuple[int, ...]
    name: str = ""

    def __post_init__(self):
        object.__setattr__(self, "positions", tuple(self.positions))

    def cells(self) -> Tuple[Position, ...]:
        return tuple(Position(reel, row) for reel, row in enumerate(self.positions))

    @classmethod
    def from_dict(cls, entry: Dict[str, Any]) -> "Payline":
        return cls(
            id=entry["id"],
            positions=tuple(entry["positions"]),
            name=entry.get("name", ""),
        )


class PaylineTable:
    """
    Validated, immutable payline table for a fixed reel/row geometry.

    Every line must have one row per reel, inside [0, row_count). Ids must be
    unique. Repeated patterns are allowed (some released tables carry them)
    but are reported as warnings.
    """
    def __init__(self, paylines: Sequence[Payline], reel_count: int, row_count: int):
        self.logger = logging.getLogger("domain.machine.paylines")
        self._paylines: Tuple[Payline, ...] = tuple(paylines)
        self.reel_count = reel_count
        self.row_count = row_count

        errors = self._validate()
        if errors:
            raise MachineConfigError(errors, "payline table")

        seen_patterns: Dict[Tuple[int, ...], int] = {}
        for payline in self._paylines:
            if payline.positions in seen_patterns:
                self.logger.warning(
                    f"Payline {payline.id} repeats the pattern of payline "
                    f"{seen_patterns[payline.positions]}: {list(payline.positions)}"
                )
            else:
                seen_patterns[payline.positions] = payline.id

        self._by_id = {payline.id: payline for payline in self._paylines}

    def _validate(self) -> List[str]:
        if not self._paylines:
            return ["payline table is empty"]

        errors = []
        seen_ids = set()
        for index, payline in enumerate(self._paylines):
            if not _is_int(payline.id):
                errors.append(f"paylines[{index}]: id must be an integer, got {payline.id!r}")
                continue
            if payline.id in seen_ids:
                errors.append(f"duplicate payline id {payline.id}")
            seen_ids.add(payline.id)

            if len(payline.positions) != self.reel_count:
                errors.append(
                    f"payline {payline.id}: expected {self.reel_count} positions, "
                    f"got {len(payline.positions)}"
                )
            non_int = [row for row in payline.positions if not _is_int(row)]
            if non_int:
                errors.append(f"payline {payline.id}: rows must be integers, got {non_int}")
                continue
            bad_rows = [row for row in payline.positions if not 0 <= row < self.row_count]
            if bad_rows:
                errors.append(
                    f"payline {payline.id}: rows {bad_rows} outside [0, {self.row_count})"
                )
        return errors

    def get(self, payline_id: int) -> Payline:
        return self._by_id[payline_id]

    def __iter__(self) -> Iterator[Payline]:
        return iter(self._paylines)

    def __len__(self) -> int:
        return len(self._paylines)

    def __getitem__(self, index: int) -> Payline:
        return self._paylines[index]

    def __repr__(self) -> str:
        return f"PaylineTable(lines={len(self._paylines)}, reels={self.reel_count}, rows={self.row_count})"

"""
Storage interfaces the engine consumes: constraints, positions, trade history.
In-memory implementations back the CLI and tests.
"""

from __future__ import annotations
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from constraint_trader.core.types import Constraint, Position, TradeRecord


class ConstraintRepository(ABC):

    @abstractmethod
    def get_active_constraints(self) -> List[Constraint]:
        pass

    @abstractmethod
    def get_constraint(self, constraint_id: str) -> Optional[Constraint]:
        pass

    @abstractmethod
    def get_owner_constraints(self, owner_id: str) -> List[Constraint]:
        pass


class PositionRepository(ABC):

    @abstractmethod
    def get(self, owner_id: str, symbol: str) -> Optional[Position]:
        pass

    @abstractmethod
    def save(self, position: Position) -> None:
        pass

    @abstractmethod
    def all(self) -> List[Position]:
        pass


class TradeHistorySink(ABC):

    @abstractmethod
    def append(self, record: TradeRecord) -> None:
        pass


class InMemoryConstraintRepository(ConstraintRepository):

    def __init__(self, constraints: Iterable[Constraint] = ()):
        self._constraints: Dict[str, Constraint] = {c.id: c for c in constraints}

    def add(self, constraint: Constraint) -> None:
        self._constraints[constraint.id] = constraint

    def get_active_constraints(self) -> List[Constraint]:
        return [c for c in self._constraints.values() if c.is_active]

    def get_constraint(self, constraint_id: str) -> Optional[Constraint]:
        return self._constraints.get(constraint_id)

    def get_owner_constraints(self, owner_id: str) -> List[Constraint]:
        return [c for c in self._constraints.values() if c.owner_id == owner_id]


class InMemoryPositionRepository(PositionRepository):

    def __init__(self):
        self._lock = threading.Lock()
        self._positions: Dict[Tuple[str, str], Position] = {}

    def get(self, owner_id: str, symbol: str) -> Optional[Position]:
        with self._lock:
            pos = self._positions.get((owner_id, symbol.upper()))
            # Copy so callers never mutate stored state outside the ledger
            return Position(**vars(pos)) if pos else None

    def save(self, position: Position) -> None:
        with self._lock:
            self._positions[(position.owner_id, position.symbol.upper())] = Position(**vars(position))

    def all(self) -> List[Position]:
        with self._lock:
            return [Position(**vars(p)) for p in self._positions.values()]


class InMemoryTradeHistory(TradeHistorySink):

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[TradeRecord] = []

    def append(self, record: TradeRecord) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> List[TradeRecord]:
        with self._lock:
            return list(self._records)

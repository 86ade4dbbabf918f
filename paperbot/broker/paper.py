from __future__ import annotations

import math
import threading
from typing import Dict, Mapping, Optional, Union

from paperbot.core.types import AccountSnapshot, Fill, Position, PositionSnapshot, Side

EPSILON = 1e-9


class OrderRejected(ValueError):
    """Raised when the ledger refuses a fill; the account is left untouched."""


class PaperAccount:
    """Virtual cash, realized PnL and long-only positions for paper trading.

    Every public method takes the same lock, so status readers on other
    threads always see a consistent view while fills are being applied.
    """

    def __init__(
        self,
        starting_cash: float,
        max_position_per_symbol: float = 0.0,
        max_position_notional: float = 0.0,
    ) -> None:
        self._lock = threading.Lock()
        self._starting_cash = float(starting_cash)
        self._cash = float(starting_cash)
        self._realized_pnl = 0.0
        self.max_position_per_symbol = float(max_position_per_symbol)
        self.max_position_notional = float(max_position_notional)
        self._positions: Dict[str, Position] = {}

    @property
    def starting_cash(self) -> float:
        return self._starting_cash

    def apply_fill(self, symbol: str, side: Union[Side, str], qty: float, price: float) -> None:
        if qty <= 0:
            raise OrderRejected("quantity must be positive")
        if price <= 0:
            raise OrderRejected("price must be positive")
        try:
            side = Side(side)
        except ValueError:
            raise OrderRejected(f"unknown order side: {side!r}") from None

        with self._lock:
            pos = self._positions.get(symbol)
            held = pos.qty if pos is not None else 0.0
            notional = qty * price

            if side is Side.BUY:
                if notional > self._cash + EPSILON:
                    raise OrderRejected("insufficient cash for buy")
                new_qty = held + qty
                if self.max_position_per_symbol > 0 and new_qty > self.max_position_per_symbol + EPSILON:
                    raise OrderRejected("position limit exceeded")
                old_cost = pos.avg_cost * pos.qty if pos is not None else 0.0
                self._cash -= notional
                self._positions[symbol] = Position(symbol=symbol, qty=new_qty, avg_cost=(old_cost + notional) / new_qty)
            else:
                if pos is None or held + EPSILON < qty:
                    raise OrderRejected("insufficient position to sell")
                self._realized_pnl += (price - pos.avg_cost) * qty
                self._cash += notional
                remaining = held - qty
                if remaining <= EPSILON:
                    del self._positions[symbol]
                else:
                    pos.qty = remaining

    def apply(self, fill: Fill) -> None:
        self.apply_fill(fill.symbol, fill.side, fill.qty, fill.price)

    def snapshot(self, marks: Optional[Mapping[str, float]] = None) -> AccountSnapshot:
        marks = marks or {}
        with self._lock:
            positions: Dict[str, PositionSnapshot] = {}
            equity = self._cash
            for sym, pos in self._positions.items():
                mark = float(marks.get(sym, 0.0) or 0.0)
                if mark > 0:
                    market_value = pos.qty * mark
                    unrealized = (mark - pos.avg_cost) * pos.qty
                else:
                    # no usable mark: count nothing rather than a stale value
                    market_value = 0.0
                    unrealized = 0.0
                positions[sym] = PositionSnapshot(
                    qty=pos.qty,
                    avg_cost=pos.avg_cost,
                    market_value=market_value,
                    unrealized=unrealized,
                )
                equity += market_value
            return AccountSnapshot(
                cash=self._cash,
                realized_pnl=self._realized_pnl,
                equity=equity,
                positions=positions,
            )

    def available_cash(self) -> float:
        with self._lock:
            return self._cash

    def position(self, symbol: str) -> float:
        with self._lock:
            pos = self._positions.get(symbol)
            return pos.qty if pos is not None else 0.0

    def positions(self) -> Dict[str, float]:
        with self._lock:
            return {sym: pos.qty for sym, pos in self._positions.items()}

    def realized_pnl(self) -> float:
        with self._lock:
            return self._realized_pnl

    def max_additional_long(self, symbol: str, price: float) -> float:
        """Largest extra quantity the per-symbol caps still allow at ``price``."""
        with self._lock:
            pos = self._positions.get(symbol)
            held = pos.qty if pos is not None else 0.0
        capacity = math.inf
        if self.max_position_per_symbol > 0:
            capacity = min(capacity, self.max_position_per_symbol - held)
        if self.max_position_notional > 0 and price > 0:
            capacity = min(capacity, (self.max_position_notional - held * price) / price)
        return max(0.0, capacity)

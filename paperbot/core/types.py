from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"

    @property
    def sign(self) -> int:
        return 1 if self is Side.BUY else -1


@dataclass(frozen=True)
class Observation:
    """A single price/trade print for one symbol, as delivered by a feed."""

    symbol: str
    price: float
    size: float
    side: int  # +1 buy aggressor, -1 sell aggressor
    timestamp: int  # epoch ms


@dataclass(frozen=True)
class Signal:
    symbol: str
    score: float  # positive long bias, negative short bias
    reason: str
    timestamp: int

    @property
    def side(self) -> Side:
        return Side.SELL if self.score < 0 else Side.BUY


@dataclass(frozen=True)
class Order:
    symbol: str
    side: Side
    qty: float
    price: float  # reference price the simulator slips from

    @property
    def notional(self) -> float:
        return self.qty * self.price


@dataclass(frozen=True)
class Fill:
    symbol: str
    side: Side
    qty: float
    price: float
    slippage: float
    latency_ms: int
    timestamp: int  # epoch ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "side": self.side.value,
            "qty": float(self.qty),
            "price": float(self.price),
            "slippage": float(self.slippage),
            "latency_ms": int(self.latency_ms),
            "ts": int(self.timestamp),
        }


@dataclass
class Position:
    symbol: str
    qty: float
    avg_cost: float


@dataclass(frozen=True)
class PositionSnapshot:
    qty: float
    avg_cost: float
    market_value: float
    unrealized: float


@dataclass(frozen=True)
class AccountSnapshot:
    cash: float
    realized_pnl: float
    equity: float
    positions: Dict[str, PositionSnapshot] = field(default_factory=dict)

    @property
    def unrealized_pnl(self) -> float:
        return sum(p.unrealized for p in self.positions.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cash": float(self.cash),
            "realized_pnl": float(self.realized_pnl),
            "equity": float(self.equity),
            "unrealized_pnl": float(self.unrealized_pnl),
            "positions": {
                sym: {
                    "qty": float(p.qty),
                    "avg_cost": float(p.avg_cost),
                    "market_value": float(p.market_value),
                    "unrealized": float(p.unrealized),
                }
                for sym, p in self.positions.items()
            },
        }

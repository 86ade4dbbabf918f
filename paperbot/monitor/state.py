from __future__ import annotations

import threading
from typing import Any, Dict, List

from paperbot.core.types import AccountSnapshot


class MonitorState:
    def __init__(self, max_points: int = 10000, max_events: int = 500) -> None:
        self._lock = threading.Lock()
        self.equity_curve: List[Dict[str, Any]] = []
        self.events: List[Dict[str, Any]] = []
        self.halted: bool = False
        self.halt_reason: str = ""
        self.max_points = max_points
        self.max_events = max_events

    def add_equity(self, timestamp: int, snap: AccountSnapshot) -> None:
        with self._lock:
            self.equity_curve.append({
                "timestamp": int(timestamp),
                "equity": float(snap.equity),
                "cash": float(snap.cash),
                "realized_pnl": float(snap.realized_pnl),
                "unrealized_pnl": float(snap.unrealized_pnl),
            })
            if len(self.equity_curve) > self.max_points:
                self.equity_curve = self.equity_curve[-self.max_points:]

    def add_event(self, event: Dict[str, Any]) -> None:
        with self._lock:
            self.events.append(event)
            if len(self.events) > self.max_events:
                self.events = self.events[-self.max_events:]

    def set_halted(self, reason: str) -> None:
        with self._lock:
            self.halted = True
            self.halt_reason = reason

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "halted": self.halted,
                "halt_reason": self.halt_reason,
                "equity_curve": list(self.equity_curve),
                "events": list(self.events)[-200:],
            }

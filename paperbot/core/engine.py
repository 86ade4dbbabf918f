from __future__ import annotations

import math
import queue
import threading
from datetime import date
from typing import Dict, Optional

from paperbot.broker.execution import ExecutionSimulator
from paperbot.broker.paper import EPSILON, OrderRejected, PaperAccount
from paperbot.broker.risk import Limits, exposure
from paperbot.core.logging import fills_logger, get_logger
from paperbot.core.types import AccountSnapshot, Fill, Observation, Order, Side
from paperbot.core.utils import utc_day
from paperbot.monitor.state import MonitorState
from paperbot.monitor.storage import FillHistory, FillSink
from paperbot.strategy.base import BaseStrategy


class PaperEngine:
    """
    Single-consumer control loop for paper trading.

    Each observation is processed to completion (marks, halt checks, strategy,
    risk gate, sizing, simulated execution, ledger) before the next one is read.
    A drawdown or daily-loss breach flattens every position once and stops the loop.
    """

    def __init__(
        self,
        strategy: BaseStrategy,
        limits: Limits,
        simulator: ExecutionSimulator,
        account: PaperAccount,
        history: Optional[FillHistory] = None,
        recorder: Optional[FillSink] = None,
        state: Optional[MonitorState] = None,
    ) -> None:
        self.strategy = strategy
        self.limits = limits
        self.simulator = simulator
        self.account = account
        self.history = history if history is not None else FillHistory()
        self.recorder = recorder
        self.state = state if state is not None else MonitorState()
        self.logger = get_logger()
        self.fills_log = fills_logger()

        self.halted = False
        self.halt_reason = ""
        self.peak_equity = account.starting_cash
        self._marks: Dict[str, float] = {}
        self._marks_lock = threading.Lock()
        self._day: Optional[date] = None
        self._day_start_realized = 0.0

    # Read side (safe from other threads)
    def marks(self) -> Dict[str, float]:
        with self._marks_lock:
            return dict(self._marks)

    def account_snapshot(self) -> AccountSnapshot:
        return self.account.snapshot(self.marks())

    # Loop
    def run(self, observations: queue.Queue, stop: threading.Event) -> None:
        self.logger.info(f"Paper engine started | strategy={self.strategy.name}")
        while not stop.is_set() and not self.halted:
            try:
                obs = observations.get(timeout=0.1)
            except queue.Empty:
                continue
            self.process(obs)
        self.logger.info("Paper engine stopped" + (f" (halted: {self.halt_reason})" if self.halted else ""))

    def process(self, obs: Observation) -> bool:
        """Handle one observation; returns True when at least one fill was applied."""
        if obs.price <= 0:
            return False
        with self._marks_lock:
            self._marks[obs.symbol] = obs.price
        if self.halted:
            return False

        self._roll_day(obs.timestamp)
        snap = self.account_snapshot()
        self.peak_equity = max(self.peak_equity, snap.equity)
        if self.limits.daily_loss_breached(self._daily_realized()):
            self.halt("daily loss limit reached")
            return False
        if self.limits.breached(self.account.starting_cash, snap.equity):
            self.halt("drawdown limit reached")
            return False
        if self.limits.intra_trade_breached(self.peak_equity, snap.equity):
            self.halt("intratrade drawdown reached")
            return False

        sig = self.strategy.on_observation(obs)
        if sig is None:
            return False

        side = sig.side
        qty = self._size(side, obs)
        if qty <= 0:
            return False

        if side is Side.BUY and self.limits.max_portfolio_notional > 0:
            gross_before, _ = exposure(self.account.positions(), self.marks())
            projected = gross_before + qty * obs.price
            if self.limits.portfolio_breached(gross_before, projected):
                self.logger.debug(
                    f"Portfolio notional limit reached; skipping buy | sym={obs.symbol} "
                    f"projected={projected:.2f} limit={self.limits.max_portfolio_notional:.2f}"
                )
                return False

        order = Order(symbol=obs.symbol, side=side, qty=qty, price=obs.price)
        # rounded so budget/price*price float drift does not trip the per-trade cap
        if side is Side.BUY and not self.limits.allow(round(order.notional, 9)):
            self.logger.warning(f"Risk rejected order over notional limit | sym={order.symbol} notional={order.notional:.2f}")
            return False

        filled = self._execute(order)
        if filled <= 0:
            return False

        snap = self.account_snapshot()
        self.state.add_equity(obs.timestamp, snap)
        gross, net = exposure(self.account.positions(), self.marks())
        pos = snap.positions.get(order.symbol)
        self.logger.info(
            f"Paper fills processed | sym={order.symbol} side={order.side.value} qty={filled:.6f} "
            f"score={sig.score:+.4f} ({sig.reason}) cash={snap.cash:.2f} equity={snap.equity:.2f} "
            f"realized={snap.realized_pnl:.2f} unrealized={snap.unrealized_pnl:.2f} "
            f"gross={gross:.2f} net={net:.2f} position={pos.qty if pos else 0.0:.6f} "
            f"avg_cost={pos.avg_cost if pos else 0.0:.4f}"
        )

        self.peak_equity = max(self.peak_equity, snap.equity)
        if self.limits.breached(self.account.starting_cash, snap.equity):
            self.halt("drawdown limit reached after fill")
        elif self.limits.daily_loss_breached(self._daily_realized()):
            self.halt("daily loss limit reached after fill")
        return True

    def halt(self, reason: str) -> None:
        """Flatten all positions once and stop trading for the session."""
        if self.halted:
            return
        self.halted = True
        self.halt_reason = reason
        self.logger.warning(f"Risk limit triggered; flattening positions and pausing trading | reason={reason}")
        self.state.set_halted(reason)
        self.state.add_event({"type": "HALT", "reason": reason})
        self._flatten()
        snap = self.account_snapshot()
        self.peak_equity = snap.equity
        self.logger.warning(f"Flatten complete | cash={snap.cash:.2f} equity={snap.equity:.2f} open={len(snap.positions)}")

    # Internals
    def _size(self, side: Side, obs: Observation) -> float:
        if side is Side.SELL:
            # long-only: a sell signal closes whatever is held
            return self.account.position(obs.symbol)

        cash = self.account.available_cash()
        if cash <= 0:
            self.logger.warning("Paper account out of cash; waiting for positions to unwind")
            return 0.0
        budget = cash
        if self.limits.max_notional_per_trade > 0:
            budget = min(self.limits.max_notional_per_trade, cash)
        qty = budget / obs.price
        capacity = self.account.max_additional_long(obs.symbol, obs.price)
        if capacity <= EPSILON:
            self.logger.debug(f"Position cap reached; skipping buy | sym={obs.symbol}")
            return 0.0
        return min(qty, capacity)

    def _execute(self, order: Order) -> float:
        fills = self.simulator.submit(order)
        total = 0.0
        for fill in fills:
            if self._apply(fill):
                total += fill.qty
        return total

    def _apply(self, fill: Fill) -> bool:
        try:
            self.account.apply(fill)
        except OrderRejected as e:
            self.logger.warning(f"Paper fill rejected | sym={fill.symbol} side={fill.side.value} qty={fill.qty:.6f} reason={e}")
            return False
        self.fills_log.info(
            f"{fill.side.value} {fill.qty:.6f} {fill.symbol} @ {fill.price:.6f} "
            f"slip={fill.slippage:+.6f} latency={fill.latency_ms}ms"
        )
        self.history.record(fill)
        if self.recorder is not None:
            self.recorder.record(fill)
        self.state.add_event({"type": fill.side.value, **fill.to_dict()})
        return True

    def _flatten(self) -> None:
        snap = self.account_snapshot()
        marks = self.marks()
        for sym, pos in snap.positions.items():
            if math.fabs(pos.qty) <= EPSILON:
                continue
            price = marks.get(sym, 0.0)
            if price <= 0:
                price = pos.avg_cost if pos.avg_cost > 0 else 1.0
            order = Order(symbol=sym, side=Side.SELL, qty=pos.qty, price=price)
            self._execute(order)
            with self._marks_lock:
                self._marks[sym] = price

    def _roll_day(self, ts_ms: int) -> None:
        day = utc_day(ts_ms)
        if self._day is None or day > self._day:
            self._day = day
            self._day_start_realized = self.account.realized_pnl()

    def _daily_realized(self) -> float:
        return self.account.realized_pnl() - self._day_start_realized

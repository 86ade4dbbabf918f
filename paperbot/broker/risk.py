from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Tuple


@dataclass(frozen=True)
class Limits:
    """Scalar guard-rails evaluated before and after each trade.

    Any limit <= 0 disables its check; it never means "always breach".
    """

    max_notional_per_trade: float = 0.0
    max_portfolio_notional: float = 0.0
    max_drawdown_pct: float = 0.0
    intratrade_drawdown_pct: float = 0.0
    max_daily_loss: float = 0.0

    def allow(self, notional: float) -> bool:
        return self.max_notional_per_trade <= 0 or notional <= self.max_notional_per_trade

    def breached(self, starting_cash: float, current_equity: float) -> bool:
        """Drawdown of equity measured against the starting bankroll."""
        if self.max_drawdown_pct <= 0 or starting_cash <= 0:
            return False
        drawdown = (starting_cash - current_equity) / starting_cash
        return drawdown >= self.max_drawdown_pct

    def intra_trade_breached(self, peak_equity: float, current_equity: float) -> bool:
        """Drawdown of equity measured against the running peak."""
        if self.intratrade_drawdown_pct <= 0 or peak_equity <= 0:
            return False
        drawdown = (peak_equity - current_equity) / peak_equity
        return drawdown >= self.intratrade_drawdown_pct

    def daily_loss_breached(self, realized_pnl: float) -> bool:
        if self.max_daily_loss <= 0:
            return False
        return -realized_pnl >= self.max_daily_loss

    def portfolio_breached(self, current_gross: float, projected_gross: float) -> bool:
        # A trade that does not grow gross exposure is let through even above the cap.
        if self.max_portfolio_notional <= 0:
            return False
        return projected_gross > self.max_portfolio_notional and projected_gross > current_gross


def exposure(positions: Mapping[str, float], marks: Mapping[str, float]) -> Tuple[float, float]:
    """Return (gross, net) notional exposure; symbols without a mark count as zero."""
    gross = 0.0
    net = 0.0
    for sym, qty in positions.items():
        value = qty * float(marks.get(sym, 0.0) or 0.0)
        gross += abs(value)
        net += value
    return gross, net

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from paperbot.core.types import AccountSnapshot, Fill


console = Console()


def _fmt_time(ts_ms: int) -> str:
    return datetime.fromtimestamp(ts_ms / 1000.0, tz=timezone.utc).strftime("%H:%M:%S.%f")[:-3]


def render_account(snap: AccountSnapshot) -> None:
    table = Table(title="Paper Account")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Cash", f"${snap.cash:,.2f}")
    table.add_row("Equity", f"${snap.equity:,.2f}")
    table.add_row("Realized PnL", f"${snap.realized_pnl:,.2f}")
    table.add_row("Unrealized PnL", f"${snap.unrealized_pnl:,.2f}")
    console.print(table)

    if not snap.positions:
        console.print(Panel("No open positions", title="Positions"))
        return
    positions = Table(title="Open Positions")
    positions.add_column("Symbol")
    positions.add_column("Qty", justify="right")
    positions.add_column("Avg Cost", justify="right")
    positions.add_column("Market Value", justify="right")
    positions.add_column("Unrealized", justify="right")
    for sym, p in sorted(snap.positions.items()):
        color = "green" if p.unrealized >= 0 else "red"
        positions.add_row(
            sym,
            f"{p.qty:.6f}",
            f"{p.avg_cost:,.4f}",
            f"{p.market_value:,.2f}",
            f"[{color}]{p.unrealized:,.2f}[/]",
        )
    console.print(positions)


def render_fills(fills: List[Fill], limit: int = 20) -> None:
    if not fills:
        console.print(Panel("No fills recorded", title="Fills"))
        return
    table = Table(title=f"Recent Fills (last {min(limit, len(fills))})")
    table.add_column("Time (UTC)")
    table.add_column("Symbol")
    table.add_column("Side")
    table.add_column("Qty", justify="right")
    table.add_column("Price", justify="right")
    table.add_column("Slippage", justify="right")
    table.add_column("Latency", justify="right")
    for f in fills[-limit:]:
        table.add_row(
            _fmt_time(f.timestamp),
            f.symbol,
            f.side.value,
            f"{f.qty:.6f}",
            f"{f.price:,.4f}",
            f"{f.slippage:+.4f}",
            f"{f.latency_ms}ms",
        )
    console.print(table)

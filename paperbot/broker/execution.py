from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
from loguru import logger as log

from paperbot.core.types import Fill, Order, Side
from paperbot.core.utils import now_ms


@dataclass
class ExecutionParams:
    max_latency_ms: int = 150
    slippage_bps: float = 5.0
    partial_fill_probability: float = 0.0
    max_partial_fills: int = 1


class ExecutionSimulator:
    """
    Turns an accepted order into one or more simulated fills.

    Models partial execution, uniform slippage in basis points and a uniform
    per-fill latency. It never looks at account state, so the only inputs are
    the params, the order, the random generator and the clock.
    """

    def __init__(
        self,
        params: Optional[ExecutionParams] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.params = params or ExecutionParams()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock or now_ms

    def submit(self, order: Order) -> List[Fill]:
        if order.qty <= 0:
            raise ValueError("order quantity must be positive")
        fills = self._generate_fills(order)
        for fill in fills:
            log.debug(
                f"Simulated fill | sym={fill.symbol} side={fill.side.value} qty={fill.qty:.6f} "
                f"px={order.price:.6f} fill_px={fill.price:.6f} slip={fill.slippage:+.6f} latency={fill.latency_ms}ms"
            )
        return fills

    def _generate_fills(self, order: Order) -> List[Fill]:
        parts = self._sample_parts()
        weights = []
        for _ in range(parts):
            w = float(self.rng.random())
            weights.append(w if w > 0 else 1e-6)
        total = sum(weights)

        fills: List[Fill] = []
        allocated = 0.0
        for i, w in enumerate(weights):
            if i == parts - 1:
                # last slice takes the exact remainder so the split sums to the order
                qty = order.qty - allocated
            else:
                qty = order.qty * (w / total)
            allocated += qty

            latency = self._sample_latency()
            price = self._apply_slippage(order.price, order.side)
            fills.append(
                Fill(
                    symbol=order.symbol,
                    side=order.side,
                    qty=qty,
                    price=price,
                    slippage=price - order.price,
                    latency_ms=latency,
                    timestamp=self.clock() + latency,
                )
            )
        return fills

    def _sample_parts(self) -> int:
        max_parts = int(self.params.max_partial_fills)
        if max_parts < 2 or self.params.partial_fill_probability <= 0:
            return 1
        if float(self.rng.random()) >= self.params.partial_fill_probability:
            return 1
        return int(self.rng.integers(1, max_parts, endpoint=True))

    def _sample_latency(self) -> int:
        max_ms = int(self.params.max_latency_ms)
        if max_ms <= 0:
            return 0
        return int(self.rng.integers(0, max_ms, endpoint=True))

    def _apply_slippage(self, price: float, side: Side) -> float:
        bps = float(self.params.slippage_bps)
        if price <= 0 or bps <= 0:
            return price
        magnitude = float(self.rng.uniform(-bps, bps)) / 10000.0
        return price * (1.0 + side.sign * magnitude)

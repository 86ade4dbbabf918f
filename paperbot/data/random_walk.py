from __future__ import annotations

import math
import queue
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

import numpy as np
from loguru import logger as log

from paperbot.core.types import Observation
from paperbot.core.utils import now_ms


@dataclass
class RandomWalkParams:
    interval_ms: int = 500
    start_price: float = 100.0
    drift: float = 0.0
    volatility: float = 0.002
    mean_size: float = 1.0


class RandomWalkFeed:
    """
    Synthetic trade prints for offline runs and tests.

    Each symbol follows its own multiplicative random walk; aggressor side is
    a coin flip and trade size is exponential around ``mean_size``.
    """

    def __init__(
        self,
        symbols: List[str],
        params: Optional[RandomWalkParams] = None,
        rng: Optional[np.random.Generator] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.symbols = sorted({s.strip() for s in symbols if s and s.strip()})
        self.params = params or RandomWalkParams()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.clock = clock or now_ms
        self._prices: Dict[str, float] = {s: float(self.params.start_price) for s in self.symbols}

    def observations(self) -> Iterator[Observation]:
        p = self.params
        if not self.symbols:
            return
        while True:
            ts = self.clock()
            for sym in self.symbols:
                shock = float(self.rng.normal(loc=p.drift, scale=p.volatility)) if p.volatility > 0 else p.drift
                price = max(1e-8, self._prices[sym] * math.exp(shock))
                self._prices[sym] = price
                yield Observation(
                    symbol=sym,
                    price=price,
                    size=float(self.rng.exponential(p.mean_size)),
                    side=1 if self.rng.random() < 0.5 else -1,
                    timestamp=ts,
                )

    def run(self, out: queue.Queue, stop: threading.Event) -> None:
        """Push observations onto ``out`` until ``stop`` is set.

        A full queue blocks the producer (backpressure) but ``put`` is retried
        with a short timeout so cancellation is noticed promptly.
        """
        interval = max(0.0, self.params.interval_ms / 1000.0)
        per_round = max(1, len(self.symbols))
        for i, obs in enumerate(self.observations()):
            while not stop.is_set():
                try:
                    out.put(obs, timeout=0.1)
                    break
                except queue.Full:
                    continue
            if stop.is_set():
                return
            if (i + 1) % per_round == 0 and stop.wait(interval):
                return


def start_producer(feed: RandomWalkFeed, out: queue.Queue, stop: threading.Event) -> threading.Thread:
    """Run ``feed`` in a daemon thread; a crash in the feed cancels the whole session."""

    def _run() -> None:
        try:
            feed.run(out, stop)
        except Exception as e:
            log.error(f"Feed stopped: {e}")
            stop.set()

    t = threading.Thread(target=_run, name="feed", daemon=True)
    t.start()
    return t

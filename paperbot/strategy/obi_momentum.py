from __future__ import annotations

import math
from typing import Optional

from paperbot.core.types import Observation, Signal
from paperbot.strategy.base import BaseStrategy, FeatureWindow

OBI_WEIGHT = 0.6
MOMENTUM_WEIGHT = 0.4


def _clamp(v: float, lo: float = -1.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, v))


class OBIMomentumStrategy(BaseStrategy):
    """
    Order-flow imbalance blended with price momentum over a sliding window.

    imbalance = (buy_vol - sell_vol) / (buy_vol + sell_vol)
    momentum  = tanh(3 * (latest - anchor) / anchor), anchor = oldest retained price
    score     = 0.6 * imbalance + 0.4 * momentum, emitted when |score| >= threshold
    """

    name = "OBIMomentum"

    def __init__(self, threshold: float = 0.25, window_secs: int = 60) -> None:
        super().__init__(window_secs if window_secs > 0 else 60)
        self.threshold = threshold if threshold > 0 else 0.25

    def evaluate(self, obs: Observation, window: FeatureWindow) -> Optional[Signal]:
        anchor = window.oldest()
        if anchor is None or anchor.price <= 0:
            return None

        buy_vol, sell_vol = window.volumes()
        total = buy_vol + sell_vol
        obi = _clamp((buy_vol - sell_vol) / total) if total > 0 else 0.0

        raw = (obs.price - anchor.price) / anchor.price
        momentum = _clamp(math.tanh(3.0 * raw))

        score = OBI_WEIGHT * obi + MOMENTUM_WEIGHT * momentum
        if abs(score) < self.threshold:
            return None
        return Signal(
            symbol=obs.symbol,
            score=score,
            reason=f"obi={obi:.2f} momentum={momentum:.2f}",
            timestamp=obs.timestamp,
        )

from __future__ import annotations

from typing import Optional

from paperbot.core.types import Observation, Signal
from paperbot.strategy.base import BaseStrategy, FeatureWindow


class TrendFollowerStrategy(BaseStrategy):
    """Percent change across the window, gated by a minimum traded notional.

    Unlike OBIMomentum the score is the raw change, so it is not bounded to [-1, 1].
    """

    name = "TrendFollower"

    def __init__(self, threshold: float = 0.05, window_secs: int = 180, min_volume_usd: float = 0.0) -> None:
        super().__init__(window_secs if window_secs > 0 else 180)
        self.threshold = threshold if threshold > 0 else 0.05
        self.min_volume = max(0.0, float(min_volume_usd))

    def on_observation(self, obs: Observation) -> Optional[Signal]:
        if obs.price <= 0:
            return None
        return super().on_observation(obs)

    def evaluate(self, obs: Observation, window: FeatureWindow) -> Optional[Signal]:
        oldest = window.oldest()
        latest = window.latest()
        if oldest is None or latest is None or oldest.price <= 0:
            return None

        change = (latest.price - oldest.price) / oldest.price
        if abs(change) < self.threshold:
            return None
        volume = window.notional()
        if self.min_volume > 0 and volume < self.min_volume:
            return None
        return Signal(
            symbol=obs.symbol,
            score=change,
            reason=f"change={change * 100:+.2f}% volume={volume:.0f}",
            timestamp=obs.timestamp,
        )

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict

from paperbot.strategy.base import BaseStrategy
from paperbot.strategy.obi_momentum import OBIMomentumStrategy
from paperbot.strategy.trend import TrendFollowerStrategy


@dataclass
class StrategyParams:
    obi_threshold: float = 0.25
    vol_window_secs: int = 60
    trend_threshold: float = 0.05
    trend_window_secs: int = 180
    trend_min_volume_usd: float = 0.0


class StrategyKind(str, Enum):
    OBI_MOMENTUM = "obi_momentum"
    TREND_FOLLOWER = "trend_follower"

    @classmethod
    def parse(cls, mode: str) -> "StrategyKind":
        key = str(mode or "").strip().lower()
        # NOTE: a misspelled mode silently runs OBI momentum; nothing warns about it.
        return _MODE_ALIASES.get(key, cls.OBI_MOMENTUM)


_MODE_ALIASES: Dict[str, StrategyKind] = {
    "": StrategyKind.OBI_MOMENTUM,
    "obi": StrategyKind.OBI_MOMENTUM,
    "obi_momentum": StrategyKind.OBI_MOMENTUM,
    "trend": StrategyKind.TREND_FOLLOWER,
    "trend_follow": StrategyKind.TREND_FOLLOWER,
    "trend_follower": StrategyKind.TREND_FOLLOWER,
}

_BUILDERS: Dict[StrategyKind, Callable[[StrategyParams], BaseStrategy]] = {
    StrategyKind.OBI_MOMENTUM: lambda p: OBIMomentumStrategy(p.obi_threshold, p.vol_window_secs),
    StrategyKind.TREND_FOLLOWER: lambda p: TrendFollowerStrategy(
        p.trend_threshold, p.trend_window_secs, p.trend_min_volume_usd
    ),
}


def build_strategy(mode: str, params: StrategyParams) -> BaseStrategy:
    return _BUILDERS[StrategyKind.parse(mode)](params)

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Deque, Dict, Optional

from paperbot.core.types import Observation, Signal


class FeatureWindow:
    """Time-bounded buffer of recent observations for one symbol."""

    def __init__(self, window_ms: int) -> None:
        self.window_ms = int(window_ms)
        self.observations: Deque[Observation] = deque()
        # prints may arrive out of order; latest() is the last appended, not the newest
        self.newest_ts: Optional[int] = None

    def __len__(self) -> int:
        return len(self.observations)

    def append(self, obs: Observation) -> None:
        if self.newest_ts is not None and obs.timestamp <= self.newest_ts - self.window_ms:
            return  # already outside the lookback
        self.observations.append(obs)
        if self.newest_ts is None or obs.timestamp > self.newest_ts:
            self.newest_ts = obs.timestamp
        cutoff = self.newest_ts - self.window_ms
        while self.observations and self.observations[0].timestamp <= cutoff:
            self.observations.popleft()

    def oldest(self) -> Optional[Observation]:
        return self.observations[0] if self.observations else None

    def latest(self) -> Optional[Observation]:
        return self.observations[-1] if self.observations else None

    def volumes(self) -> tuple:
        """(buy volume, sell volume) by aggressor side."""
        buy = 0.0
        sell = 0.0
        for obs in self.observations:
            if obs.side >= 0:
                buy += abs(obs.size)
            else:
                sell += abs(obs.size)
        return buy, sell

    def notional(self) -> float:
        return sum(abs(obs.price * obs.size) for obs in self.observations)


class BaseStrategy(ABC):
    """
    Abstract base class for all strategies.
    Keeps one FeatureWindow per symbol behind a single lock and drops windows
    of symbols that have gone quiet for longer than the lookback.
    """

    name: str = "base"

    def __init__(self, window_secs: int) -> None:
        self.window_ms = int(window_secs) * 1000
        self._lock = threading.Lock()
        self._windows: Dict[str, FeatureWindow] = {}
        self._newest_ts: Optional[int] = None

    def on_observation(self, obs: Observation) -> Optional[Signal]:
        if not obs.symbol:
            return None
        with self._lock:
            window = self._windows.get(obs.symbol)
            if window is None:
                window = FeatureWindow(self.window_ms)
                self._windows[obs.symbol] = window
            window.append(obs)
            if self._newest_ts is None or obs.timestamp > self._newest_ts:
                self._newest_ts = obs.timestamp
            self._evict_idle(self._newest_ts - self.window_ms)
            return self.evaluate(obs, window)

    @abstractmethod
    def evaluate(self, obs: Observation, window: FeatureWindow) -> Optional[Signal]:
        """Compute features over ``window`` (holding ``obs`` unless it arrived outside the lookback) and maybe emit a signal."""

    def tracked_symbols(self) -> list:
        with self._lock:
            return sorted(self._windows)

    def _evict_idle(self, cutoff: int) -> None:
        stale = [
            sym
            for sym, window in self._windows.items()
            if window.newest_ts is None or window.newest_ts <= cutoff
        ]
        for sym in stale:
            del self._windows[sym]

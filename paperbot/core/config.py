from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, Field, PositiveFloat

from paperbot.broker.execution import ExecutionParams
from paperbot.broker.risk import Limits
from paperbot.data.random_walk import RandomWalkParams
from paperbot.strategy.factory import StrategyParams


class GeneralConfig(BaseModel):
    seed: Optional[int] = None  # None -> nondeterministic simulator
    symbols: List[str] = Field(default_factory=lambda: ["BTCUSDT"])
    queue_size: int = Field(default=1024, ge=1)


class DataConfig(BaseModel):
    provider: str = "random_walk"
    interval_ms: int = Field(default=500, ge=1)
    start_price: PositiveFloat = 100.0
    drift: float = 0.0
    volatility: float = Field(default=0.002, ge=0.0)
    mean_size: PositiveFloat = 1.0

    def random_walk_params(self) -> RandomWalkParams:
        return RandomWalkParams(
            interval_ms=self.interval_ms,
            start_price=self.start_price,
            drift=self.drift,
            volatility=self.volatility,
            mean_size=self.mean_size,
        )


class StrategyParamsConfig(BaseModel):
    obi_threshold: float = 0.25
    vol_window_secs: int = 60
    trend_threshold: float = 0.05
    trend_window_secs: int = 180
    trend_min_volume_usd: float = 0.0


class StrategyConfig(BaseModel):
    mode: str = "obi"  # "obi" | "trend"
    params: StrategyParamsConfig = Field(default_factory=StrategyParamsConfig)

    def strategy_params(self) -> StrategyParams:
        return StrategyParams(**self.params.model_dump())


class RiskConfig(BaseModel):
    max_notional_per_trade: float = 0.0
    max_portfolio_notional: float = 0.0
    max_drawdown_pct: float = 0.0  # fraction, 0.2 == 20%
    intratrade_drawdown_pct: Optional[float] = None  # defaults to half of max_drawdown_pct
    max_daily_loss: float = 0.0

    def limits(self) -> Limits:
        intratrade = self.intratrade_drawdown_pct
        if intratrade is None:
            intratrade = self.max_drawdown_pct / 2.0
        return Limits(
            max_notional_per_trade=self.max_notional_per_trade,
            max_portfolio_notional=self.max_portfolio_notional,
            max_drawdown_pct=self.max_drawdown_pct,
            intratrade_drawdown_pct=intratrade,
            max_daily_loss=self.max_daily_loss,
        )


class PaperConfig(BaseModel):
    starting_cash: PositiveFloat = 1000.0
    max_position_per_symbol: float = 0.0
    max_position_notional_usd: float = 0.0
    slippage_bps: float = 5.0
    max_latency_ms: int = 150
    partial_fill_probability: float = Field(default=0.0, ge=0.0, le=1.0)
    max_partial_fills: int = Field(default=1, ge=1)
    fills_path: str = ""
    history_capacity: int = Field(default=2048, ge=1)

    def execution_params(self) -> ExecutionParams:
        return ExecutionParams(
            max_latency_ms=self.max_latency_ms,
            slippage_bps=self.slippage_bps,
            partial_fill_probability=self.partial_fill_probability,
            max_partial_fills=self.max_partial_fills,
        )


class MonitorConfig(BaseModel):
    dashboard_enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 8081
    report_dir: str = ""
    log_dir: str = "logs"
    log_level: str = "INFO"


class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    strategy: StrategyConfig = Field(default_factory=StrategyConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    paper: PaperConfig = Field(default_factory=PaperConfig)
    monitor: MonitorConfig = Field(default_factory=MonitorConfig)

    @staticmethod
    def load(path: Union[str, Path]) -> "AppConfig":
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return AppConfig(**(data or {}))

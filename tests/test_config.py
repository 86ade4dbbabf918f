from __future__ import annotations

import os
import tempfile

import numpy as np
import pytest
from pydantic import ValidationError

from paperbot.cli.run import build_engine
from paperbot.core.config import AppConfig

SAMPLE = """
general:
  seed: 7
  symbols: [BTCUSDT, ETHUSDT]
strategy:
  mode: trend
  params:
    trend_threshold: 0.02
    trend_window_secs: 120
    trend_min_volume_usd: 5000
risk:
  max_notional_per_trade: 250
  max_portfolio_notional: 1000
  max_drawdown_pct: 0.2
  max_daily_loss: 100
paper:
  starting_cash: 5000
  max_position_per_symbol: 3
  slippage_bps: 8
  max_latency_ms: 40
  partial_fill_probability: 0.3
  max_partial_fills: 4
monitor:
  log_dir: /tmp/paperbot-logs
"""


def _load(text: str) -> AppConfig:
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "paper.yaml")
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        return AppConfig.load(path)


def test_yaml_sections_map_onto_components() -> None:
    cfg = _load(SAMPLE)
    assert cfg.general.seed == 7
    assert cfg.general.symbols == ["BTCUSDT", "ETHUSDT"]

    params = cfg.strategy.strategy_params()
    assert params.trend_threshold == 0.02
    assert params.trend_window_secs == 120
    assert params.obi_threshold == 0.25  # untouched default

    limits = cfg.risk.limits()
    assert limits.max_notional_per_trade == 250
    assert limits.intratrade_drawdown_pct == pytest.approx(0.1)

    ex = cfg.paper.execution_params()
    assert (ex.slippage_bps, ex.max_latency_ms, ex.partial_fill_probability, ex.max_partial_fills) == (8, 40, 0.3, 4)
    assert cfg.monitor.port == 8081


def test_empty_file_gives_defaults() -> None:
    cfg = _load("")
    assert cfg.strategy.mode == "obi"
    assert cfg.paper.starting_cash == 1000.0
    assert cfg.data.provider == "random_walk"
    assert cfg.risk.limits().max_drawdown_pct == 0.0


def test_explicit_intratrade_overrides_default() -> None:
    cfg = AppConfig(risk={"max_drawdown_pct": 0.4, "intratrade_drawdown_pct": 0.05})
    assert cfg.risk.limits().intratrade_drawdown_pct == 0.05


@pytest.mark.parametrize(
    "overrides",
    [
        {"paper": {"partial_fill_probability": 1.5}},
        {"paper": {"max_partial_fills": 0}},
        {"paper": {"starting_cash": 0}},
        {"general": {"queue_size": 0}},
    ],
)
def test_invalid_values_are_rejected(overrides) -> None:
    with pytest.raises(ValidationError):
        AppConfig(**overrides)


def test_build_engine_wires_config() -> None:
    cfg = _load(SAMPLE)
    eng = build_engine(cfg, rng=np.random.default_rng(cfg.general.seed))
    assert eng.strategy.name == "TrendFollower"
    assert eng.strategy.min_volume == 5000
    assert eng.account.starting_cash == 5000
    assert eng.account.max_position_per_symbol == 3
    assert eng.limits.max_daily_loss == 100
    assert eng.simulator.params.max_partial_fills == 4
    assert eng.recorder is None

    default_eng = build_engine(AppConfig())
    assert default_eng.strategy.name == "OBIMomentum"

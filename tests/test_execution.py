from __future__ import annotations

import numpy as np
import pytest

from paperbot.broker.execution import ExecutionParams, ExecutionSimulator
from paperbot.core.types import Order, Side


def _fixed_clock() -> int:
    return 1_700_000_000_000


def test_single_fill_without_slippage() -> None:
    sim = ExecutionSimulator(
        ExecutionParams(max_latency_ms=1, slippage_bps=0, partial_fill_probability=0, max_partial_fills=1),
        rng=np.random.default_rng(1),
        clock=_fixed_clock,
    )
    fills = sim.submit(Order(symbol="BTCUSDT", side=Side.BUY, qty=1, price=1000))
    assert len(fills) == 1
    fill = fills[0]
    assert fill.price == 1000
    assert fill.slippage == 0
    assert fill.qty == 1
    assert 0 <= fill.latency_ms <= 1
    assert fill.timestamp == _fixed_clock() + fill.latency_ms


def test_partials_slippage_and_latency_stay_in_bounds() -> None:
    params = ExecutionParams(max_latency_ms=20, slippage_bps=10, partial_fill_probability=1.0, max_partial_fills=3)
    sim = ExecutionSimulator(params, rng=np.random.default_rng(42), clock=_fixed_clock)
    seen_counts = set()
    for side in (Side.BUY, Side.SELL):
        for _ in range(300):
            order = Order(symbol="ETHUSDT", side=side, qty=2, price=2000)
            fills = sim.submit(order)
            seen_counts.add(len(fills))
            assert 1 <= len(fills) <= 3
            assert sum(f.qty for f in fills) == pytest.approx(order.qty, abs=1e-9)
            for f in fills:
                assert f.qty > 0
                assert 0 <= f.latency_ms <= 20
                assert f.timestamp == _fixed_clock() + f.latency_ms
                assert abs(f.price - 2000) <= 2000 * 10 / 10000 + 1e-9
                assert f.slippage == pytest.approx(f.price - 2000)
                assert f.side is side
    assert seen_counts == {1, 2, 3}


def test_partial_fills_disabled_by_probability_or_max() -> None:
    for params in (
        ExecutionParams(partial_fill_probability=0.0, max_partial_fills=5),
        ExecutionParams(partial_fill_probability=1.0, max_partial_fills=1),
    ):
        sim = ExecutionSimulator(params, rng=np.random.default_rng(5))
        for _ in range(50):
            assert len(sim.submit(Order(symbol="X", side=Side.BUY, qty=3, price=10))) == 1


def test_same_seed_same_fills() -> None:
    params = ExecutionParams(max_latency_ms=50, slippage_bps=25, partial_fill_probability=0.5, max_partial_fills=4)
    order = Order(symbol="SOLUSDT", side=Side.SELL, qty=7.5, price=150)
    a = ExecutionSimulator(params, rng=np.random.default_rng(99), clock=_fixed_clock)
    b = ExecutionSimulator(params, rng=np.random.default_rng(99), clock=_fixed_clock)
    for _ in range(20):
        assert a.submit(order) == b.submit(order)


def test_non_positive_reference_price_gets_no_slippage() -> None:
    sim = ExecutionSimulator(ExecutionParams(slippage_bps=50), rng=np.random.default_rng(0))
    fills = sim.submit(Order(symbol="X", side=Side.BUY, qty=1, price=0))
    assert [f.price for f in fills] == [0]


def test_zero_latency_when_disabled() -> None:
    sim = ExecutionSimulator(ExecutionParams(max_latency_ms=0), rng=np.random.default_rng(0), clock=_fixed_clock)
    fill = sim.submit(Order(symbol="X", side=Side.BUY, qty=1, price=10))[0]
    assert fill.latency_ms == 0
    assert fill.timestamp == _fixed_clock()


def test_rejects_non_positive_quantity() -> None:
    sim = ExecutionSimulator()
    with pytest.raises(ValueError):
        sim.submit(Order(symbol="X", side=Side.BUY, qty=0, price=10))


def test_fill_to_dict_is_json_friendly() -> None:
    sim = ExecutionSimulator(ExecutionParams(slippage_bps=0, max_latency_ms=0), clock=_fixed_clock)
    d = sim.submit(Order(symbol="X", side=Side.SELL, qty=1.5, price=10))[0].to_dict()
    assert d == {"symbol": "X", "side": "SELL", "qty": 1.5, "price": 10.0, "slippage": 0.0, "latency_ms": 0, "ts": _fixed_clock()}

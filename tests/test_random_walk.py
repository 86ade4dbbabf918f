from __future__ import annotations

import itertools
import queue
import threading
import time

import numpy as np

from paperbot.data.random_walk import RandomWalkFeed, RandomWalkParams, start_producer

T0 = 1_700_000_000_000


def _feed(seed: int, symbols=("ETHUSDT", "BTCUSDT", "ETHUSDT", " "), **params) -> RandomWalkFeed:
    clock = itertools.count(T0, 500)
    return RandomWalkFeed(list(symbols), RandomWalkParams(**params), rng=np.random.default_rng(seed), clock=lambda: next(clock))


def test_symbols_are_deduplicated_and_sorted() -> None:
    assert _feed(0).symbols == ["BTCUSDT", "ETHUSDT"]


def test_observations_cycle_symbols_with_positive_prices() -> None:
    obs = list(itertools.islice(_feed(1, volatility=0.05).observations(), 200))
    assert [o.symbol for o in obs[:4]] == ["BTCUSDT", "ETHUSDT", "BTCUSDT", "ETHUSDT"]
    assert all(o.price > 0 and o.size >= 0 and o.side in (1, -1) for o in obs)
    # one clock read per round
    assert obs[0].timestamp == obs[1].timestamp
    assert obs[2].timestamp == obs[0].timestamp + 500


def test_same_seed_same_path() -> None:
    a = list(itertools.islice(_feed(5).observations(), 50))
    b = list(itertools.islice(_feed(5).observations(), 50))
    assert a == b


def test_no_symbols_yields_nothing() -> None:
    assert list(_feed(0, symbols=()).observations()) == []


def test_producer_stops_on_cancel_with_full_queue() -> None:
    feed = _feed(2, interval_ms=1)
    q: queue.Queue = queue.Queue(maxsize=5)
    stop = threading.Event()
    t = start_producer(feed, q, stop)
    deadline = time.time() + 5
    while not q.full() and time.time() < deadline:
        time.sleep(0.01)
    assert q.full()
    stop.set()
    t.join(timeout=2)
    assert not t.is_alive()


def test_feed_failure_cancels_session() -> None:
    def broken_clock() -> int:
        raise RuntimeError("clock unavailable")

    feed = RandomWalkFeed(["BTCUSDT"], rng=np.random.default_rng(0), clock=broken_clock)
    stop = threading.Event()
    t = start_producer(feed, queue.Queue(), stop)
    t.join(timeout=2)
    assert stop.is_set()

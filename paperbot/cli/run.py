from __future__ import annotations

import argparse
import queue
import signal
import threading
from typing import Optional

import numpy as np

from paperbot.broker.execution import ExecutionSimulator
from paperbot.broker.paper import PaperAccount
from paperbot.core.config import AppConfig
from paperbot.core.engine import PaperEngine
from paperbot.core.env import load_local_environment
from paperbot.core.logging import get_logger, setup_logging
from paperbot.data.random_walk import RandomWalkFeed, start_producer
from paperbot.monitor.display import render_account, render_fills
from paperbot.monitor.reporter import write_equity_curve
from paperbot.monitor.storage import FillHistory, JsonlFillRecorder, open_recorder
from paperbot.strategy.factory import build_strategy


def build_engine(
    cfg: AppConfig,
    rng: Optional[np.random.Generator] = None,
    recorder: Optional[JsonlFillRecorder] = None,
) -> PaperEngine:
    log = get_logger()
    strategy = build_strategy(cfg.strategy.mode, cfg.strategy.strategy_params())
    log.info(f"Strategy initialized: {strategy.name} (mode={cfg.strategy.mode!r})")

    account = PaperAccount(
        starting_cash=cfg.paper.starting_cash,
        max_position_per_symbol=cfg.paper.max_position_per_symbol,
        max_position_notional=cfg.paper.max_position_notional_usd,
    )
    simulator = ExecutionSimulator(cfg.paper.execution_params(), rng=rng)
    return PaperEngine(
        strategy=strategy,
        limits=cfg.risk.limits(),
        simulator=simulator,
        account=account,
        history=FillHistory(cfg.paper.history_capacity),
        recorder=recorder,
    )


def main() -> None:
    parser = argparse.ArgumentParser(description="PaperBot simulated trading loop")
    parser.add_argument("--config", type=str, default="configs/paper.yaml")
    parser.add_argument("--with-dashboard", action="store_true", help="Serve the read-only status API")
    parser.add_argument("--report-dir", type=str, default=None, help="Write equity_curve.csv here on exit")
    args = parser.parse_args()

    load_local_environment()
    cfg = AppConfig.load(args.config)
    setup_logging(log_dir=cfg.monitor.log_dir, level=cfg.monitor.log_level)
    log = get_logger()

    if cfg.data.provider.lower() != "random_walk":
        log.error(f"Unsupported data provider {cfg.data.provider!r}; only 'random_walk' is built in")
        return

    log.info("=" * 60)
    log.info("PaperBot starting...")
    log.info(f"Config: {args.config}")
    log.info(f"Symbols: {', '.join(cfg.general.symbols)}")
    log.info(f"Starting cash: {cfg.paper.starting_cash:.2f}")

    seed = cfg.general.seed
    recorder = open_recorder(cfg.paper.fills_path)
    engine = build_engine(cfg, rng=np.random.default_rng(seed), recorder=recorder)
    feed = RandomWalkFeed(
        cfg.general.symbols,
        cfg.data.random_walk_params(),
        rng=np.random.default_rng(None if seed is None else seed + 1),
    )

    observations: queue.Queue = queue.Queue(maxsize=cfg.general.queue_size)
    stop = threading.Event()

    def _on_signal(signum, _frame) -> None:
        log.info(f"Received signal {signum}; shutting down")
        stop.set()

    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    if args.with_dashboard or cfg.monitor.dashboard_enabled:
        def run_dashboard() -> None:
            import uvicorn

            from paperbot.webapp.api import create_app

            uvicorn.run(create_app(engine), host=cfg.monitor.host, port=cfg.monitor.port, log_level="warning")

        threading.Thread(target=run_dashboard, name="dashboard", daemon=True).start()
        log.info(f"Paper HTTP API up on http://{cfg.monitor.host}:{cfg.monitor.port}")

    producer = start_producer(feed, observations, stop)
    try:
        engine.run(observations, stop)
    finally:
        stop.set()
        producer.join(timeout=2.0)
        if recorder is not None:
            recorder.close()

    render_account(engine.account_snapshot())
    render_fills(engine.history.snapshot())

    report_dir = args.report_dir or cfg.monitor.report_dir
    if report_dir:
        out_csv = write_equity_curve(engine.state.snapshot()["equity_curve"], report_dir)
        if out_csv is not None:
            log.info(f"Saved equity curve to {out_csv}")


if __name__ == "__main__":
    main()

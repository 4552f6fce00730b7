"""SolFlow — application entry point.

Boots the FastAPI internal server and provides the CLI entry point for
monitor, yields, and serve modes.
"""

import logging

from fastapi import FastAPI

from solflow.api.routers import router

app = FastAPI(title="SolFlow Internal API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("solflow")


@app.get("/health")
async def health():
    """Liveness probe."""
    return {"status": "ok"}


def warn_if_live(paper_trading: bool) -> bool:
    """Log a prominent warning when swaps go to the live aggregator.

    Returns ``True`` if paper trading is off.
    """
    if not paper_trading:
        logger.warning(
            "LIVE SWAP MODE — quotes and swap transactions are requested from Jupiter."
        )
        return True
    return False


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments and dispatch to the appropriate mode."""
    import argparse
    import asyncio
    import signal

    from solflow.config import load_config

    parser = argparse.ArgumentParser(description="SolFlow strategy engine")
    parser.add_argument(
        "--mode",
        choices=["monitor", "yields", "serve"],
        default="monitor",
        help="Run mode (default: monitor)",
    )
    parser.add_argument(
        "--strategy",
        action="append",
        default=[],
        help="Strategy description to monitor; repeat for several assets",
    )
    parser.add_argument(
        "--max-cycles",
        type=int,
        default=0,
        help="Stop each monitor after this many ticks (0 = unlimited)",
    )
    parser.add_argument(
        "--total-value",
        type=float,
        default=10_000.0,
        help="Portfolio value for --mode yields allocation (USD)",
    )
    args = parser.parse_args()

    config = load_config()
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if args.mode == "yields":
        asyncio.run(_print_yields(config, args.total_value))
        return

    if args.mode == "monitor" and not args.strategy:
        parser.error("--mode monitor needs at least one --strategy")

    warn_if_live(config.paper_trading)
    manager = _build_manager(config)

    def handle_shutdown(signum, frame):
        logger.info("Shutdown signal received — stopping gracefully.")
        manager.stop_all()

    signal.signal(signal.SIGINT, handle_shutdown)

    if args.mode == "serve":
        asyncio.run(_serve(manager, config, args.strategy, args.max_cycles))
    else:
        asyncio.run(_run_monitors(manager, args.strategy, args.max_cycles))


def _build_manager(config):
    """Wire price feed, executor, evaluator and tracker into a manager."""
    from solflow.api.routers import configure_routers
    from solflow.broker.jupiter_client import JupiterClient
    from solflow.broker.pyth_client import PythClient
    from solflow.engine_manager import MonitorManager
    from solflow.performance.tracker import PnLTracker
    from solflow.strategy.evaluator import ConditionEvaluator
    from solflow.trading.executor import TradingExecutor

    executor = TradingExecutor(
        swap_provider=None if config.paper_trading else JupiterClient(config),
        user_public_key=config.wallet_public_key,
        paper_trading=config.paper_trading,
        slippage_bps=config.slippage_bps,
    )
    tracker = PnLTracker()
    manager = MonitorManager(
        price_feed=PythClient(config),
        executor=executor,
        evaluator=ConditionEvaluator(config.price_history_size),
        tracker=tracker,
        poll_interval=config.poll_interval_seconds,
    )
    configure_routers(tracker=tracker, manager=manager)
    return manager


async def _run_monitors(manager, texts: list[str], max_cycles: int) -> None:
    """Parse each strategy text and monitor until stopped."""
    from solflow.strategy.parser import StrategyParser

    parser = StrategyParser()
    for text in texts:
        strategy = parser.parse(text)
        logger.info(
            "Monitoring '%s' on %s (entry %s %s %s, exit %s %s %s)",
            strategy.name, strategy.asset,
            strategy.entry.indicator or strategy.entry.type,
            strategy.entry.condition, strategy.entry.value,
            strategy.exit.indicator or strategy.exit.type,
            strategy.exit.condition, strategy.exit.value,
        )
        await manager.start(strategy, max_cycles=max_cycles)

    await manager.wait_all()

    for name in manager.tracker.strategy_names():
        perf = manager.tracker.calculate_performance(name)
        logger.info(
            "'%s': %d trades, PnL $%.2f, win rate %.1f%%, max drawdown %.1f%%",
            name, perf.total_trades, perf.total_pnl, perf.win_rate, perf.max_drawdown,
        )


async def _serve(manager, config, texts: list[str], max_cycles: int) -> None:
    """Start the API server and any requested monitors concurrently."""
    import asyncio

    import uvicorn

    uvi_config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=config.health_port,
        log_level=config.log_level.lower(),
    )
    server = uvicorn.Server(uvi_config)

    logger.info("API available at http://localhost:%d", config.health_port)
    results = await asyncio.gather(
        server.serve(),
        _run_monitors(manager, texts, max_cycles),
        return_exceptions=True,
    )
    logger.info("SolFlow stopped. Results: %s", results)


async def _print_yields(config, total_value: float) -> None:
    """Log the top yields and the target allocation for the configured tolerance."""
    from solflow.defi.rebalancer import RebalancingEngine, calculate_risk_score
    from solflow.defi.yields import YieldAggregator

    aggregator = YieldAggregator()
    engine = RebalancingEngine(aggregator)

    for y in await aggregator.get_top_yields(8):
        logger.info(
            "%-9s %-20s APY %6.1f%%  TVL $%.0f  risk %-6s score %.0f",
            y.protocol, y.pool, y.apy, y.tvl, y.risk, calculate_risk_score(y),
        )

    allocation = await engine.generate_optimal_allocation(total_value, config.risk_tolerance)
    for s in allocation:
        logger.info(
            "Allocate $%.2f → %s %s", s.allocation, s.yield_.protocol, s.yield_.pool,
        )


if __name__ == "__main__":
    _run_cli()

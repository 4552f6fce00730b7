"""MonitorManager — runs one StrategyMonitor per asset concurrently.

Monitors share the condition evaluator (which keeps a separate price
history per asset) and the P&L tracker (which keeps a separate ledger per
strategy), so no cross-asset locking is needed.  Activating a strategy on
an asset that is already monitored replaces the previous strategy; an
open position carries over to the replacement.
"""

import asyncio
import logging
from typing import Optional

from solflow.engine import PriceFeed, StrategyMonitor
from solflow.performance.tracker import PnLTracker
from solflow.strategy.evaluator import ConditionEvaluator
from solflow.strategy.models import ParsedStrategy
from solflow.trading.executor import TradingExecutor

logger = logging.getLogger("solflow.engine_manager")


class MonitorManager:
    """Lifecycle manager for per-asset strategy monitors.

    Args:
        price_feed: Shared ``PythClient`` instance.
        executor: Shared ``TradingExecutor``.
        evaluator: Shared evaluator; created if omitted.
        tracker: Shared P&L tracker; created if omitted.
        poll_interval: Seconds between ticks for every monitor.
    """

    def __init__(
        self,
        price_feed: PriceFeed,
        executor: TradingExecutor,
        evaluator: Optional[ConditionEvaluator] = None,
        tracker: Optional[PnLTracker] = None,
        poll_interval: int = 2,
    ) -> None:
        self._price_feed = price_feed
        self._executor = executor
        self._evaluator = evaluator or ConditionEvaluator()
        self._tracker = tracker or PnLTracker()
        self._poll_interval = poll_interval
        self._monitors: dict[str, StrategyMonitor] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    # ── Public API ───────────────────────────────────────────────────────

    @property
    def monitors(self) -> dict[str, StrategyMonitor]:
        """Map of asset → ``StrategyMonitor``."""
        return dict(self._monitors)

    @property
    def tracker(self) -> PnLTracker:
        return self._tracker

    @property
    def evaluator(self) -> ConditionEvaluator:
        return self._evaluator

    def activate(self, strategy: ParsedStrategy) -> StrategyMonitor:
        """Register *strategy* as the active one for its asset.

        A strategy already active on the same asset is stopped first, and
        any position it holds is handed to the new monitor.  This does not
        wait for the old monitor's loop; use :meth:`start` for monitors
        that are running.
        """
        previous = self._monitors.get(strategy.asset)
        self.stop(strategy.asset)
        monitor = StrategyMonitor(
            strategy=strategy,
            price_feed=self._price_feed,
            executor=self._executor,
            evaluator=self._evaluator,
            tracker=self._tracker,
            poll_interval=self._poll_interval,
        )
        if previous is not None and previous.open_trade is not None:
            monitor.adopt_position(previous.open_trade)
            logger.info(
                "'%s' takes over the open %s position of '%s'",
                strategy.name, strategy.asset, previous.strategy.name,
            )
        self._monitors[strategy.asset] = monitor
        logger.info("Activated '%s' on %s", strategy.name, strategy.asset)
        return monitor

    async def start(self, strategy: ParsedStrategy, max_cycles: int = 0) -> asyncio.Task:
        """Activate *strategy* and schedule its polling loop.

        If another monitor is running on the asset, it is stopped and its
        loop awaited first, so its last tick and final status update land
        before the new monitor begins.
        """
        previous_task = self._tasks.pop(strategy.asset, None)
        if previous_task is not None and not previous_task.done():
            self.stop(strategy.asset)
            try:
                await previous_task
            except Exception as exc:  # pragma: no cover
                logger.error("Monitor for %s crashed: %s", strategy.asset, exc)

        monitor = self.activate(strategy)
        task = asyncio.create_task(monitor.run(max_cycles=max_cycles))
        self._tasks[strategy.asset] = task
        return task

    async def wait_all(self) -> dict[str, list[dict]]:
        """Wait for every scheduled monitor to finish.

        Returns:
            ``{asset: [tick_results]}`` for every monitor that was started.
        """
        results: dict[str, list[dict]] = {}
        for asset, task in list(self._tasks.items()):
            try:
                results[asset] = await task
            except Exception as exc:  # pragma: no cover
                logger.error("Monitor for %s crashed: %s", asset, exc)
                results[asset] = [{"action": "error", "reason": str(exc)}]
        return results

    def stop(self, asset: str) -> None:
        """Stop monitoring *asset*; its in-flight tick is allowed to finish."""
        monitor = self._monitors.get(asset)
        if monitor:
            monitor.stop()
            logger.info("Stop signal sent to monitor for %s.", asset)

    def stop_all(self) -> None:
        for asset in list(self._monitors):
            self.stop(asset)

    def get_status(self, asset: Optional[str] = None) -> dict:
        """Return per-monitor status, or a single monitor's when *asset* is given."""
        if asset is not None:
            monitor = self._monitors.get(asset)
            if monitor is None:
                return {"error": f"Unknown asset: {asset}"}
            return self._describe(monitor)
        return {"monitors": {a: self._describe(m) for a, m in self._monitors.items()}}

    @staticmethod
    def _describe(monitor: StrategyMonitor) -> dict:
        return {
            "strategy": monitor.strategy.name,
            "asset": monitor.asset,
            "running": monitor.running,
            "state": monitor.state,
            "cycle_count": monitor.cycle_count,
        }

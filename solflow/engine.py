"""SolFlow — strategy monitor (polling loop).

Connects the price feed, condition evaluator, trade executor and P&L
tracker for one parsed strategy on one asset.  Each tick fetches a price,
appends it to the asset's history, evaluates the entry or exit rule and
records any resulting trade.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional, Protocol

from solflow.api.routers import update_monitor_status
from solflow.broker.models import PriceData
from solflow.performance.tracker import PnLTracker
from solflow.strategy.evaluator import ConditionEvaluator
from solflow.strategy.models import ParsedStrategy, Trade
from solflow.trading.executor import TradingExecutor

logger = logging.getLogger("solflow")

AWAITING_ENTRY = "awaiting_entry"
AWAITING_EXIT = "awaiting_exit"


class PriceFeed(Protocol):
    """The slice of ``PythClient`` the monitor relies on."""

    async def get_price(self, symbol: str) -> PriceData:
        ...


class StrategyMonitor:
    """Runs one strategy against live prices, one tick per call.

    Args:
        strategy: The parsed strategy to monitor.
        price_feed: A ``PythClient`` (or compatible duck-type / mock).
        executor: Executes buys and sells.
        evaluator: Shared evaluator owning the per-asset price histories.
        tracker: Shared P&L tracker receiving every trade.
        poll_interval: Seconds between ticks.
    """

    def __init__(
        self,
        strategy: ParsedStrategy,
        price_feed: PriceFeed,
        executor: TradingExecutor,
        evaluator: Optional[ConditionEvaluator] = None,
        tracker: Optional[PnLTracker] = None,
        poll_interval: int = 2,
    ) -> None:
        self._strategy = strategy
        self._price_feed = price_feed
        self._executor = executor
        self._evaluator = evaluator or ConditionEvaluator()
        self._tracker = tracker or PnLTracker()
        self._poll_interval = poll_interval
        self._state: str = AWAITING_ENTRY
        self._open_trade: Optional[Trade] = None
        self._running: bool = False
        self._cycle_count: int = 0

    @property
    def strategy(self) -> ParsedStrategy:
        return self._strategy

    @property
    def asset(self) -> str:
        return self._strategy.asset

    @property
    def state(self) -> str:
        """``"awaiting_entry"`` or ``"awaiting_exit"``."""
        return self._state

    @property
    def running(self) -> bool:
        return self._running

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    @property
    def tracker(self) -> PnLTracker:
        return self._tracker

    @property
    def open_trade(self) -> Optional[Trade]:
        """The entry trade of the position being held, if any."""
        return self._open_trade

    # ── Lifecycle ────────────────────────────────────────────────────────

    def start(self) -> None:
        self._running = True
        update_monitor_status(
            self.asset,
            strategy=self._strategy.name,
            running=True,
            state=self._state,
            paper_trading=self._executor.paper_trading,
            started_at=datetime.now(timezone.utc).isoformat(),
        )

    def stop(self) -> None:
        """Signal the monitor to stop after the current tick."""
        self._running = False

    def adopt_position(self, trade: Trade) -> None:
        """Take over an open position left by a replaced monitor.

        The monitor moves to ``awaiting_exit`` and its next exit sells
        *trade*'s amount into *trade*'s ledger, so that ledger stays an
        alternating buy/sell sequence.
        """
        if trade.asset != self.asset:
            raise ValueError(
                f"Cannot adopt a {trade.asset} position on a {self.asset} monitor"
            )
        self._open_trade = trade
        self._state = AWAITING_EXIT

    # ── Polling loop ─────────────────────────────────────────────────────

    async def run(self, max_cycles: int = 0) -> list[dict]:
        """Tick until stopped.

        Args:
            max_cycles: Stop after this many ticks (0 = unlimited).

        Returns:
            List of per-tick result dicts.
        """
        self.start()
        results: list[dict] = []
        cycle = 0

        while self._running:
            cycle += 1
            self._cycle_count += 1
            try:
                result = await self.run_once()
            except Exception as exc:
                logger.error("Monitor %s tick %d error: %s", self.asset, cycle, exc)
                result = {"action": "error", "reason": str(exc)}
            results.append(result)
            logger.debug("Monitor %s tick %d: %s", self.asset, cycle, result["action"])
            update_monitor_status(
                self.asset,
                cycle_count=self._cycle_count,
                last_tick_at=datetime.now(timezone.utc).isoformat(),
                last_action=result["action"],
                state=self._state,
            )

            if max_cycles > 0 and cycle >= max_cycles:
                break

            # Interruptible sleep: checks _running every second
            for _ in range(self._poll_interval):
                if not self._running:
                    break
                await asyncio.sleep(1)

        self._running = False
        update_monitor_status(self.asset, running=False)
        return results

    # ── Single tick ──────────────────────────────────────────────────────

    async def run_once(self) -> dict:
        """Execute one tick.

        Returns a dict describing the action taken:

        - ``{"action": "skipped", "reason": "no_entry_signal" | "no_exit_signal"}``
        - ``{"action": "entry", ...}`` / ``{"action": "exit", ...}``
        - ``{"action": "entry_failed" | "exit_failed", ...}``
        """
        quote = await self._price_feed.get_price(self.asset)
        price = quote.price

        if self._state == AWAITING_ENTRY:
            triggered = self._evaluator.observe(self.asset, price, self._strategy.entry)
            if not triggered:
                return {"action": "skipped", "reason": "no_entry_signal", "price": price}
            return await self._enter(price, quote.source)

        self._evaluator.update_price_history(self.asset, price)
        reason = self._exit_reason(price)
        if reason is None:
            return {"action": "skipped", "reason": "no_exit_signal", "price": price}
        return await self._exit(price, reason)

    def _exit_reason(self, price: float) -> Optional[str]:
        """Stop loss, then take profit, then the strategy's exit rule."""
        entry_price = self._open_trade.price if self._open_trade else None
        if entry_price:
            change_pct = (price - entry_price) / entry_price * 100.0
            stop_loss = self._strategy.stop_loss
            take_profit = self._strategy.take_profit
            if stop_loss is not None and change_pct <= -stop_loss:
                return "stop_loss"
            if take_profit is not None and change_pct >= take_profit:
                return "take_profit"

        history = self._evaluator.get_price_history(self.asset)
        if self._evaluator.check_condition(self._strategy.exit, price, history):
            return "exit_signal"
        return None

    async def _enter(self, price: float, price_source: str) -> dict:
        trade = await self._executor.buy(
            self._strategy.name, self.asset, self._strategy.max_position, price,
        )
        self._tracker.record_trade(trade)
        if trade.status == "failed":
            return {"action": "entry_failed", "price": price, "trade_id": trade.id}

        self._open_trade = trade
        self._state = AWAITING_EXIT
        logger.info(
            "Entered %s: %.6f @ %.4f (%s price)",
            self.asset, trade.amount, trade.price, price_source,
        )
        return {
            "action": "entry",
            "price": trade.price,
            "amount": trade.amount,
            "trade_id": trade.id,
            "status": trade.status,
        }

    async def _exit(self, price: float, reason: str) -> dict:
        amount = self._open_trade.amount if self._open_trade else 0.0
        # The sell closes the entry, so it goes to the entry's ledger.
        ledger = self._open_trade.strategy if self._open_trade else self._strategy.name
        trade = await self._executor.sell(ledger, self.asset, amount, price)
        self._tracker.record_trade(trade)
        if trade.status == "failed":
            # Stay in the position; the exit is retried on the next tick.
            return {"action": "exit_failed", "reason": reason, "price": price, "trade_id": trade.id}

        entry_price = self._open_trade.price if self._open_trade else price
        self._open_trade = None
        self._state = AWAITING_ENTRY
        logger.info("Exited %s @ %.4f (%s)", self.asset, trade.price, reason)
        return {
            "action": "exit",
            "reason": reason,
            "price": trade.price,
            "amount": trade.amount,
            "pnl": (trade.price - entry_price) * amount,
            "trade_id": trade.id,
            "status": trade.status,
        }

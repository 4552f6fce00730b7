"""P&L tracker — per-strategy trade ledgers and derived performance."""

import logging

from solflow.performance.stats import max_drawdown_pct, sharpe_ratio
from solflow.strategy.models import StrategyPerformance, Trade

logger = logging.getLogger("solflow")

_AWAITING_ENTRY = "awaiting_entry"
_AWAITING_EXIT = "awaiting_exit"


def pair_trades(trades: list[Trade]) -> list[tuple[Trade, Trade]]:
    """Match trades into realised ``(buy, sell)`` round trips.

    Trades are read two at a time in ledger order: the first of each slot
    pair is taken as the entry, the second as the exit.  A slot pair only
    counts when it is literally a buy followed by a sell; a trailing
    entry with no exit yet is left open.
    """
    pairs: list[tuple[Trade, Trade]] = []
    state = _AWAITING_ENTRY
    entry: Trade | None = None
    for trade in trades:
        if state == _AWAITING_ENTRY:
            entry = trade
            state = _AWAITING_EXIT
            continue
        if entry is not None and entry.type == "buy" and trade.type == "sell":
            pairs.append((entry, trade))
        entry = None
        state = _AWAITING_ENTRY
    return pairs


class PnLTracker:
    """Keeps an append-only trade ledger per strategy name."""

    def __init__(self) -> None:
        self._ledgers: dict[str, list[Trade]] = {}

    def record_trade(self, trade: Trade) -> None:
        """Append *trade* to its strategy's ledger."""
        self._ledgers.setdefault(trade.strategy, []).append(trade)
        logger.info(
            "Recorded %s %s %.6f @ %.4f for '%s' (%s)",
            trade.type, trade.asset, trade.amount, trade.price,
            trade.strategy, trade.status,
        )

    def get_trades(self, strategy_name: str) -> list[Trade]:
        return list(self._ledgers.get(strategy_name, []))

    def strategy_names(self) -> list[str]:
        return list(self._ledgers.keys())

    def calculate_performance(self, strategy_name: str) -> StrategyPerformance:
        """Summarise realised performance for *strategy_name*.

        Failed executions stay in the ledger but are not paired.  An empty
        ledger yields an all-zero summary.
        """
        ledger = self._ledgers.get(strategy_name, [])
        trades = [t for t in ledger if t.status != "failed"]
        if not trades:
            return StrategyPerformance(strategy_name=strategy_name)

        pnls = [
            (sell.price - buy.price) * buy.amount
            for buy, sell in pair_trades(trades)
        ]
        total_pnl = sum(pnls)
        wins = sum(1 for p in pnls if p > 0)

        completed = len(trades) // 2
        win_rate = wins / completed * 100.0 if completed else 0.0
        average_trade = total_pnl / completed if completed else 0.0

        first_value = trades[0].value or 1.0

        return StrategyPerformance(
            strategy_name=strategy_name,
            total_trades=len(trades),
            win_rate=win_rate,
            total_pnl=total_pnl,
            total_pnl_percent=total_pnl / first_value * 100.0,
            average_trade=average_trade,
            max_drawdown=max_drawdown_pct(pnls),
            sharpe_ratio=sharpe_ratio(average_trade, pnls),
        )

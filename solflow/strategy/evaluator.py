"""Condition evaluator — checks strategy conditions against rolling price history.

Owns one bounded price history per asset.  The strategy monitor is the
single writer for each asset; ``observe`` appends and evaluates in one
synchronous step so an evaluation never sees a half-applied update.
"""

from collections import deque
from typing import Optional

from solflow.strategy.indicators import (
    calculate_bollinger,
    calculate_macd,
    calculate_rsi,
)
from solflow.strategy.models import StrategyCondition

DEFAULT_HISTORY_SIZE = 200


class PriceHistoryRegistry:
    """Per-asset ring buffers of recent prices.

    Args:
        capacity: Maximum samples kept per asset; the oldest is evicted
                  first once full.
    """

    def __init__(self, capacity: int = DEFAULT_HISTORY_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self._capacity = capacity
        self._histories: dict[str, deque[float]] = {}

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, asset: str, price: float) -> None:
        history = self._histories.get(asset)
        if history is None:
            history = deque(maxlen=self._capacity)
            self._histories[asset] = history
        history.append(price)

    def snapshot(self, asset: str) -> list[float]:
        """Copy of *asset*'s history, oldest first (empty if unknown)."""
        return list(self._histories.get(asset, ()))

    def assets(self) -> list[str]:
        return list(self._histories.keys())


class ConditionEvaluator:
    """Evaluates ``StrategyCondition``s using the indicator functions."""

    def __init__(self, history_size: int = DEFAULT_HISTORY_SIZE) -> None:
        self._registry = PriceHistoryRegistry(history_size)

    # ── History ──────────────────────────────────────────────────────────

    def update_price_history(self, asset: str, price: float) -> None:
        """Append *price* to *asset*'s history, evicting past capacity."""
        self._registry.append(asset, price)

    def get_price_history(self, asset: str) -> list[float]:
        return self._registry.snapshot(asset)

    def observe(
        self,
        asset: str,
        price: float,
        condition: Optional[StrategyCondition] = None,
    ) -> bool:
        """Record a tick for *asset* and evaluate *condition* against it.

        Returns ``False`` when no condition is given.
        """
        self._registry.append(asset, price)
        if condition is None:
            return False
        return self.check_condition(condition, price, self._registry.snapshot(asset))

    # ── Evaluation ───────────────────────────────────────────────────────

    def check_condition(
        self,
        condition: StrategyCondition,
        current_price: float,
        history: list[float],
    ) -> bool:
        """Return ``True`` when *condition* holds for the latest tick.

        *history* includes *current_price* as its last sample.  Conditions
        that cannot be evaluated (unknown type or indicator, or too little
        history for a price move) are treated as not met.
        """
        if condition.type == "price":
            return self._check_price(condition, current_price, history)
        if condition.type == "indicator" and history:
            if condition.indicator == "RSI":
                return self._check_rsi(condition, history)
            if condition.indicator == "MACD":
                # Histogram sign stands in for "MACD above signal".
                return calculate_macd(history).histogram > 0
            if condition.indicator == "BB":
                bands = calculate_bollinger(history)
                if condition.value > 0:
                    return current_price > bands.upper
                return current_price < bands.lower
        return False

    @staticmethod
    def _check_price(
        condition: StrategyCondition,
        current_price: float,
        history: list[float],
    ) -> bool:
        if len(history) < 2 or history[-2] == 0:
            return False
        previous = history[-2]
        change_pct = (current_price - previous) / previous * 100.0
        if condition.condition == "<":
            return change_pct < -condition.value
        if condition.condition == ">":
            return change_pct > condition.value
        return False

    @staticmethod
    def _check_rsi(condition: StrategyCondition, history: list[float]) -> bool:
        rsi = calculate_rsi(history)
        op = condition.condition
        if op == "<":
            return rsi < condition.value
        if op == ">":
            return rsi > condition.value
        if op in ("crosses_above", "crosses_below"):
            previous = calculate_rsi(history[:-1])
            if op == "crosses_above":
                return previous < condition.value < rsi
            return previous > condition.value > rsi
        return False

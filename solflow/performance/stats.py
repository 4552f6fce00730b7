"""Trade-series statistics — pure functions over realised per-trade P&L."""

import math


def max_drawdown_pct(pnls: list[float]) -> float:
    """Maximum drawdown of the cumulative P&L curve, in percent.

    Tracks the running peak and measures each trough as
    ``(peak - cumulative) / max(peak, 1) × 100``; the floor of 1 keeps
    the ratio finite while the curve is still at or below zero.
    """
    cumulative = 0.0
    peak = 0.0
    max_dd = 0.0
    for p in pnls:
        cumulative += p
        if cumulative > peak:
            peak = cumulative
        dd = (peak - cumulative) / max(peak, 1.0) * 100.0
        if dd > max_dd:
            max_dd = dd
    return max_dd


def population_std(values: list[float]) -> float:
    """Population standard deviation (n); 0.0 for an empty series."""
    n = len(values)
    if n == 0:
        return 0.0
    mean = sum(values) / n
    return math.sqrt(sum((v - mean) ** 2 for v in values) / n)


def sharpe_ratio(average: float, pnls: list[float]) -> float:
    """Per-trade Sharpe ratio: *average* over the population std of *pnls*.

    Not annualised.  Returns 0.0 when there are no trades or the series
    has zero variance.
    """
    std = population_std(pnls)
    if std == 0:
        return 0.0
    return average / std

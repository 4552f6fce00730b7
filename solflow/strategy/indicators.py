"""Technical indicators — RSI, SMA, EMA, MACD, Bollinger Bands. Pure functions, no I/O.

Each function returns the latest indicator value for a chronological price
sequence.  Short sequences never raise: they resolve to the neutral or
degenerate fallbacks documented per function, because strategy conditions
are evaluated from the very first tick.
"""

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class MACDResult:
    """MACD line, signal line and histogram at the latest sample."""

    macd: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class BollingerBands:
    """Upper, middle and lower band at the latest sample."""

    upper: float
    middle: float
    lower: float


def _require_prices(prices: list[float]) -> None:
    if not prices:
        raise ValueError("Need at least 1 price, got 0")


# ── RSI ──────────────────────────────────────────────────────────────────


def calculate_rsi(prices: list[float], period: int = 14) -> float:
    """Calculate the Relative Strength Index over the last *period* deltas.

    Algorithm:
        1. delta = price[i] - price[i-1] for the last ``period + 1`` prices.
        2. avg_gain = sum(gains) / period, avg_loss = sum(|losses|) / period
        3. RSI = 100 - 100 / (1 + avg_gain / avg_loss)

    Returns ``50.0`` with fewer than ``period + 1`` prices and ``100.0``
    when there were no losses.  Rounded to 2 decimal places.
    """
    if len(prices) < period + 1:
        return 50.0

    recent = prices[-period - 1:]
    gains = 0.0
    losses = 0.0
    for i in range(1, len(recent)):
        change = recent[i] - recent[i - 1]
        if change > 0:
            gains += change
        else:
            losses += abs(change)

    avg_gain = gains / period
    avg_loss = losses / period
    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return round(100.0 - 100.0 / (1.0 + rs), 2)


# ── Moving averages ──────────────────────────────────────────────────────


def calculate_sma(prices: list[float], period: int) -> float:
    """Simple moving average of the last *period* prices.

    With fewer than *period* prices, returns the latest price.
    """
    _require_prices(prices)
    if len(prices) < period:
        return prices[-1]
    return sum(prices[-period:]) / period


def calculate_ema(prices: list[float], period: int) -> float:
    """Exponential moving average at the latest price.

    Seeded with the SMA of the first *period* prices, then
    ``ema = (price - ema) × k + ema`` with ``k = 2 / (period + 1)``.

    With fewer than *period* prices, returns the latest price.
    """
    _require_prices(prices)
    if len(prices) < period:
        return prices[-1]

    k = 2.0 / (period + 1)
    ema = sum(prices[:period]) / period
    for price in prices[period:]:
        ema = (price - ema) * k + ema
    return ema


# ── MACD ─────────────────────────────────────────────────────────────────


def calculate_macd(prices: list[float]) -> MACDResult:
    """MACD(12, 26) with an approximated signal line.

    The signal line is ``0.9 × macd`` rather than a 9-period EMA of the
    MACD series, so the histogram always carries the sign of the MACD line.
    Crossover rules built on the histogram depend on this approximation.
    """
    macd = calculate_ema(prices, 12) - calculate_ema(prices, 26)
    signal = macd * 0.9
    return MACDResult(macd=macd, signal=signal, histogram=macd - signal)


# ── Bollinger Bands ──────────────────────────────────────────────────────


def calculate_bollinger(
    prices: list[float],
    period: int = 20,
    std_dev: float = 2.0,
) -> BollingerBands:
    """Calculate Bollinger Bands at the latest price.

    Middle = SMA(*period*)
    Upper  = middle + *std_dev* × σ
    Lower  = middle − *std_dev* × σ

    σ is the population standard deviation of the last *period* prices
    around the middle band.  With fewer than *period* prices the middle
    band is the latest price and the window is whatever history exists.
    """
    middle = calculate_sma(prices, period)
    window = prices[-period:]
    variance = sum((p - middle) ** 2 for p in window) / period
    sigma = math.sqrt(variance)
    return BollingerBands(
        upper=middle + std_dev * sigma,
        middle=middle,
        lower=middle - std_dev * sigma,
    )

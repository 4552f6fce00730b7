"""Tests for solflow.strategy.indicators — RSI, SMA, EMA, MACD, Bollinger."""

import pytest

from solflow.strategy.indicators import (
    calculate_bollinger,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    calculate_sma,
)


def _alternating(start: float, up: float, down: float, deltas: int) -> list[float]:
    """Prices moving +up, -down, +up, ... for *deltas* steps."""
    prices = [start]
    for i in range(deltas):
        prices.append(prices[-1] + (up if i % 2 == 0 else -down))
    return prices


class TestRSI:
    def test_insufficient_history_is_neutral(self):
        assert calculate_rsi(list(range(14))) == 50.0

    def test_empty_is_neutral(self):
        assert calculate_rsi([]) == 50.0

    def test_only_gains_is_100(self):
        assert calculate_rsi([float(p) for p in range(1, 31)]) == 100.0

    def test_only_losses_is_0(self):
        assert calculate_rsi([float(p) for p in range(100, 70, -1)]) == 0.0

    def test_balanced_moves_is_50(self):
        assert calculate_rsi(_alternating(10.0, 1.0, 1.0, 14)) == 50.0

    def test_gains_twice_losses(self):
        # rs = 2 → 100 - 100/3
        assert calculate_rsi(_alternating(10.0, 2.0, 1.0, 14)) == 66.67

    def test_uses_only_last_period_deltas(self):
        prices = [float(p) for p in range(100, 50, -1)] + [float(p) for p in range(51, 66)]
        assert calculate_rsi(prices) == 100.0

    def test_custom_period(self):
        assert calculate_rsi([1.0, 2.0, 3.0], period=2) == 100.0


class TestMovingAverages:
    def test_sma_of_last_period(self):
        assert calculate_sma([1.0, 2.0, 3.0, 4.0], 2) == 3.5

    def test_sma_short_history_returns_latest(self):
        assert calculate_sma([5.0, 7.0], 10) == 7.0

    def test_sma_empty_raises(self):
        with pytest.raises(ValueError, match="at least 1"):
            calculate_sma([], 5)

    def test_ema_constant_series(self):
        assert calculate_ema([4.0] * 30, 12) == pytest.approx(4.0)

    def test_ema_short_history_returns_latest(self):
        assert calculate_ema([1.0, 2.0, 3.0], 5) == 3.0

    def test_ema_seeded_with_sma(self):
        # seed (1+2+3)/3 = 2, k = 0.5 → (4 - 2) * 0.5 + 2
        assert calculate_ema([1.0, 2.0, 3.0, 4.0], 3) == pytest.approx(3.0)


class TestMACD:
    def test_flat_prices_zero(self):
        result = calculate_macd([100.0] * 40)
        assert result.macd == pytest.approx(0.0)
        assert result.histogram == pytest.approx(0.0)

    def test_signal_is_ninety_percent_of_macd(self):
        result = calculate_macd([100.0 + i for i in range(40)])
        assert result.signal == pytest.approx(result.macd * 0.9)
        assert result.histogram == pytest.approx(result.macd * 0.1)

    def test_rising_prices_positive_histogram(self):
        assert calculate_macd([100.0 + i for i in range(40)]).histogram > 0

    def test_falling_prices_negative_histogram(self):
        assert calculate_macd([100.0 - i for i in range(40)]).histogram < 0


class TestBollinger:
    def test_constant_prices_collapse_bands(self):
        bands = calculate_bollinger([50.0] * 25)
        assert bands.upper == bands.middle == bands.lower == 50.0

    def test_population_std(self):
        bands = calculate_bollinger([1.0, 2.0, 3.0, 4.0], period=4)
        # mean 2.5, variance 1.25
        assert bands.middle == pytest.approx(2.5)
        assert bands.upper == pytest.approx(2.5 + 2 * 1.25 ** 0.5)
        assert bands.lower == pytest.approx(2.5 - 2 * 1.25 ** 0.5)

    def test_bands_are_ordered(self):
        bands = calculate_bollinger([100.0 + (i % 5) for i in range(30)])
        assert bands.lower <= bands.middle <= bands.upper

    def test_empty_raises(self):
        with pytest.raises(ValueError):
            calculate_bollinger([])

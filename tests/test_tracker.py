"""Tests for solflow.performance — trade pairing and strategy performance."""

import pytest

from solflow.performance.stats import max_drawdown_pct, population_std, sharpe_ratio
from solflow.performance.tracker import PnLTracker, pair_trades
from solflow.strategy.models import Trade


# ── Helpers ──────────────────────────────────────────────────────────────

_counter = 0


def _trade(side: str, price: float, amount: float = 1.0, status: str = "executed",
           strategy: str = "SOL RSI Strategy") -> Trade:
    global _counter
    _counter += 1
    return Trade(
        id=f"t{_counter}",
        strategy=strategy,
        timestamp=1_700_000_000_000.0 + _counter,
        type=side,
        asset="SOL/USDC",
        price=price,
        amount=amount,
        value=price * amount,
        status=status,
    )


def _tracker_with(*trades: Trade) -> PnLTracker:
    tracker = PnLTracker()
    for t in trades:
        tracker.record_trade(t)
    return tracker


# ── Pairing ──────────────────────────────────────────────────────────────


class TestPairTrades:
    def test_buy_then_sell(self):
        buy, sell = _trade("buy", 100.0), _trade("sell", 110.0)
        assert pair_trades([buy, sell]) == [(buy, sell)]

    def test_trailing_entry_left_open(self):
        trades = [_trade("buy", 100.0), _trade("sell", 110.0), _trade("buy", 105.0)]
        assert len(pair_trades(trades)) == 1

    def test_misordered_slot_not_paired(self):
        assert pair_trades([_trade("sell", 110.0), _trade("buy", 100.0)]) == []

    def test_slots_are_fixed_pairs(self):
        # (sell, buy) is skipped as a slot; the next slot (sell, buy) too.
        trades = [
            _trade("sell", 1.0), _trade("buy", 2.0),
            _trade("sell", 3.0), _trade("buy", 4.0),
        ]
        assert pair_trades(trades) == []


# ── Performance ──────────────────────────────────────────────────────────


class TestCalculatePerformance:
    def test_single_winning_round_trip(self):
        tracker = _tracker_with(_trade("buy", 100.0), _trade("sell", 110.0))
        perf = tracker.calculate_performance("SOL RSI Strategy")
        assert perf.total_trades == 2
        assert perf.total_pnl == pytest.approx(10.0)
        assert perf.win_rate == 100.0
        assert perf.average_trade == pytest.approx(10.0)
        assert perf.total_pnl_percent == pytest.approx(10.0)
        assert perf.max_drawdown == 0.0
        assert perf.sharpe_ratio == 0.0

    def test_empty_ledger_is_zero(self):
        perf = PnLTracker().calculate_performance("nothing")
        assert perf.strategy_name == "nothing"
        assert perf.total_trades == 0
        assert perf.total_pnl == 0.0
        assert perf.win_rate == 0.0
        assert perf.max_drawdown == 0.0
        assert perf.sharpe_ratio == 0.0

    def test_win_and_loss(self):
        tracker = _tracker_with(
            _trade("buy", 100.0), _trade("sell", 110.0),
            _trade("buy", 110.0), _trade("sell", 105.0),
        )
        perf = tracker.calculate_performance("SOL RSI Strategy")
        assert perf.total_pnl == pytest.approx(5.0)
        assert perf.win_rate == 50.0
        assert perf.average_trade == pytest.approx(2.5)
        assert perf.max_drawdown == pytest.approx(50.0)
        assert perf.sharpe_ratio == pytest.approx(2.5 / 7.5)

    def test_amount_scales_pnl(self):
        tracker = _tracker_with(_trade("buy", 100.0, 5.0), _trade("sell", 104.0, 5.0))
        assert tracker.calculate_performance("SOL RSI Strategy").total_pnl == pytest.approx(20.0)

    def test_open_position_counts_toward_trades(self):
        tracker = _tracker_with(
            _trade("buy", 100.0), _trade("sell", 110.0), _trade("buy", 120.0),
        )
        perf = tracker.calculate_performance("SOL RSI Strategy")
        assert perf.total_trades == 3
        assert perf.win_rate == 100.0

    def test_failed_trades_are_excluded(self):
        tracker = _tracker_with(
            _trade("buy", 100.0),
            _trade("sell", 90.0, status="failed"),
            _trade("sell", 110.0),
        )
        perf = tracker.calculate_performance("SOL RSI Strategy")
        assert perf.total_trades == 2
        assert perf.total_pnl == pytest.approx(10.0)
        assert len(tracker.get_trades("SOL RSI Strategy")) == 3

    def test_ledgers_are_per_strategy(self):
        tracker = _tracker_with(
            _trade("buy", 100.0, strategy="A"),
            _trade("buy", 50.0, strategy="B"),
            _trade("sell", 120.0, strategy="A"),
        )
        assert tracker.calculate_performance("A").total_pnl == pytest.approx(20.0)
        assert tracker.calculate_performance("B").total_pnl == 0.0
        assert tracker.strategy_names() == ["A", "B"]

    def test_get_trades_returns_copy(self):
        tracker = _tracker_with(_trade("buy", 100.0))
        tracker.get_trades("SOL RSI Strategy").clear()
        assert len(tracker.get_trades("SOL RSI Strategy")) == 1


class TestStats:
    def test_drawdown_never_below_peak(self):
        assert max_drawdown_pct([5.0, 5.0, 5.0]) == 0.0

    def test_drawdown_from_zero_peak_uses_floor(self):
        # peak stays 0 → denominator 1
        assert max_drawdown_pct([-0.5]) == pytest.approx(50.0)

    def test_population_std(self):
        assert population_std([2.0, 4.0, 4.0, 4.0, 5.0, 5.0, 7.0, 9.0]) == pytest.approx(2.0)
        assert population_std([]) == 0.0

    def test_sharpe_zero_variance(self):
        assert sharpe_ratio(3.0, [3.0, 3.0]) == 0.0

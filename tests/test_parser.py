"""Tests for solflow.strategy.parser — text to ParsedStrategy."""

import pytest

from solflow.strategy.parser import StrategyParser


@pytest.fixture
def parser():
    return StrategyParser()


class TestParseExample:
    def test_rsi_strategy(self, parser):
        s = parser.parse(
            "Buy SOL when RSI drops below 30, sell when it crosses 70, max position $500"
        )
        assert s.asset == "SOL/USDC"
        assert s.entry.type == "indicator"
        assert s.entry.indicator == "RSI"
        assert s.entry.condition == "<"
        assert s.entry.value == 30.0
        assert s.entry.timeframe == "15m"
        assert s.max_position == 500.0
        assert s.name == "SOL RSI Strategy"
        assert s.execution_type == "market"

    def test_entry_and_exit_share_text(self, parser):
        s = parser.parse(
            "Buy SOL when RSI drops below 30, sell when it crosses 70, max position $500"
        )
        assert s.exit == s.entry

    def test_defaults(self, parser):
        s = parser.parse("Buy SOL when RSI drops below 30")
        assert s.max_position == 500.0
        assert s.risk_percent == 10.0
        assert s.stop_loss is None
        assert s.take_profit is None


class TestAsset:
    @pytest.mark.parametrize(
        "text, asset",
        [
            ("buy sol now", "SOL/USDC"),
            ("buy btc now", "BTC/USD"),
            ("dca into bitcoin weekly", "BTC/USD"),
            ("ethereum breakout", "ETH/USD"),
            ("buy something nice", "SOL/USDC"),
        ],
    )
    def test_extract_asset(self, parser, text, asset):
        assert parser.parse(text).asset == asset


class TestConditions:
    def test_rsi_above(self, parser):
        s = parser.parse("Risk 2% of portfolio on SOL when RSI above 60")
        assert s.entry.condition == ">"
        assert s.entry.value == 60.0
        assert s.risk_percent == 2.0

    def test_rsi_crosses(self, parser):
        s = parser.parse("buy sol when rsi crosses 50")
        assert s.entry.condition == "crosses_above"
        assert s.entry.value == 50.0

    def test_price_drop(self, parser):
        s = parser.parse("Buy BTC when price drops 5%, take profit at 10%, stop loss 3%")
        assert s.asset == "BTC/USD"
        assert s.entry.type == "price"
        assert s.entry.condition == "<"
        assert s.entry.value == 5.0
        assert s.take_profit == 10.0
        assert s.stop_loss == 3.0
        assert s.name == "BTC Custom Strategy"

    def test_price_rise(self, parser):
        s = parser.parse("buy eth when price rises 4%")
        assert s.entry.type == "price"
        assert s.entry.condition == ">"
        assert s.entry.value == 4.0

    def test_macd(self, parser):
        s = parser.parse("ETH MACD strategy with $1,234.56 max, limit orders")
        assert s.entry.indicator == "MACD"
        assert s.entry.condition == "crosses_above"
        assert s.entry.value == 0.0
        assert s.entry.timeframe == "1h"
        assert s.max_position == 1234.56
        assert s.execution_type == "limit"
        assert s.name == "ETH MACD Strategy"

    def test_bollinger_upper(self, parser):
        s = parser.parse("Sell SOL when price touches upper Bollinger band")
        assert s.entry.indicator == "BB"
        assert s.entry.condition == ">"
        assert s.entry.value == 2.0
        assert s.name == "SOL BB Strategy"

    def test_bollinger_lower_short_form(self, parser):
        s = parser.parse("buy eth at the lower bb")
        assert s.entry.indicator == "BB"
        assert s.entry.condition == "<"
        assert s.entry.value == -2.0

    @pytest.mark.parametrize("text", ["buy eth on the ebb tide", "buy eth with bbands"])
    def test_bb_needs_whole_word(self, parser, text):
        s = parser.parse(text)
        assert s.entry.type == "price"
        assert s.entry.indicator is None

    def test_default_condition(self, parser):
        s = parser.parse("buy something nice")
        assert s.entry.type == "price"
        assert s.entry.condition == "<"
        assert s.entry.value == 100.0
        assert s.exit.condition == ">"
        assert s.exit.value == 100.0
        assert s.name == "SOL Custom Strategy"

    def test_sell_when_up_is_take_profit(self, parser):
        assert parser.parse("buy sol, sell when up 15%").take_profit == 15.0


class TestNames:
    def test_dca(self, parser):
        assert parser.parse("DCA into bitcoin weekly").name == "BTC DCA Strategy"

    def test_generate_name_prefers_rsi(self, parser):
        assert parser.generate_name("rsi and macd", "ETH/USD") == "ETH RSI Strategy"


class TestNeverFails:
    @pytest.mark.parametrize("text", ["", "   ", "$$$", "rsi", "100%", "stop loss"])
    def test_parse_any_text(self, parser, text):
        s = parser.parse(text)
        assert s.asset == "SOL/USDC"
        assert s.max_position > 0

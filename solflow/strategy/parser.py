"""Strategy parser — turns a one-line trading rule into a ``ParsedStrategy``.

The grammar is keyword driven.  Every extraction step runs over the
lower-cased input and falls back to a documented default when nothing
matches, so ``parse`` never fails:

    "Buy SOL when RSI drops below 30, sell when it crosses 70, max position $500"
    → SOL/USDC, entry RSI < 30, max_position 500

Condition extraction is an ordered list of rules; the first rule that
produces a condition wins.  Entry and exit are both extracted from the
full text, so they only differ when the default rule applies.
"""

import logging
import re
from typing import Callable, Optional

from solflow.strategy.models import DEFAULT_ASSET, ParsedStrategy, StrategyCondition

logger = logging.getLogger("solflow.parser")

_NUMBER = r"(\d+(?:\.\d+)?)"

_RSI_BELOW = re.compile(rf"rsi\b.*?(?:below|<|less than)\s*{_NUMBER}")
_RSI_ABOVE = re.compile(rf"rsi\b.*?(?:above|>|greater than)\s*{_NUMBER}")
_RSI_CROSS = re.compile(rf"rsi\b.*?cross(?:es)?\s*{_NUMBER}")
_PERCENT = re.compile(rf"{_NUMBER}%")
_DOLLARS = re.compile(r"\$\s*(\d+(?:,\d{3})*(?:\.\d+)?)")
_RISK = re.compile(rf"{_NUMBER}%\s*(?:of|risk)")
_STOP_LOSS = re.compile(rf"stop\s*loss\s*(?:at\s*)?{_NUMBER}%")
_TAKE_PROFIT = re.compile(rf"(?:take\s*profit|sell\s*when\s*up)\s*(?:at\s*)?{_NUMBER}%")
# Whole-word "bb" only; "bbands" or "ebb" do not mention Bollinger.
_BB_TOKEN = re.compile(r"\bbb\b")

DEFAULT_MAX_POSITION = 500.0
DEFAULT_RISK_PERCENT = 10.0

# (keywords, pair), checked in order by substring match.
_ASSET_RULES: list[tuple[tuple[str, ...], str]] = [
    (("sol",), "SOL/USDC"),
    (("btc", "bitcoin"), "BTC/USD"),
    (("eth", "ethereum"), "ETH/USD"),
]


def _mentions_bollinger(text: str) -> bool:
    return "bollinger" in text or bool(_BB_TOKEN.search(text))


# ── Condition rules ──────────────────────────────────────────────────────


def _rsi_rule(text: str, phase: str) -> Optional[StrategyCondition]:
    if "rsi" not in text:
        return None
    match = _RSI_BELOW.search(text) or _RSI_ABOVE.search(text) or _RSI_CROSS.search(text)
    if match is None:
        return None

    if "below" in text or "<" in text:
        condition = "<"
    elif "above" in text or ">" in text:
        condition = ">"
    elif "crosses" in text:
        condition = "crosses_above"
    else:
        condition = ">"

    return StrategyCondition(
        type="indicator",
        indicator="RSI",
        condition=condition,
        value=float(match.group(1)),
        timeframe="15m",
    )


def _price_rule(text: str, phase: str) -> Optional[StrategyCondition]:
    if not any(word in text for word in ("price", "drops", "rises")):
        return None
    match = _PERCENT.search(text)
    if match is None:
        return None
    condition = "<" if ("drop" in text or "below" in text) else ">"
    return StrategyCondition(
        type="price",
        condition=condition,
        value=float(match.group(1)),
        timeframe="15m",
    )


def _macd_rule(text: str, phase: str) -> Optional[StrategyCondition]:
    if "macd" not in text:
        return None
    return StrategyCondition(
        type="indicator",
        indicator="MACD",
        condition="crosses_above",
        value=0.0,
        timeframe="1h",
    )


def _bollinger_rule(text: str, phase: str) -> Optional[StrategyCondition]:
    if not _mentions_bollinger(text):
        return None
    upper = "upper" in text
    return StrategyCondition(
        type="indicator",
        indicator="BB",
        condition=">" if upper else "<",
        value=2.0 if upper else -2.0,  # standard deviations
        timeframe="1h",
    )


def _default_rule(text: str, phase: str) -> StrategyCondition:
    return StrategyCondition(
        type="price",
        condition="<" if phase == "entry" else ">",
        value=100.0,
        timeframe="15m",
    )


_CONDITION_RULES: list[Callable[[str, str], Optional[StrategyCondition]]] = [
    _rsi_rule,
    _price_rule,
    _macd_rule,
    _bollinger_rule,
]

# (predicate, label); the first match names the strategy.
_NAME_RULES: list[tuple[Callable[[str], bool], str]] = [
    (lambda t: "rsi" in t, "RSI"),
    (lambda t: "macd" in t, "MACD"),
    (_mentions_bollinger, "BB"),
    (lambda t: "dca" in t or "dollar cost" in t, "DCA"),
]


class StrategyParser:
    """Stateless text → ``ParsedStrategy`` converter."""

    def parse(self, text: str) -> ParsedStrategy:
        """Parse *text* into a strategy.  Never raises for any string input."""
        normalized = text.lower()

        asset = self.extract_asset(normalized)
        strategy = ParsedStrategy(
            name=self.generate_name(normalized, asset),
            asset=asset,
            entry=self.extract_condition(normalized, "entry"),
            exit=self.extract_condition(normalized, "exit"),
            max_position=self.extract_max_position(normalized),
            risk_percent=self.extract_risk_percent(normalized),
            execution_type="limit" if "limit" in normalized else "market",
            stop_loss=self._extract_percent(_STOP_LOSS, normalized),
            take_profit=self._extract_percent(_TAKE_PROFIT, normalized),
        )
        logger.debug("Parsed %r → %s", text, strategy)
        return strategy

    # ── Extraction steps ─────────────────────────────────────────────────

    @staticmethod
    def extract_asset(text: str) -> str:
        for keywords, pair in _ASSET_RULES:
            if any(k in text for k in keywords):
                return pair
        return DEFAULT_ASSET

    @staticmethod
    def extract_condition(text: str, phase: str) -> StrategyCondition:
        """Run the condition rules for *phase* (``"entry"`` or ``"exit"``)."""
        for rule in _CONDITION_RULES:
            condition = rule(text, phase)
            if condition is not None:
                return condition
        return _default_rule(text, phase)

    @staticmethod
    def extract_max_position(text: str) -> float:
        match = _DOLLARS.search(text)
        if match is None:
            return DEFAULT_MAX_POSITION
        return float(match.group(1).replace(",", ""))

    @staticmethod
    def extract_risk_percent(text: str) -> float:
        match = _RISK.search(text)
        return float(match.group(1)) if match else DEFAULT_RISK_PERCENT

    @staticmethod
    def _extract_percent(pattern: re.Pattern, text: str) -> Optional[float]:
        match = pattern.search(text)
        return float(match.group(1)) if match else None

    @staticmethod
    def generate_name(text: str, asset: str) -> str:
        """Name the strategy after its asset and leading indicator keyword."""
        symbol = asset.split("/")[0]
        for predicate, label in _NAME_RULES:
            if predicate(text):
                return f"{symbol} {label} Strategy"
        return f"{symbol} Custom Strategy"

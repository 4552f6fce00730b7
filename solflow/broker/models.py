"""Broker data models — typed representations of Pyth and Jupiter API objects."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class PriceData:
    """A price observation from the price feed (or its fallback)."""

    price: float
    confidence: float
    expo: int
    timestamp: float
    source: str = "pyth"  # "pyth", "cache" or "simulated"


@dataclass(frozen=True)
class SwapQuote:
    """A swap quote from the aggregator, amounts in smallest token units."""

    input_mint: str
    output_mint: str
    in_amount: int
    out_amount: int
    price_impact_pct: float
    slippage_bps: int
    route: dict = field(default_factory=dict)


@dataclass(frozen=True)
class SwapResult:
    """Outcome of requesting a swap for a quote."""

    tx_reference: str
    input_amount: int
    output_amount: int
    price_impact: float


class SwapError(Exception):
    """Raised when a quote or swap cannot be obtained."""

"""DeFi data models — yield snapshots, holdings and rebalancing output."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProtocolYield:
    """Point-in-time yield snapshot for one protocol pool."""

    protocol: str
    pool: str
    apy: float  # percent
    tvl: float  # USD
    risk: str  # "low", "medium" or "high"
    token: str
    address: str


@dataclass(frozen=True)
class Position:
    """A user holding in a protocol pool."""

    protocol: str
    pool: str
    amount: float
    value: float  # USD
    apy: float


@dataclass(frozen=True)
class RebalanceRecommendation:
    """Suggested move of part of a position into a better pool."""

    from_position: Position
    to: ProtocolYield
    amount: float
    expected_gain: float  # USD per year
    reasoning: str


@dataclass(frozen=True)
class AllocationSlice:
    """USD amount assigned to one pool in an optimal allocation."""

    yield_: ProtocolYield
    allocation: float


RISK_LEVELS: tuple[str, ...] = ("low", "medium", "high")

# Risk levels a tolerance may hold.
RISK_TOLERANCES: dict[str, tuple[str, ...]] = {
    "conservative": ("low",),
    "balanced": ("low", "medium"),
    "aggressive": ("low", "medium", "high"),
}

"""Rebalancing engine — risk scoring, position analysis and target allocation.

Pure math over yield snapshots from a ``YieldAggregator``; no I/O of its
own beyond awaiting the aggregator.
"""

import logging

from solflow.defi.models import (
    RISK_TOLERANCES,
    AllocationSlice,
    Position,
    ProtocolYield,
    RebalanceRecommendation,
)
from solflow.defi.yields import YieldAggregator

logger = logging.getLogger("solflow")

_BASE_RISK: dict[str, float] = {"low": 20.0, "medium": 50.0, "high": 80.0}

# Per-tolerance share of capital for each risk bucket.
ALLOCATION_WEIGHTS: dict[str, dict[str, float]] = {
    "conservative": {"low": 0.80, "medium": 0.15, "high": 0.05},
    "balanced": {"low": 0.40, "medium": 0.45, "high": 0.15},
    "aggressive": {"low": 0.20, "medium": 0.40, "high": 0.40},
}

MIN_APY_IMPROVEMENT = 5.0  # percentage points
REBALANCE_FRACTION = 0.5
TOP_PER_BUCKET = 3


def calculate_risk_score(yield_: ProtocolYield) -> float:
    """Score a pool's risk on 0–100.

    ``base(risk) + max(0, 20 - tvl / 10M) + (15 if apy > 100)``: deeper
    pools score lower, implausibly high APY scores higher.
    """
    base = _BASE_RISK[yield_.risk]
    tvl_factor = max(0.0, 20.0 - yield_.tvl / 10_000_000)
    apy_factor = 15.0 if yield_.apy > 100 else 0.0
    return min(100.0, max(0.0, base + tvl_factor + apy_factor))


def calculate_risk_adjusted_return(yield_: ProtocolYield) -> float:
    return yield_.apy / (1.0 + calculate_risk_score(yield_) / 100.0)


def _eligible_risks(risk_tolerance: str) -> tuple[str, ...]:
    if risk_tolerance not in RISK_TOLERANCES:
        raise ValueError(
            f"Unknown risk tolerance '{risk_tolerance}'. "
            f"Available: {', '.join(RISK_TOLERANCES.keys())}"
        )
    return RISK_TOLERANCES[risk_tolerance]


class RebalancingEngine:
    """Recommends moves between pools and builds target allocations.

    Args:
        aggregator: Source of yield snapshots.  Defaults to a
                    ``YieldAggregator`` over the simulated protocols.
    """

    def __init__(self, aggregator: YieldAggregator | None = None) -> None:
        self._aggregator = aggregator or YieldAggregator()

    async def analyze_positions(
        self,
        positions: list[Position],
        risk_tolerance: str,
    ) -> list[RebalanceRecommendation]:
        """Suggest at most one move per position.

        Candidates are pools allowed by *risk_tolerance*, ranked by
        risk-adjusted return.  The first candidate in a different protocol
        whose APY beats the position's by more than 5 points wins, and half
        of the holding is suggested for the move.  Positions whose pool is
        not in the current snapshot are skipped.
        """
        eligible = _eligible_risks(risk_tolerance)
        all_yields = await self._aggregator.get_all_yields()
        ranked = sorted(
            (y for y in all_yields if y.risk in eligible),
            key=calculate_risk_adjusted_return,
            reverse=True,
        )

        recommendations: list[RebalanceRecommendation] = []
        for position in positions:
            current = next(
                (
                    y for y in all_yields
                    if y.protocol == position.protocol and y.pool == position.pool
                ),
                None,
            )
            if current is None:
                logger.debug(
                    "No snapshot for %s/%s — skipping", position.protocol, position.pool
                )
                continue

            for target in ranked:
                apy_diff = target.apy - position.apy
                if apy_diff <= MIN_APY_IMPROVEMENT or target.protocol == position.protocol:
                    continue
                recommendations.append(
                    RebalanceRecommendation(
                        from_position=position,
                        to=target,
                        amount=position.amount * REBALANCE_FRACTION,
                        expected_gain=position.value * apy_diff / 100.0,
                        reasoning=(
                            f"Move from {current.protocol} ({position.apy:.1f}% APY) "
                            f"to {target.protocol} ({target.apy:.1f}% APY) for "
                            f"{apy_diff:.1f}% higher yield with {target.risk} risk"
                        ),
                    )
                )
                break

        logger.info(
            "Analysed %d position(s) at %s tolerance → %d recommendation(s)",
            len(positions), risk_tolerance, len(recommendations),
        )
        return recommendations

    async def generate_optimal_allocation(
        self,
        total_value: float,
        risk_tolerance: str,
    ) -> list[AllocationSlice]:
        """Split *total_value* across the top pools of each risk bucket.

        Each bucket's weight comes from ``ALLOCATION_WEIGHTS`` and is shared
        evenly by its three highest-APY pools.  A bucket with no pools
        allocates nothing.
        """
        _eligible_risks(risk_tolerance)
        weights = ALLOCATION_WEIGHTS[risk_tolerance]
        all_yields = await self._aggregator.get_all_yields()

        allocation: list[AllocationSlice] = []
        for risk, weight in weights.items():
            bucket = sorted(
                (y for y in all_yields if y.risk == risk),
                key=lambda y: y.apy,
                reverse=True,
            )[:TOP_PER_BUCKET]
            if not bucket:
                continue
            per_yield = weight / len(bucket)
            allocation.extend(
                AllocationSlice(yield_=y, allocation=total_value * per_yield)
                for y in bucket
            )
        return allocation

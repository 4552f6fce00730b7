"""Internal API routers — /status, /strategies, /trades, /performance, /yields, /rebalance endpoints.

No business logic.  Delegates to the parser, tracker, aggregator,
rebalancer and monitor manager injected at startup.
"""

import logging
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Query

from solflow.defi.models import RISK_LEVELS, RISK_TOLERANCES, Position
from solflow.defi.rebalancer import RebalancingEngine
from solflow.defi.yields import YieldAggregator
from solflow.strategy.parser import StrategyParser

logger = logging.getLogger("solflow")
router = APIRouter()

# ── Shared state (set during app startup) ────────────────────────────────

_DEFAULT_MONITOR_STATUS: dict = {
    "strategy": None,
    "running": False,
    "state": None,
    "paper_trading": True,
    "started_at": None,
    "cycle_count": 0,
    "last_tick_at": None,
    "last_action": None,
}

# Keyed by asset → status dict
_monitor_statuses: dict[str, dict] = {}

_parser = StrategyParser()
_tracker = None  # Set via configure_routers()
_manager = None  # Set via configure_routers()
_aggregator: YieldAggregator = YieldAggregator()
_rebalancer: RebalancingEngine = RebalancingEngine(_aggregator)


def configure_routers(
    tracker=None,
    manager=None,
    aggregator: Optional[YieldAggregator] = None,
) -> None:
    """Inject dependencies from the application startup.

    Args:
        tracker: A ``PnLTracker`` (or duck-type for tests).
        manager: A ``MonitorManager`` for activation and control actions.
        aggregator: Yield source for the /yields and /rebalance endpoints.
    """
    global _tracker, _manager, _aggregator, _rebalancer  # noqa: PLW0603
    _tracker = tracker
    _manager = manager
    if aggregator is not None:
        _aggregator = aggregator
        _rebalancer = RebalancingEngine(aggregator)


def update_monitor_status(asset: str, **fields) -> None:
    """Update individual fields of an asset monitor's status dict."""
    if asset not in _monitor_statuses:
        _monitor_statuses[asset] = {**_DEFAULT_MONITOR_STATUS, "asset": asset}
    _monitor_statuses[asset].update(fields)


# ── Strategies ───────────────────────────────────────────────────────────


@router.get("/status")
async def get_status():
    """Return status for every monitored asset."""
    return {"monitors": _monitor_statuses}


@router.post("/strategies/parse")
async def parse_strategy(body: dict):
    """Parse a strategy description without activating it."""
    text = body.get("text")
    if not isinstance(text, str) or not text.strip():
        return {"error": "Field 'text' is required"}
    return {"strategy": asdict(_parser.parse(text))}


@router.post("/strategies/activate")
async def activate_strategy(body: dict):
    """Parse a strategy description and start monitoring its asset."""
    text = body.get("text")
    if not isinstance(text, str) or not text.strip():
        return {"error": "Field 'text' is required"}
    if _manager is None:
        return {"error": "No monitor manager"}
    strategy = _parser.parse(text)
    await _manager.start(strategy)
    logger.info("Strategy '%s' activated via API.", strategy.name)
    return {"status": "active", "strategy": asdict(strategy)}


@router.post("/control/stop")
async def stop_monitor(asset: str = Query(...)):
    """Stop monitoring a single asset."""
    if _manager is None:
        return {"error": "No monitor manager"}
    _manager.stop(asset)
    update_monitor_status(asset, running=False)
    return {"status": "stopped", "asset": asset}


# ── Trades & performance ─────────────────────────────────────────────────


@router.get("/trades")
async def get_trades(
    strategy: str = Query(...),
    limit: int = Query(default=20, ge=1, le=200),
):
    """Return the most recent trades of a strategy, newest first."""
    if _tracker is None:
        return {"trades": [], "total": 0}
    trades = _tracker.get_trades(strategy)
    recent = [asdict(t) for t in reversed(trades[-limit:])]
    return {"trades": recent, "total": len(trades)}


@router.get("/performance")
async def get_performance(strategy: str = Query(...)):
    """Return realised performance for a strategy."""
    if _tracker is None:
        return {"performance": None}
    return {"performance": asdict(_tracker.calculate_performance(strategy))}


# ── Yields & rebalancing ─────────────────────────────────────────────────


@router.get("/yields")
async def get_yields(risk: Optional[str] = Query(default=None)):
    """Return every yield snapshot, optionally filtered by risk level."""
    if risk is not None:
        if risk not in RISK_LEVELS:
            return {"error": f"risk must be one of: {', '.join(RISK_LEVELS)}"}
        yields = await _aggregator.get_yields_by_risk(risk)
    else:
        yields = await _aggregator.get_all_yields()
    return {"yields": [asdict(y) for y in yields]}


@router.get("/yields/top")
async def get_top_yields(limit: int = Query(default=5, ge=1, le=50)):
    """Return the highest-APY snapshots."""
    yields = await _aggregator.get_top_yields(limit)
    return {"yields": [asdict(y) for y in yields]}


@router.post("/rebalance/analyze")
async def analyze_rebalance(body: dict):
    """Recommend rebalancing moves for the supplied positions."""
    risk_tolerance = body.get("risk_tolerance", "balanced")
    if risk_tolerance not in RISK_TOLERANCES:
        return {"error": f"risk_tolerance must be one of: {', '.join(RISK_TOLERANCES)}"}
    try:
        positions = [
            Position(
                protocol=p["protocol"],
                pool=p["pool"],
                amount=float(p["amount"]),
                value=float(p["value"]),
                apy=float(p["apy"]),
            )
            for p in body.get("positions", [])
        ]
    except (KeyError, TypeError, ValueError) as exc:
        return {"error": f"Invalid position: {exc}"}

    recommendations = await _rebalancer.analyze_positions(positions, risk_tolerance)
    return {"recommendations": [asdict(r) for r in recommendations]}


@router.get("/allocation")
async def get_allocation(
    total_value: float = Query(..., gt=0),
    risk_tolerance: str = Query(default="balanced"),
):
    """Return the target allocation of *total_value* for a risk tolerance."""
    if risk_tolerance not in RISK_TOLERANCES:
        return {"error": f"risk_tolerance must be one of: {', '.join(RISK_TOLERANCES)}"}
    slices = await _rebalancer.generate_optimal_allocation(total_value, risk_tolerance)
    return {
        "allocation": [
            {"yield": asdict(s.yield_), "allocation": s.allocation} for s in slices
        ]
    }

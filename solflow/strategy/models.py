"""Strategy data models — typed representations of parsed strategies and trades."""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StrategyCondition:
    """A single entry or exit rule."""

    type: str  # "price", "indicator", "time" or "volume"
    condition: str  # "<", ">", "=", "crosses_above", "crosses_below"
    value: float
    indicator: Optional[str] = None  # "RSI", "MACD", "BB", "SMA", "EMA"
    timeframe: Optional[str] = None  # "1m", "5m", "15m", "1h", "4h", "1d"


@dataclass(frozen=True)
class ParsedStrategy:
    """A strategy produced by ``StrategyParser`` from one text input."""

    name: str
    asset: str  # pair symbol, e.g. "SOL/USDC"
    entry: StrategyCondition
    exit: StrategyCondition
    max_position: float  # USD
    risk_percent: float
    execution_type: str  # "market" or "limit"
    stop_loss: Optional[float] = None  # percent
    take_profit: Optional[float] = None  # percent


@dataclass(frozen=True)
class Trade:
    """A single buy or sell recorded against a strategy."""

    id: str
    strategy: str
    timestamp: float  # epoch milliseconds
    type: str  # "buy" or "sell"
    asset: str
    price: float
    amount: float
    value: float
    tx_signature: Optional[str] = None
    status: str = "executed"  # "pending", "executed" or "failed"


@dataclass(frozen=True)
class StrategyPerformance:
    """Performance summary derived from a strategy's trade ledger."""

    strategy_name: str
    total_trades: int = 0
    win_rate: float = 0.0
    total_pnl: float = 0.0
    total_pnl_percent: float = 0.0
    average_trade: float = 0.0
    max_drawdown: float = 0.0
    sharpe_ratio: float = 0.0


DEFAULT_ASSET = "SOL/USDC"

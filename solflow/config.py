"""SolFlow — application configuration.

Loads .env variables into a typed config object.
Validates required variables on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


_REQUIRED_VARS = [
    "WALLET_PUBLIC_KEY",
]

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    wallet_public_key: str
    solana_rpc_url: str
    hermes_url: str
    jupiter_api_url: str
    poll_interval_seconds: int
    price_history_size: int
    slippage_bps: int
    risk_tolerance: str  # "conservative", "balanced" or "aggressive"
    paper_trading: bool
    log_level: str
    health_port: int

    @property
    def is_devnet(self) -> bool:
        """``True`` when the RPC endpoint points at Solana devnet."""
        return "devnet" in self.solana_rpc_url


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the missing variable when a
    required variable is absent.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [v for v in _REQUIRED_VARS if not os.environ.get(v)]
    if missing:
        raise ValueError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )

    return Config(
        wallet_public_key=os.environ["WALLET_PUBLIC_KEY"],
        solana_rpc_url=os.environ.get("SOLANA_RPC_URL", "https://api.devnet.solana.com"),
        hermes_url=os.environ.get("HERMES_URL", "https://hermes.pyth.network"),
        jupiter_api_url=os.environ.get("JUPITER_API_URL", "https://quote-api.jup.ag/v6"),
        poll_interval_seconds=int(os.environ.get("POLL_INTERVAL_SECONDS", "2")),
        price_history_size=int(os.environ.get("PRICE_HISTORY_SIZE", "200")),
        slippage_bps=int(os.environ.get("SLIPPAGE_BPS", "50")),
        risk_tolerance=os.environ.get("RISK_TOLERANCE", "balanced"),
        paper_trading=os.environ.get("PAPER_TRADING", "true").lower() in _TRUTHY,
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        health_port=int(os.environ.get("HEALTH_PORT", "8080")),
    )

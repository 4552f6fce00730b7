"""Pyth Network price feed client (Hermes REST API).

``get_price`` never raises: when Hermes is unreachable or returns nothing
usable it serves the last cached price for the symbol, and failing that a
simulated price around a fixed base, tagged with ``source`` so callers can
tell live data from fallbacks.
"""

import logging
import random
import time
from typing import Optional

import httpx

from solflow.broker.http import request_with_retry
from solflow.broker.models import PriceData
from solflow.config import Config

logger = logging.getLogger("solflow")

# Hermes price feed ids (hex, without 0x prefix).
PYTH_PRICE_FEEDS: dict[str, str] = {
    "SOL/USD": "ef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d",
    "BTC/USD": "e62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43",
    "ETH/USD": "ff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace",
    "USDC/USD": "eaa020c61cc479712813461ce153894a96a6c00b21ed0cfc2798d1f9a9e9c94a",
}

# Base prices for the simulated fallback; unknown symbols use 100.
SIMULATED_BASE_PRICES: dict[str, float] = {
    "SOL/USD": 145.50,
    "BTC/USD": 98_750.00,
    "ETH/USD": 3_420.00,
    "USDC/USD": 1.00,
}
_DEFAULT_BASE_PRICE = 100.0
_SIMULATED_JITTER = 0.02  # ±1 %


def feed_symbol(symbol: str) -> str:
    """Map a trading pair to its USD price feed, e.g. SOL/USDC → SOL/USD."""
    return f"{symbol.split('/')[0].upper()}/USD"


class PythClient:
    """Async client for Pyth Hermes with cache and simulated fallback.

    Args:
        config: Application configuration (uses ``hermes_url``).
        rng: Random source for simulated prices; injectable for tests.
        max_retries: HTTP attempts per price request.  Kept low because
                     the monitor polls every few seconds.
    """

    def __init__(
        self,
        config: Config,
        rng: Optional[random.Random] = None,
        max_retries: int = 1,
    ) -> None:
        self._base_url = config.hermes_url.rstrip("/")
        self._rng = rng or random.Random()
        self._max_retries = max_retries
        self._cache: dict[str, PriceData] = {}

    async def get_price(self, symbol: str) -> PriceData:
        """Return the latest price for *symbol* (pair or feed symbol)."""
        feed = feed_symbol(symbol)
        try:
            price = await self._fetch_latest(feed)
        except (
            httpx.HTTPError, KeyError, ValueError, IndexError, TypeError, AttributeError,
        ) as exc:
            logger.warning("Pyth price for %s unavailable: %s", feed, exc)
            return self._fallback(feed)
        self._cache[feed] = price
        return price

    async def _fetch_latest(self, feed: str) -> PriceData:
        feed_id = PYTH_PRICE_FEEDS.get(feed)
        if feed_id is None:
            raise KeyError(f"No Pyth feed for symbol: {feed}")

        resp = await request_with_retry(
            "get",
            f"{self._base_url}/v2/updates/price/latest",
            params={"ids[]": feed_id},
            max_retries=self._max_retries,
            timeout=10.0,
        )
        parsed = resp.json().get("parsed") or []
        if not parsed:
            raise ValueError("No price data returned from Pyth")

        info = parsed[0]["price"]
        expo = int(info["expo"])
        scale = 10.0 ** expo
        return PriceData(
            price=float(info["price"]) * scale,
            confidence=float(info["conf"]) * scale,
            expo=expo,
            timestamp=float(info["publish_time"]),
            source="pyth",
        )

    def _fallback(self, feed: str) -> PriceData:
        cached = self._cache.get(feed)
        if cached is not None:
            return PriceData(
                price=cached.price,
                confidence=cached.confidence,
                expo=cached.expo,
                timestamp=cached.timestamp,
                source="cache",
            )
        return self.simulated_price(feed)

    def simulated_price(self, feed: str) -> PriceData:
        """Synthetic price: the base price with up to ±1 % random variation."""
        base = SIMULATED_BASE_PRICES.get(feed, _DEFAULT_BASE_PRICE)
        price = base * (1 + (self._rng.random() - 0.5) * _SIMULATED_JITTER)
        return PriceData(
            price=price,
            confidence=price * 0.001,
            expo=-8,
            timestamp=time.time(),
            source="simulated",
        )

"""Yield aggregation across Solana DeFi protocols.

Each protocol is a ``YieldSource``.  The bundled sources serve simulated
snapshots of Jupiter, Kamino, Marinade and Raydium pools in place of live
protocol queries.  Sources are fetched concurrently; a source that fails
falls back to its last good snapshot so one unreachable protocol never
empties the whole view.
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable

from solflow.defi.models import ProtocolYield

logger = logging.getLogger("solflow")


@runtime_checkable
class YieldSource(Protocol):
    """Anything that can produce yield snapshots for one protocol."""

    name: str

    async def fetch(self) -> list[ProtocolYield]:
        ...


class StaticYieldSource:
    """Yield source serving a fixed snapshot list."""

    def __init__(self, name: str, yields: list[ProtocolYield]) -> None:
        self.name = name
        self._yields = list(yields)

    async def fetch(self) -> list[ProtocolYield]:
        return list(self._yields)


# ── Simulated protocol snapshots ─────────────────────────────────────────

JUPITER_YIELDS = [
    ProtocolYield("Jupiter", "JLP Pool", 47.5, 285_000_000, "medium", "JLP",
                  "JLP9i4FzxhwzSeLPaLLxzYrYxQPFHGCPWz2Y2fRQ1vW4"),
    ProtocolYield("Jupiter", "SOL-USDC Swap Pool", 12.3, 145_000_000, "low", "SOL-USDC",
                  "Jupiter3dWmvG7Ly5qnqAyxAiYvk4YQ4uxxKDYKDvqHqhp52"),
]

KAMINO_YIELDS = [
    ProtocolYield("Kamino", "SOL Multiply", 89.2, 78_000_000, "high", "SOL",
                  "Kamino8ZPxZ7vT3p2fU4WYDhNKmLPqKJVqx9dPYFh3qR"),
    ProtocolYield("Kamino", "USDC Lend", 18.7, 156_000_000, "low", "USDC",
                  "Kamino9KBPUhzYnpGZcJH4gYX8p6fU7WYDh8GvLPqK"),
    ProtocolYield("Kamino", "JitoSOL Multiply", 67.4, 45_000_000, "medium", "JitoSOL",
                  "KaminoJitoSoLMPqGdg7K2XqyVbw4hY8p5fU7Wh"),
]

MARINADE_YIELDS = [
    ProtocolYield("Marinade", "mSOL Stake Pool", 7.8, 1_200_000_000, "low", "mSOL",
                  "MarBmsSgKXdrN1egZf5sqe1TMai9K1rChYNDJgjq7aD"),
]

RAYDIUM_YIELDS = [
    ProtocolYield("Raydium", "SOL-USDC", 23.4, 234_000_000, "medium", "RAY-LP",
                  "RaydiumSoLUSdCpQP5fU7WYDhGvLPqKJVqx9dPYF"),
    ProtocolYield("Raydium", "RAY-SOL", 45.6, 89_000_000, "medium", "RAY-LP",
                  "RaydiumRAYSoLQP7fU8WYDhNKmLPqKJVqx9dP"),
    ProtocolYield("Raydium", "USDC-USDT", 5.2, 567_000_000, "low", "RAY-LP",
                  "RaydiumUSDCUSDTqKJVqx9dPYFh3qR8GvLPqK"),
]


def default_sources() -> list[YieldSource]:
    """The simulated Jupiter, Kamino, Marinade and Raydium sources."""
    return [
        StaticYieldSource("Jupiter", JUPITER_YIELDS),
        StaticYieldSource("Kamino", KAMINO_YIELDS),
        StaticYieldSource("Marinade", MARINADE_YIELDS),
        StaticYieldSource("Raydium", RAYDIUM_YIELDS),
    ]


class YieldAggregator:
    """Collects yield snapshots from several sources.

    Args:
        sources: Yield sources to query, in output order.  Defaults to
                 :func:`default_sources`.
    """

    def __init__(self, sources: list[YieldSource] | None = None) -> None:
        self._sources = sources if sources is not None else default_sources()
        self._cache: dict[str, list[ProtocolYield]] = {}

    async def _fetch_source(self, source: YieldSource) -> list[ProtocolYield]:
        try:
            yields = await source.fetch()
        except Exception as exc:
            cached = self._cache.get(source.name)
            if cached is None:
                logger.warning(
                    "Yield source '%s' unavailable (%s) — no cached snapshot, skipping",
                    source.name, exc,
                )
                return []
            logger.warning(
                "Yield source '%s' unavailable (%s) — using cached snapshot",
                source.name, exc,
            )
            return list(cached)
        self._cache[source.name] = list(yields)
        return yields

    async def get_all_yields(self) -> list[ProtocolYield]:
        """Concatenate every source's snapshots, in source order."""
        results = await asyncio.gather(
            *(self._fetch_source(s) for s in self._sources)
        )
        return [y for batch in results for y in batch]

    async def get_top_yields(self, limit: int = 5) -> list[ProtocolYield]:
        """Highest-APY snapshots first, truncated to *limit*."""
        yields = await self.get_all_yields()
        return sorted(yields, key=lambda y: y.apy, reverse=True)[:limit]

    async def get_yields_by_risk(self, risk: str) -> list[ProtocolYield]:
        yields = await self.get_all_yields()
        return [y for y in yields if y.risk == risk]

"""Jupiter aggregator v6 REST client — swap quotes and swap transactions.

Failures surface as ``SwapError``.  The client never invents quotes or
signatures; the caller decides what a failed swap means for its trade.
"""

import logging

import httpx

from solflow.broker.http import request_with_retry
from solflow.broker.models import SwapError, SwapQuote, SwapResult
from solflow.config import Config

logger = logging.getLogger("solflow")

# Token mint addresses (devnet)
TOKEN_MINTS: dict[str, str] = {
    "SOL": "So11111111111111111111111111111111111111112",
    "USDC": "4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
    "BTC": "EFPGCW9RBpw4MkfJM9qQRY7Vx3q4A2vFbJtSiHCqLhtB",
    "ETH": "2FPyTwcZLUg1MDrwsyoP4D6s1tM7hAkHYRjkNb5w6Pxk",
}

TOKEN_DECIMALS: dict[str, int] = {
    "SOL": 9,
    "USDC": 6,
    "BTC": 9,
    "ETH": 9,
}


def get_token_mint(symbol: str) -> str:
    """Mint address for *symbol*.  Raises ``SwapError`` for unknown tokens."""
    mint = TOKEN_MINTS.get(symbol.upper())
    if mint is None:
        raise SwapError(f"No mint address for token: {symbol}")
    return mint


def to_base_units(symbol: str, amount: float) -> int:
    """Convert a token amount to its smallest unit (lamports, micro-USDC …)."""
    return int(amount * 10 ** TOKEN_DECIMALS.get(symbol.upper(), 9))


def from_base_units(symbol: str, amount: int) -> float:
    return amount / 10 ** TOKEN_DECIMALS.get(symbol.upper(), 9)


class JupiterClient:
    """Async client wrapping the Jupiter quote and swap endpoints."""

    def __init__(self, config: Config, max_retries: int = 3) -> None:
        self._base_url = config.jupiter_api_url.rstrip("/")
        self._default_slippage_bps = config.slippage_bps
        self._max_retries = max_retries

    # ── Quotes ───────────────────────────────────────────────────────────

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int | None = None,
    ) -> SwapQuote:
        """Fetch the best route for swapping *amount* base units.

        Args:
            input_mint: Mint of the token being sold.
            output_mint: Mint of the token being bought.
            amount: Input amount in the input token's smallest unit.
            slippage_bps: Max slippage; defaults to the configured value.
        """
        if slippage_bps is None:
            slippage_bps = self._default_slippage_bps
        params = {
            "inputMint": input_mint,
            "outputMint": output_mint,
            "amount": str(amount),
            "slippageBps": str(slippage_bps),
        }
        try:
            resp = await request_with_retry(
                "get", f"{self._base_url}/quote",
                params=params, max_retries=self._max_retries,
            )
            data = resp.json()
            return SwapQuote(
                input_mint=data["inputMint"],
                output_mint=data["outputMint"],
                in_amount=int(data["inAmount"]),
                out_amount=int(data["outAmount"]),
                price_impact_pct=float(data.get("priceImpactPct") or 0.0),
                slippage_bps=int(data.get("slippageBps", slippage_bps)),
                route=data,
            )
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Jupiter quote %s → %s failed: %s", input_mint, output_mint, exc)
            raise SwapError(f"Quote failed: {exc}") from exc

    # ── Swaps ────────────────────────────────────────────────────────────

    async def execute_swap(self, quote: SwapQuote, user_public_key: str) -> SwapResult:
        """Request the swap transaction for *quote*.

        ``tx_reference`` on the result is the serialized, unsigned
        transaction returned by Jupiter; signing and submitting it belong
        to the wallet.
        """
        body = {
            "quoteResponse": quote.route,
            "userPublicKey": user_public_key,
            "wrapAndUnwrapSol": True,
        }
        try:
            resp = await request_with_retry(
                "post", f"{self._base_url}/swap",
                json=body, max_retries=self._max_retries,
            )
            swap_tx = resp.json()["swapTransaction"]
        except (httpx.HTTPError, KeyError, ValueError) as exc:
            logger.error("Jupiter swap failed: %s", exc)
            raise SwapError(f"Swap failed: {exc}") from exc

        return SwapResult(
            tx_reference=swap_tx,
            input_amount=quote.in_amount,
            output_amount=quote.out_amount,
            price_impact=quote.price_impact_pct,
        )

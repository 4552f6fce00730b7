"""Trade executor — turns buy/sell signals into ``Trade`` records.

Paper mode fills at the observed price without touching the swap provider.
Live mode quotes and builds the swap through Jupiter; the resulting trade
is ``pending`` until the wallet signs and submits the transaction.  Any
quote or swap failure produces a ``failed`` trade instead of raising.
"""

import logging
import time
import uuid
from typing import Optional, Protocol

from solflow.broker.jupiter_client import (
    from_base_units,
    get_token_mint,
    to_base_units,
)
from solflow.broker.models import SwapError, SwapQuote, SwapResult
from solflow.strategy.models import Trade

logger = logging.getLogger("solflow")

QUOTE_TOKEN = "USDC"


class SwapProvider(Protocol):
    """The slice of ``JupiterClient`` the executor relies on."""

    async def get_quote(
        self,
        input_mint: str,
        output_mint: str,
        amount: int,
        slippage_bps: int | None = None,
    ) -> SwapQuote:
        ...

    async def execute_swap(self, quote: SwapQuote, user_public_key: str) -> SwapResult:
        ...


def _new_trade(
    strategy: str,
    side: str,
    asset: str,
    price: float,
    amount: float,
    status: str,
) -> Trade:
    return Trade(
        id=uuid.uuid4().hex,
        strategy=strategy,
        timestamp=time.time() * 1000.0,
        type=side,
        asset=asset,
        price=price,
        amount=amount,
        value=price * amount,
        status=status,
    )


class TradingExecutor:
    """Executes market buys and sells for a strategy.

    Args:
        swap_provider: Quote/swap client; may be ``None`` in paper mode.
        user_public_key: Wallet that will sign live swaps.
        paper_trading: Fill locally at the observed price.
        slippage_bps: Slippage passed to live quotes (``None`` = provider default).
    """

    def __init__(
        self,
        swap_provider: Optional[SwapProvider] = None,
        user_public_key: str = "",
        paper_trading: bool = True,
        slippage_bps: int | None = None,
    ) -> None:
        if not paper_trading and swap_provider is None:
            raise ValueError("swap_provider is required when paper_trading is off")
        self._swap = swap_provider
        self._user_public_key = user_public_key
        self._paper = paper_trading
        self._slippage_bps = slippage_bps

    @property
    def paper_trading(self) -> bool:
        return self._paper

    async def buy(self, strategy: str, asset: str, amount_usd: float, price: float) -> Trade:
        """Spend *amount_usd* of USDC on *asset*'s base token at ~*price*."""
        base = asset.split("/")[0]
        if self._paper:
            return _new_trade(strategy, "buy", asset, price, amount_usd / price, "executed")

        try:
            _, result = await self._swap_tokens(QUOTE_TOKEN, base, amount_usd)
        except SwapError as exc:
            logger.error("Buy %s for '%s' failed: %s", asset, strategy, exc)
            return _new_trade(strategy, "buy", asset, price, amount_usd / price, "failed")

        amount = from_base_units(base, result.output_amount)
        fill_price = amount_usd / amount if amount else price
        return _new_trade(strategy, "buy", asset, fill_price, amount, "pending")

    async def sell(self, strategy: str, asset: str, amount: float, price: float) -> Trade:
        """Sell *amount* of *asset*'s base token for USDC at ~*price*."""
        base = asset.split("/")[0]
        if self._paper:
            return _new_trade(strategy, "sell", asset, price, amount, "executed")

        try:
            _, result = await self._swap_tokens(base, QUOTE_TOKEN, amount)
        except SwapError as exc:
            logger.error("Sell %s for '%s' failed: %s", asset, strategy, exc)
            return _new_trade(strategy, "sell", asset, price, amount, "failed")

        proceeds = from_base_units(QUOTE_TOKEN, result.output_amount)
        fill_price = proceeds / amount if amount else price
        return _new_trade(strategy, "sell", asset, fill_price, amount, "pending")

    async def _swap_tokens(
        self,
        input_token: str,
        output_token: str,
        amount: float,
    ) -> tuple[SwapQuote, SwapResult]:
        quote = await self._swap.get_quote(
            get_token_mint(input_token),
            get_token_mint(output_token),
            to_base_units(input_token, amount),
            self._slippage_bps,
        )
        result = await self._swap.execute_swap(quote, self._user_public_key)
        logger.info(
            "Swap %s → %s built (impact %.3f%%), awaiting wallet signature",
            input_token, output_token, result.price_impact,
        )
        return quote, result

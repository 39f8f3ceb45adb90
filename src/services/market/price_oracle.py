"""
Market Price Oracle

Looks up the current price for stock and crypto tickers so their asset
values can be refreshed in one bulk update.

DESIGN DECISION: The oracle is an optional collaborator. A ticker that
cannot be priced is skipped and reported; it never blocks the rest of
the refresh, and the ledger core never calls the oracle directly.

Prices are taken as quoted. There is no currency conversion: the value
written is price x quantity in the ticker's own currency.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from datetime import date
from typing import Optional

import structlog
import yfinance as yf
from pydantic import BaseModel, Field
from tenacity import Retrying, stop_after_attempt, wait_exponential

from src.models.ledger import (
    MARKET_PRICED_TYPES,
    Asset,
    BulkUpdateFailure,
    PriceQuote,
    ValueUpdate,
)


logger = structlog.get_logger(__name__)


class PriceOracleInterface(ABC):
    """Anything that can quote a current price for a ticker."""

    @abstractmethod
    async def get_quote(self, ticker: str) -> Optional[PriceQuote]:
        """
        Current price for a ticker.

        Returns:
            The quote, or None when the ticker cannot be priced
        """
        pass


class YahooFinancePriceOracle(PriceOracleInterface):
    """Price oracle backed by Yahoo Finance (via yfinance)."""

    def __init__(self, max_retries: int = 3):
        self._max_retries = max_retries

    def _fetch_info(self, ticker: str) -> dict:
        for attempt in Retrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            reraise=True,
        ):
            with attempt:
                return yf.Ticker(ticker).info or {}
        return {}

    async def get_quote(self, ticker: str) -> Optional[PriceQuote]:
        symbol = ticker.strip().upper()
        if not symbol:
            return None
        try:
            # yfinance blocks, and the retry waits sleep
            info = await asyncio.to_thread(self._fetch_info, symbol)
        except Exception as e:
            # yfinance surfaces network and parsing failures with many types
            logger.warning("price_lookup_failed", ticker=symbol, error=str(e))
            return None

        price = info.get("currentPrice") or info.get("regularMarketPrice")
        if price is None:
            logger.warning("price_missing", ticker=symbol)
            return None

        return PriceQuote(
            ticker=symbol,
            price=float(price),
            currency=info.get("currency", "") or "",
            name=info.get("shortName") or info.get("longName") or symbol,
        )


class StaticPriceOracle(PriceOracleInterface):
    """Fixed prices from a mapping. Used for offline runs and tests."""

    def __init__(self, prices: Mapping[str, float], currency: str = ""):
        self._prices = {ticker.upper(): price for ticker, price in prices.items()}
        self._currency = currency
        self.lookups: list[str] = []

    async def get_quote(self, ticker: str) -> Optional[PriceQuote]:
        symbol = ticker.strip().upper()
        self.lookups.append(symbol)
        price = self._prices.get(symbol)
        if price is None:
            return None
        return PriceQuote(ticker=symbol, price=price, currency=self._currency, name=symbol)


class PriceRefreshPlan(BaseModel):
    """Value updates produced from market prices, plus what could not be priced."""

    as_of: date
    updates: list[ValueUpdate] = Field(default_factory=list)
    unpriced: list[BulkUpdateFailure] = Field(default_factory=list)


def refreshable_assets(assets: Iterable[Asset], today: date) -> list[Asset]:
    """Active stock/crypto assets that carry a ticker."""
    return [
        asset for asset in assets
        if asset.type in MARKET_PRICED_TYPES
        and asset.ticker
        and asset.is_active_on(today)
    ]


async def build_price_updates(
    assets: Iterable[Asset],
    oracle: PriceOracleInterface,
    today: date,
) -> PriceRefreshPlan:
    """
    Quote every refreshable asset and turn the prices into value updates.

    new_value = price x quantity (a missing quantity counts as 1) and
    unit_price = price. Each ticker is looked up once.
    """
    plan = PriceRefreshPlan(as_of=today)
    quotes: dict[str, Optional[PriceQuote]] = {}

    for asset in refreshable_assets(assets, today):
        symbol = asset.ticker.strip().upper()
        if symbol not in quotes:
            quotes[symbol] = await oracle.get_quote(symbol)
        quote = quotes[symbol]

        if quote is None:
            plan.unpriced.append(BulkUpdateFailure(
                asset_id=asset.id,
                error_type="not_found",
                reason=f"No market price for ticker {symbol}",
            ))
            continue

        quantity = asset.quantity if asset.quantity is not None else 1.0
        plan.updates.append(ValueUpdate(
            asset_id=asset.id,
            new_value=quote.price * quantity,
            unit_price=quote.price,
        ))

    logger.info(
        "price_refresh_planned",
        as_of=today.isoformat(),
        priced=len(plan.updates),
        unpriced=len(plan.unpriced),
    )
    return plan

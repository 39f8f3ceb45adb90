"""Market price services."""

from src.services.market.price_oracle import (
    PriceOracleInterface,
    PriceRefreshPlan,
    StaticPriceOracle,
    YahooFinancePriceOracle,
    build_price_updates,
    refreshable_assets,
)

__all__ = [
    "PriceOracleInterface",
    "PriceRefreshPlan",
    "StaticPriceOracle",
    "YahooFinancePriceOracle",
    "build_price_updates",
    "refreshable_assets",
]

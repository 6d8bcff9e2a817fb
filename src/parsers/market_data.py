"""Market data provider — DexScreener first, Jupiter price-only fallback.

Pump.fun metadata (creator, creation time, socials, replies) is merged on
top for launchpad tokens regardless of which market source answered.
"""

import math
from dataclasses import replace

from loguru import logger

from src.models.token import MarketData
from src.parsers.dexscreener.client import DexScreenerClient, select_best_pair
from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.exceptions import UpstreamError
from src.parsers.jupiter.client import JupiterClient
from src.parsers.pumpfun.client import PumpfunClient
from src.parsers.pumpfun.models import PumpfunCoin
from src.utils.token_utils import timestamp_to_datetime

# DexScreener does not report curve state; graduation happens around this cap
BONDING_CURVE_COMPLETE_MCAP = 25000
VOLATILITY_WINDOWS = ("m5", "h1", "h6", "h24")
VOLATILITY_CAP = 100
PUMP_ADDRESS_SUFFIX = "pump"


def volatility_score(price_changes: dict[str, float]) -> float | None:
    """Mean absolute % change over the reported windows, capped at 100."""
    values = [abs(v) for k, v in price_changes.items() if k in VOLATILITY_WINDOWS]
    if not values:
        return None
    return min(VOLATILITY_CAP, math.floor(sum(values) / len(values)))


def _float(value: object) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


def _default_description(name: str | None) -> str:
    return f"{name} on Solana" if name else ""


def market_data_from_pair(address: str, pair: DexScreenerPair) -> MarketData:
    changes: dict[str, float] = {}
    if pair.priceChange is not None:
        for window in VOLATILITY_WINDOWS:
            value = getattr(pair.priceChange, window)
            if value is not None:
                changes[window] = float(value)

    volume_24h = _float(pair.volume.h24) if pair.volume else 0.0
    market_cap = _float(pair.marketCap)
    name = pair.baseToken.name if pair.baseToken else None
    symbol = pair.baseToken.symbol if pair.baseToken else None
    dex_id = pair.dexId or pair.chainId or "unknown"

    return MarketData(
        address=address,
        source="dexscreener",
        symbol=symbol or "UNKNOWN",
        name=name or "Unknown Token",
        description=_default_description(name),
        price=_float(pair.priceUsd),
        market_cap=market_cap,
        liquidity=pair.liquidity_usd,
        volume_24h=volume_24h,
        price_change_24h=changes.get("h24", 0.0),
        price_changes=changes,
        volatility_score=volatility_score(changes),
        dex_id=dex_id,
        pair_address=pair.pairAddress,
        created_at=timestamp_to_datetime(pair.pairCreatedAt) if pair.pairCreatedAt else None,
        image_url=pair.info.imageUrl if pair.info else None,
        has_twitter=pair.has_social("twitter"),
        has_telegram=pair.has_social("telegram"),
        has_website=pair.has_website,
        is_pumpfun="pump" in dex_id,
        bonding_curve_complete=market_cap > BONDING_CURVE_COMPLETE_MCAP,
    )


def merge_pumpfun(market: MarketData, coin: PumpfunCoin) -> MarketData:
    """Fill gaps from Pump.fun; existing market fields take precedence."""
    description = market.description
    if coin.description and len(coin.description) > len(description):
        description = coin.description
    return replace(
        market,
        creator=market.creator or coin.creator,
        created_at=market.created_at or coin.created_at,
        has_twitter=market.has_twitter or coin.has_twitter,
        has_telegram=market.has_telegram or coin.has_telegram,
        has_website=market.has_website or coin.has_website,
        comment_count=max(market.comment_count, coin.reply_count),
        replies=max(market.replies, coin.reply_count),
        description=description,
        image_url=market.image_url or coin.image_url,
        is_pumpfun=True,
        bonding_curve_complete=market.bonding_curve_complete or coin.complete,
    )


class MarketDataProvider:
    """Chooses a market source and merges launchpad metadata."""

    def __init__(
        self,
        dexscreener: DexScreenerClient,
        jupiter: JupiterClient | None = None,
        pumpfun: PumpfunClient | None = None,
    ) -> None:
        self._dexscreener = dexscreener
        self._jupiter = jupiter
        self._pumpfun = pumpfun

    async def fetch(self, mint: str) -> MarketData | None:
        """None when neither DexScreener nor Jupiter has the token."""
        market = await self._from_dexscreener(mint)
        if market is None and self._jupiter is not None:
            market = await self._from_jupiter(mint)
        if market is None:
            logger.warning(f"[MARKET] No market data for {mint[:12]}")
            return None

        if self._pumpfun is not None and (
            market.is_pumpfun or mint.lower().endswith(PUMP_ADDRESS_SUFFIX)
        ):
            market = await self._enrich_pumpfun(market)

        logger.info(
            f"[MARKET] {market.symbol} via {market.source}: price={market.price:.10g} "
            f"mcap=${market.market_cap:,.0f} liq=${market.liquidity:,.0f} vol=${market.volume_24h:,.0f}"
        )
        return market

    async def _from_dexscreener(self, mint: str) -> MarketData | None:
        try:
            pairs = await self._dexscreener.get_token_pairs(mint)
        except UpstreamError as e:
            logger.debug(f"[MARKET] DexScreener failed for {mint[:12]}: {e}")
            return None
        pair = select_best_pair(pairs)
        if pair is None:
            return None
        return market_data_from_pair(mint, pair)

    async def _from_jupiter(self, mint: str) -> MarketData | None:
        try:
            price = await self._jupiter.get_price(mint)
        except UpstreamError as e:
            logger.debug(f"[MARKET] Jupiter price failed for {mint[:12]}: {e}")
            return None
        if price is None or price.price is None:
            return None

        try:
            info = await self._jupiter.get_token_info(mint)
        except UpstreamError as e:
            logger.debug(f"[MARKET] Jupiter token info failed for {mint[:12]}: {e}")
            info = None

        if info is None:
            return MarketData(address=mint, source="jupiter-price-only", price=float(price.price))

        return MarketData(
            address=mint,
            source="jupiter",
            symbol=info.symbol or price.mint_symbol or "UNKNOWN",
            name=info.name or "Unknown Token",
            description=_default_description(info.name),
            price=float(price.price),
            volume_24h=float(info.daily_volume or 0),
            image_url=info.logo_uri,
        )

    async def _enrich_pumpfun(self, market: MarketData) -> MarketData:
        try:
            coin = await self._pumpfun.get_coin(market.address)
        except UpstreamError as e:
            logger.debug(f"[MARKET] Pump.fun enrichment failed for {market.address[:12]}: {e}")
            return market
        if coin is None:
            return market
        return merge_pumpfun(market, coin)

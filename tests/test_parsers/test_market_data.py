"""Tests for market source selection, pair mapping and Pump.fun merge."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from src.models.token import MarketData
from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.exceptions import UpstreamError
from src.parsers.jupiter.models import JupiterPrice, JupiterTokenInfo
from src.parsers.market_data import (
    MarketDataProvider,
    market_data_from_pair,
    merge_pumpfun,
    volatility_score,
)
from src.parsers.pumpfun.models import PumpfunCoin

PUMP_MINT = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hrpump"


def _pair(**overrides) -> DexScreenerPair:
    data = {
        "chainId": "solana",
        "dexId": "raydium",
        "pairAddress": "PairA",
        "baseToken": {"address": "Mint", "name": "Cat", "symbol": "CAT"},
        "priceUsd": "0.0005",
        "marketCap": 500000,
        "liquidity": {"usd": 80000},
        "volume": {"h24": 120000},
        "priceChange": {"m5": 1, "h1": -3, "h6": 5, "h24": -11},
        "pairCreatedAt": 1700000000000,
        "info": {"socials": [{"type": "twitter", "url": "https://x.com/cat"}]},
    }
    data.update(overrides)
    return DexScreenerPair.model_validate(data)


def _clients(pairs=None, dex_error=None, price=None, info=None, coin=None):
    dex = AsyncMock()
    if dex_error is not None:
        dex.get_token_pairs.side_effect = dex_error
    else:
        dex.get_token_pairs.return_value = pairs or []
    jupiter = AsyncMock()
    jupiter.get_price.return_value = price
    jupiter.get_token_info.return_value = info
    pumpfun = AsyncMock()
    pumpfun.get_coin.return_value = coin
    return dex, jupiter, pumpfun


def test_volatility_score():
    assert volatility_score({"m5": 1, "h1": -3, "h6": 5, "h24": -11}) == 5
    assert volatility_score({"h24": -500}) == 100
    assert volatility_score({"d7": 40}) is None
    assert volatility_score({}) is None


def test_market_data_from_pair():
    market = market_data_from_pair("Mint", _pair())
    assert market.source == "dexscreener"
    assert market.symbol == "CAT"
    assert market.description == "Cat on Solana"
    assert market.price == 0.0005
    assert market.liquidity == 80000
    assert market.volume_24h == 120000
    assert market.price_change_24h == -11
    assert market.volatility_score == 5
    assert market.has_twitter and not market.has_telegram
    assert market.created_at is not None
    assert not market.is_pumpfun
    assert market.bonding_curve_complete


def test_market_data_from_pumpswap_pair():
    market = market_data_from_pair("Mint", _pair(dexId="pumpswap", marketCap=9000, priceChange=None))
    assert market.is_pumpfun
    assert not market.bonding_curve_complete
    assert market.volatility_score is None


def test_merge_pumpfun_fills_gaps_only():
    market = MarketData(address="Mint", source="dexscreener", description="Cat on Solana", has_twitter=True)
    coin = PumpfunCoin(
        creator="Creator1",
        description="The cattiest cat coin on all of Solana",
        telegram="https://t.me/cat",
        reply_count=40,
        complete=False,
    )
    merged = merge_pumpfun(market, coin)
    assert merged.creator == "Creator1"
    assert merged.description == coin.description
    assert merged.has_twitter and merged.has_telegram
    assert merged.replies == 40
    assert merged.comment_count == 40
    assert merged.is_pumpfun


@pytest.mark.asyncio
async def test_dexscreener_preferred(mint):
    dex, jupiter, pumpfun = _clients(pairs=[_pair()])
    market = await MarketDataProvider(dex, jupiter, pumpfun).fetch(mint)
    assert market.source == "dexscreener"
    jupiter.get_price.assert_not_awaited()
    pumpfun.get_coin.assert_not_awaited()


@pytest.mark.asyncio
async def test_jupiter_fallback_when_dexscreener_fails(mint):
    dex, jupiter, pumpfun = _clients(
        dex_error=UpstreamError("timeout"),
        price=JupiterPrice(id=mint, price=Decimal("0.00002")),
        info=JupiterTokenInfo(address=mint, symbol="BONK", name="Bonk", daily_volume=Decimal("5000")),
    )
    market = await MarketDataProvider(dex, jupiter, pumpfun).fetch(mint)
    assert market.source == "jupiter"
    assert market.symbol == "BONK"
    assert market.price == 0.00002
    assert market.volume_24h == 5000
    assert market.liquidity == 0
    assert market.market_cap == 0


@pytest.mark.asyncio
async def test_jupiter_price_only(mint):
    dex, jupiter, pumpfun = _clients(price=JupiterPrice(id=mint, price=Decimal("1.5")))
    market = await MarketDataProvider(dex, jupiter, pumpfun).fetch(mint)
    assert market.source == "jupiter-price-only"
    assert market.symbol == "UNKNOWN"
    assert market.price == 1.5


@pytest.mark.asyncio
async def test_no_source_returns_none(mint):
    dex, jupiter, pumpfun = _clients()
    assert await MarketDataProvider(dex, jupiter, pumpfun).fetch(mint) is None


@pytest.mark.asyncio
async def test_pump_suffix_triggers_enrichment():
    dex, jupiter, pumpfun = _clients(
        pairs=[_pair()],
        coin=PumpfunCoin(mint=PUMP_MINT, creator="Creator1", reply_count=12, complete=True),
    )
    market = await MarketDataProvider(dex, jupiter, pumpfun).fetch(PUMP_MINT)
    pumpfun.get_coin.assert_awaited_once_with(PUMP_MINT)
    assert market.creator == "Creator1"
    assert market.replies == 12
    assert market.is_pumpfun


@pytest.mark.asyncio
async def test_pumpfun_failure_keeps_market():
    dex, jupiter, pumpfun = _clients(pairs=[_pair(dexId="pumpswap")])
    pumpfun.get_coin.side_effect = UpstreamError("down")
    market = await MarketDataProvider(dex, jupiter, pumpfun).fetch(PUMP_MINT)
    assert market.source == "dexscreener"
    assert market.creator is None

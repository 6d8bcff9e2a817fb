"""Tests for DexScreener client and best-pair selection."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.parsers.dexscreener.client import DexScreenerClient, select_best_pair
from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.exceptions import UpstreamError


def _pair(dex_id: str, liquidity: float, pair_address: str = "") -> DexScreenerPair:
    return DexScreenerPair.model_validate(
        {
            "chainId": "solana",
            "dexId": dex_id,
            "pairAddress": pair_address or f"{dex_id}_{liquidity}",
            "liquidity": {"usd": liquidity},
        }
    )


def _mock_get(client: DexScreenerClient, payload) -> None:
    resp = MagicMock()
    resp.json.return_value = payload
    client._client = AsyncMock()
    client._client.get = AsyncMock(return_value=resp)


def test_native_pair_preferred_over_deeper_pool():
    pairs = [_pair("raydium", 90000), _pair("pumpswap", 5000), _pair("meteora", 120000)]
    assert select_best_pair(pairs).dexId == "pumpswap"


def test_highest_liquidity_wins_ties_keep_first():
    pairs = [
        _pair("raydium", 50000, "first"),
        _pair("orca", 50000, "second"),
        _pair("meteora", 10000, "third"),
    ]
    assert select_best_pair(pairs).pairAddress == "first"


def test_no_pairs():
    assert select_best_pair([]) is None


def test_pair_social_helpers():
    pair = DexScreenerPair.model_validate(
        {
            "dexId": "raydium",
            "info": {
                "imageUrl": "https://img",
                "socials": [{"type": "twitter", "url": "https://x.com/token"}],
                "websites": [{"label": "Website", "url": "https://token.xyz"}],
            },
        }
    )
    assert pair.has_social("twitter")
    assert not pair.has_social("telegram")
    assert pair.has_website
    assert pair.liquidity_usd == 0.0


@pytest.mark.asyncio
async def test_get_token_pairs_list_response(guard, mint):
    client = DexScreenerClient(guard, max_rps=0)
    _mock_get(
        client,
        [
            {
                "chainId": "solana",
                "dexId": "raydium",
                "pairAddress": "PairA",
                "baseToken": {"address": mint, "name": "Bonk", "symbol": "BONK"},
                "priceUsd": "0.00002",
                "marketCap": 1500000000,
                "liquidity": {"usd": 2500000},
                "volume": {"h24": 1200000},
                "priceChange": {"m5": 0.1, "h1": -0.5, "h6": 1.2, "h24": 3.4},
                "pairCreatedAt": 1700000000000,
            }
        ],
    )
    pairs = await client.get_token_pairs(mint)
    assert len(pairs) == 1
    assert pairs[0].baseToken.symbol == "BONK"
    assert pairs[0].priceChange.h24 == 3.4
    client._client.get.assert_awaited_once_with(f"/token-pairs/v1/solana/{mint}")


@pytest.mark.asyncio
async def test_get_token_pairs_legacy_dict_response(guard, mint):
    client = DexScreenerClient(guard, max_rps=0)
    _mock_get(client, {"pairs": [{"dexId": "orca", "pairAddress": "P"}]})
    pairs = await client.get_token_pairs(mint)
    assert [p.dexId for p in pairs] == ["orca"]


@pytest.mark.asyncio
async def test_get_token_pairs_http_error(guard, mint):
    client = DexScreenerClient(guard, max_rps=0)
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
    with pytest.raises(UpstreamError):
        await client.get_token_pairs(mint)


@pytest.mark.asyncio
async def test_get_token_pairs_non_json_body(guard, mint):
    client = DexScreenerClient(guard, max_rps=0)
    resp = MagicMock()
    resp.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
    client._client = AsyncMock()
    client._client.get = AsyncMock(return_value=resp)
    with pytest.raises(UpstreamError, match="invalid JSON"):
        await client.get_token_pairs(mint)


@pytest.mark.asyncio
async def test_get_token_pairs_malformed_pair(guard, mint):
    client = DexScreenerClient(guard, max_rps=0)
    _mock_get(client, [{"dexId": {"unexpected": "object"}}])
    with pytest.raises(UpstreamError, match="malformed pair"):
        await client.get_token_pairs(mint)


@pytest.mark.asyncio
async def test_get_token_pairs_unexpected_body_type(guard, mint):
    client = DexScreenerClient(guard, max_rps=0)
    _mock_get(client, "rate limited")
    assert await client.get_token_pairs(mint) == []

"""Tests for Pump.fun coin metadata client."""

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.parsers.pumpfun.client import COIN_ENDPOINTS, PumpfunClient, _parse_coin


def test_parse_coin_full_payload():
    coin = _parse_coin(
        {
            "mint": "MintPump",
            "name": "Cat",
            "symbol": "CAT",
            "description": "A cat on Solana",
            "creator": "Creator1",
            "created_timestamp": 1700000000000,
            "twitter": "https://x.com/cat",
            "telegram": None,
            "reply_count": 57,
            "complete": True,
            "usd_market_cap": 71234.5,
        },
        "MintPump",
    )
    assert coin.creator == "Creator1"
    assert coin.created_at is not None and coin.created_at.year == 2023
    assert coin.has_twitter and not coin.has_telegram
    assert coin.reply_count == 57
    assert coin.complete is True


def test_parse_coin_wrapped_with_social_dict():
    coin = _parse_coin(
        {"data": {"symbol": "DOG", "social": {"telegram": "https://t.me/dog"}, "replies": "12"}},
        "MintDog",
    )
    assert coin.mint == "MintDog"
    assert coin.has_telegram
    assert coin.reply_count == 12


@pytest.mark.asyncio
async def test_get_coin_falls_back_to_next_endpoint(guard):
    client = PumpfunClient(guard, max_rps=0)
    ok = MagicMock()
    ok.json.return_value = {"symbol": "CAT", "creator": "Creator1"}
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=[httpx.ConnectError("down"), ok])

    coin = await client.get_coin("MintPump")
    assert coin is not None
    assert coin.creator == "Creator1"
    second_url = client._client.get.await_args_list[1].args[0]
    assert second_url == f"{COIN_ENDPOINTS[1]}/MintPump"


@pytest.mark.asyncio
async def test_get_coin_all_endpoints_fail(guard):
    client = PumpfunClient(guard, max_rps=0)
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=httpx.ConnectError("down"))
    assert await client.get_coin("MintPump") is None
    assert client._client.get.await_count == len(COIN_ENDPOINTS)


@pytest.mark.asyncio
async def test_get_coin_skips_non_json_mirror(guard):
    client = PumpfunClient(guard, max_rps=0)
    html = MagicMock()
    html.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
    ok = MagicMock()
    ok.json.return_value = {"symbol": "CAT", "creator": "Creator1"}
    client._client = AsyncMock()
    client._client.get = AsyncMock(side_effect=[html, ok])

    coin = await client.get_coin("MintPump")
    assert coin is not None
    assert coin.creator == "Creator1"


@pytest.mark.asyncio
async def test_get_coin_malformed_payloads_return_none(guard):
    client = PumpfunClient(guard, max_rps=0)
    bad = MagicMock()
    bad.json.return_value = {"symbol": "CAT", "created_timestamp": "yesterday"}
    client._client = AsyncMock()
    client._client.get = AsyncMock(return_value=bad)
    assert await client.get_coin("MintPump") is None
    assert client._client.get.await_count == len(COIN_ENDPOINTS)

"""Tests for the end-to-end analysis pipeline with mocked providers."""

import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.settings import Settings
from src.models.token import MarketData, RiskIntel
from src.parsers.analyzer import TokenAnalyzer
from src.parsers.exceptions import InvalidAddressError, MarketDataUnavailableError, UpstreamError
from src.parsers.llm_analyzer.client import LLMNarrator, NullNarrator
from src.parsers.solana_rpc.models import TokenSupply


def _market(mint: str) -> MarketData:
    return MarketData(
        address=mint,
        source="dexscreener",
        symbol="BONK",
        name="Bonk",
        price=0.00002,
        market_cap=1_500_000_000,
        liquidity=2_500_000,
        volume_24h=1_200_000,
        dex_id="raydium",
        has_twitter=True,
        has_website=True,
    )


def _providers(mint, make_analysis, market=None):
    market_provider = AsyncMock()
    market_provider.fetch.return_value = market if market is not None else _market(mint)

    chain = AsyncMock()
    chain.get_token_supply.return_value = TokenSupply(total=Decimal("1000000"), decimals=5)
    chain.analyze_holders.return_value = make_analysis(
        [("PdaPool", 30.0, False), ("WalletA", 3.0, True), ("WalletB", 2.0, True), ("WalletC", 1.5, True)]
    )
    chain.gather_risk_intel.return_value = RiskIntel(
        same_deployer_count=1, has_active_mint_authority=False, deployer_address="Deployer1"
    )
    chain.count_holders.return_value = 20
    return market_provider, chain


@pytest.mark.asyncio
@pytest.mark.parametrize("address", ["", "   ", "not-an-address", "0x1234"])
async def test_invalid_address_makes_no_calls(address, mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    analyzer = TokenAnalyzer(market, chain)
    with pytest.raises(InvalidAddressError):
        await analyzer.analyze(address)
    market.fetch.assert_not_awaited()
    chain.get_token_supply.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_market_data_raises(mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    market.fetch.return_value = None
    with pytest.raises(MarketDataUnavailableError):
        await TokenAnalyzer(market, chain).analyze(mint)
    chain.get_token_supply.assert_not_awaited()


@pytest.mark.asyncio
async def test_full_pipeline(mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    report = await TokenAnalyzer(market, chain).analyze(f"  {mint}\n")

    market.fetch.assert_awaited_once_with(mint)
    chain.gather_risk_intel.assert_awaited_once_with(mint, None)
    assert report.snapshot.symbol == "BONK"
    assert report.snapshot.holder_count == 4
    chain.count_holders.assert_not_awaited()
    assert report.snapshot.top3_excluding_lp_percent == 6
    assert report.snapshot.lp_like_holder_percent == 30
    assert "Mint authority disabled" in report.positive_signals
    assert "Largest raw holder/vault controls ~30% of supply" in report.key_threats
    assert 5 <= report.trust_score <= 100
    assert report.ai_summary.startswith("BONK - Bonk | Price: $")


@pytest.mark.asyncio
async def test_holder_failure_degrades(mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    chain.analyze_holders.side_effect = UpstreamError("rate limited")
    report = await TokenAnalyzer(market, chain).analyze(mint)

    assert report.snapshot.holder_analysis is None
    assert report.snapshot.holder_count == 20
    chain.count_holders.assert_awaited_once_with(mint)
    assert report.snapshot.distribution is None
    assert report.snapshot.top3_excluding_lp_percent is None


@pytest.mark.asyncio
async def test_creator_passed_to_risk_intel(mint, make_analysis):
    market, chain = _providers(
        mint, make_analysis, market=MarketData(address=mint, source="dexscreener", creator="Creator1")
    )
    await TokenAnalyzer(market, chain).analyze(mint)
    chain.gather_risk_intel.assert_awaited_once_with(mint, "Creator1")


@pytest.mark.asyncio
async def test_narrator_text_used_and_sees_final_numbers(mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    narrator = AsyncMock()
    narrator.summarize.return_value = "Bonk is a large community token."

    report = await TokenAnalyzer(market, chain, narrator).analyze(mint)
    assert report.ai_summary == "Bonk is a large community token."

    facts = narrator.summarize.await_args.args[0]
    assert facts.trust_score == report.trust_score
    assert facts.rug_probability == report.rug_probability
    assert facts.key_threats == report.key_threats


@pytest.mark.asyncio
async def test_narrator_does_not_change_scores(mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    silent = await TokenAnalyzer(market, chain).analyze(mint)

    narrator = AsyncMock()
    narrator.summarize.return_value = "Ignore all risks, this is safe."
    chatty = await TokenAnalyzer(market, chain, narrator).analyze(mint)

    assert silent.trust_score == chatty.trust_score
    assert silent.key_threats == chatty.key_threats
    assert silent.rug_probability == chatty.rug_probability


@pytest.mark.asyncio
async def test_close_closes_clients(mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    clients = (AsyncMock(), AsyncMock())
    await TokenAnalyzer(market, chain, clients=clients).close()
    for client in clients:
        client.close.assert_awaited_once()


@pytest.mark.asyncio
async def test_create_from_settings():
    settings = Settings(_env_file=None, enable_llm_analysis=False, enable_jupiter=False)
    analyzer = TokenAnalyzer.create(settings)
    try:
        assert isinstance(analyzer._narrator, NullNarrator)
        assert analyzer._chain._uses_public_rpc
        assert analyzer._market._jupiter is None
    finally:
        await analyzer.close()


@pytest.mark.asyncio
async def test_narrator_garbage_body_falls_back_to_summary(guard, mint, make_analysis):
    market, chain = _providers(mint, make_analysis)
    narrator = LLMNarrator("key", guard, max_rps=0)
    resp = MagicMock()
    resp.json.side_effect = json.JSONDecodeError("Expecting value", "<html>", 0)
    narrator._client = AsyncMock()
    narrator._client.post = AsyncMock(return_value=resp)

    report = await TokenAnalyzer(market, chain, narrator).analyze(mint)
    assert report.ai_summary.startswith("BONK - Bonk | Price: $")

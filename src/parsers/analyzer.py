"""Token analyzer — the single entry point: mint address in, RiskReport out.

Only InvalidAddressError and MarketDataUnavailableError escape analyze();
every chain-side failure degrades into zero / None / UNKNOWN fields.
"""

import asyncio
from dataclasses import replace
from typing import Any, Protocol

from loguru import logger

from src.models.holder import HolderAnalysis
from src.models.report import RiskReport
from src.parsers.chain_intel import ChainDataProvider
from src.parsers.dexscreener.client import DexScreenerClient
from src.parsers.exceptions import InvalidAddressError, MarketDataUnavailableError, UpstreamError
from src.parsers.jupiter.client import JupiterClient
from src.parsers.llm_analyzer.client import (
    LLMNarrator,
    NarrativeFacts,
    NarrativeGenerator,
    NullNarrator,
    fallback_summary,
)
from src.parsers.market_data import MarketDataProvider
from src.parsers.pumpfun.client import PumpfunClient
from src.parsers.report_assembler import assemble_report
from src.parsers.snapshot_builder import SnapshotBuilder
from src.parsers.solana_rpc.client import SolanaRpcClient
from src.parsers.trust_score import calculate_trust_score
from src.parsers.upstream import UpstreamGuard
from src.utils.token_utils import is_valid_solana_address


class _Closeable(Protocol):
    async def close(self) -> None: ...


class TokenAnalyzer:
    """Validate → market data → chain data → snapshot → score → report."""

    def __init__(
        self,
        market: MarketDataProvider,
        chain: ChainDataProvider,
        narrator: NarrativeGenerator | None = None,
        *,
        clients: tuple[_Closeable, ...] = (),
    ) -> None:
        self._market = market
        self._chain = chain
        self._narrator: NarrativeGenerator = narrator or NullNarrator()
        self._clients = clients

    @classmethod
    def create(cls, settings: Any) -> "TokenAnalyzer":
        """Wire every client from settings around one shared UpstreamGuard."""
        guard = UpstreamGuard.from_settings(settings)
        guard.init()

        rpc = SolanaRpcClient(
            settings.solana_rpc_url,
            guard,
            timeout=settings.rpc_timeout_sec,
            max_rps=settings.rpc_max_rps,
        )
        dexscreener = DexScreenerClient(
            guard, max_rps=settings.dexscreener_max_rps, timeout=settings.http_timeout_sec
        )
        jupiter = (
            JupiterClient(
                guard,
                api_key=settings.jupiter_api_key,
                max_rps=settings.jupiter_max_rps,
                timeout=settings.http_timeout_sec,
            )
            if settings.enable_jupiter
            else None
        )
        pumpfun = (
            PumpfunClient(guard, max_rps=settings.pumpfun_max_rps, timeout=settings.http_timeout_sec)
            if settings.enable_pumpfun
            else None
        )

        narrator: NarrativeGenerator
        if settings.enable_llm_analysis and settings.openrouter_api_key:
            narrator = LLMNarrator(settings.openrouter_api_key, guard, model=settings.llm_model)
        else:
            narrator = NullNarrator()

        if settings.uses_public_rpc:
            logger.warning("[ANALYZER] Public RPC in use, deployer/sniper heuristics disabled")

        clients = tuple(c for c in (rpc, dexscreener, jupiter, pumpfun, narrator) if c is not None)
        return cls(
            MarketDataProvider(dexscreener, jupiter, pumpfun),
            ChainDataProvider(
                rpc,
                uses_public_rpc=settings.uses_public_rpc,
                owner_max_concurrent=settings.holder_owner_max_concurrent,
            ),
            narrator,
            clients=clients,
        )

    async def _holder_analysis(self, mint: str, supply) -> HolderAnalysis | None:
        try:
            return await self._chain.analyze_holders(mint, supply)
        except UpstreamError as e:
            logger.warning(f"[ANALYZER] Holder analysis failed for {mint[:12]}: {e}")
            return None

    async def analyze(self, mint: str) -> RiskReport:
        mint = (mint or "").strip()
        if not is_valid_solana_address(mint):
            raise InvalidAddressError(mint)

        logger.info(f"[ANALYZER] Analyzing {mint}")
        market = await self._market.fetch(mint)
        if market is None:
            raise MarketDataUnavailableError(f"No market data available for {mint}")

        supply = await self._chain.get_token_supply(mint)
        holders, intel = await asyncio.gather(
            self._holder_analysis(mint, supply),
            self._chain.gather_risk_intel(mint, market.creator),
        )
        if holders is not None:
            holder_count = holders.account_count
        else:
            holder_count = await self._chain.count_holders(mint)

        snapshot = (
            SnapshotBuilder(market)
            .with_supply(supply)
            .with_holders(holders, holder_count)
            .with_risk_intel(intel)
            .build()
        )

        trust = calculate_trust_score(snapshot)
        report = assemble_report(snapshot, trust_score=trust)

        facts = NarrativeFacts(
            symbol=snapshot.symbol,
            name=snapshot.name,
            price=snapshot.price,
            market_cap=snapshot.market_cap,
            volume_24h=snapshot.volume_24h,
            liquidity=snapshot.liquidity,
            trust_score=report.trust_score,
            risk_level=report.risk_level.value,
            rug_probability=report.rug_probability,
            key_threats=list(report.key_threats),
        )
        summary = await self._narrator.summarize(facts)
        return replace(report, ai_summary=summary or fallback_summary(facts))

    async def close(self) -> None:
        for client in self._clients:
            await client.close()

"""Snapshot builder — merges market, holder and risk-intel data into one TokenSnapshot.

Sources are attached as they arrive; build() derives every computed field in
a single pass and returns an immutable snapshot.
"""

import math
from datetime import UTC, datetime
from decimal import Decimal

from loguru import logger

from src.models.holder import HolderAnalysis, HolderMetrics
from src.models.token import (
    ConcentrationRisk,
    CreatorReputation,
    DistributionAnalysis,
    MarketData,
    RiskIntel,
    TokenSnapshot,
)
from src.parsers.holder_concentration import derive_holder_metrics
from src.parsers.social_score import (
    buzz_level,
    enhance_social_score,
    extract_socials,
    mention_velocity,
    organic_growth,
)
from src.parsers.solana_rpc.models import TokenSupply
from src.utils.token_utils import age_in_hours

# (min concentration exclusive, risk), checked top-down
CONCENTRATION_RISK_TIERS = (
    (80, ConcentrationRisk.EXTREME),
    (60, ConcentrationRisk.HIGH),
    (40, ConcentrationRisk.MEDIUM),
)
HEALTHY_CONCENTRATION_MAX = 40
SUSPICIOUS_CONCENTRATION_MIN = 70

SUSPICIOUS_VELOCITY_MIN = 80


def build_distribution(metrics: HolderMetrics) -> DistributionAnalysis:
    concentration = metrics.holder_concentration
    risk = ConcentrationRisk.LOW
    for threshold, tier in CONCENTRATION_RISK_TIERS:
        if concentration > threshold:
            risk = tier
            break
    return DistributionAnalysis(
        distribution_score=max(0, 100 - concentration),
        concentration_risk=risk,
        top_holder_percent=metrics.top_holder_percent,
        top5_percent=metrics.top5_percent,
        top10_percent=metrics.top10_percent,
        has_healthy_distribution=concentration < HEALTHY_CONCENTRATION_MAX,
        has_suspicious_holders=concentration > SUSPICIOUS_CONCENTRATION_MIN,
        whale_count=metrics.whale_count,
        small_holder_ratio=metrics.small_holder_ratio,
    )


def build_creator_reputation(intel: RiskIntel) -> CreatorReputation:
    return CreatorReputation(
        tokens_created=max(0, intel.same_deployer_count - 1),
        has_history=intel.same_deployer_count > 1,
        suspicious_activity=intel.rug_creator_risk,
        wallet_age_days=intel.deployer_age_days,
    )


class SnapshotBuilder:
    """Accumulates provider results for one token, then builds the snapshot."""

    def __init__(self, market: MarketData, now: datetime | None = None) -> None:
        self._market = market
        self._now = now or datetime.now(UTC)
        self._holder_analysis: HolderAnalysis | None = None
        self._holder_count = 0
        self._supply = TokenSupply()
        self._risk_intel = RiskIntel.unknown()

    def with_supply(self, supply: TokenSupply) -> "SnapshotBuilder":
        self._supply = supply
        return self

    def with_holders(
        self, analysis: HolderAnalysis | None, holder_count: int = 0
    ) -> "SnapshotBuilder":
        self._holder_analysis = analysis
        self._holder_count = holder_count
        return self

    def with_risk_intel(self, intel: RiskIntel) -> "SnapshotBuilder":
        self._risk_intel = intel
        return self

    def _market_cap(self) -> float:
        """Price-only sources get market cap from on-chain supply."""
        market = self._market
        if market.market_cap > 0 or not market.source.startswith("jupiter"):
            return market.market_cap
        if self._supply.total <= 0 or market.price <= 0:
            return 0.0
        return float(Decimal(str(market.price)) * self._supply.total)

    def build(self) -> TokenSnapshot:
        market = self._market
        intel = self._risk_intel
        analysis = self._holder_analysis

        metrics = derive_holder_metrics(analysis, intel.deployer_address)
        has_holders = analysis is not None and bool(analysis.top_holders)
        distribution = build_distribution(metrics) if has_holders else None
        reputation = build_creator_reputation(intel) if intel.deployer_address else None

        market_cap = self._market_cap()
        presence = extract_socials(
            has_twitter=market.has_twitter,
            has_telegram=market.has_telegram,
            has_website=market.has_website,
            description=market.description,
        )
        social = enhance_social_score(presence, market.comment_count, market_cap)
        velocity = mention_velocity(market.comment_count)
        organic = organic_growth(market.volume_24h)

        snapshot = TokenSnapshot(
            address=market.address,
            symbol=market.symbol,
            name=market.name,
            description=market.description,
            source=market.source,
            dex_id=market.dex_id,
            image_url=market.image_url,
            price=market.price,
            market_cap=market_cap,
            liquidity=market.liquidity,
            volume_24h=market.volume_24h,
            price_change_24h=market.price_change_24h,
            volatility_score=market.volatility_score,
            holder_count=self._holder_count,
            holder_analysis=analysis,
            total_supply=self._supply.total,
            decimals=self._supply.decimals,
            created_at=market.created_at,
            age_in_hours=age_in_hours(market.created_at, self._now),
            top_holder_percent=metrics.top_holder_percent,
            holder_concentration=metrics.holder_concentration,
            top3_excluding_lp_percent=metrics.top3_excluding_lp_percent,
            lp_like_holder_percent=metrics.lp_like_holder_percent,
            off_curve_excluded_count=metrics.off_curve_excluded_count,
            deployer_holder_percent=metrics.deployer_holder_percent,
            distribution=distribution,
            has_twitter=presence.has_twitter,
            has_telegram=presence.has_telegram,
            has_website=presence.has_website,
            comment_count=market.comment_count,
            replies=market.replies,
            social_score=social.score,
            engagement_rate=social.engagement_rate,
            bot_suspicion=social.bot_suspicion,
            estimated_followers=social.estimated_followers,
            mention_velocity=velocity,
            organic_growth=organic,
            buzz_level=buzz_level(market.volume_24h),
            suspicious_social_activity=velocity > SUSPICIOUS_VELOCITY_MIN and not organic,
            fresh_wallet_buys=intel.fresh_wallet_buys,
            same_deployer_count=intel.same_deployer_count,
            rug_creator_risk=intel.rug_creator_risk,
            dump_risk=intel.dump_risk,
            buy_pressure=intel.buy_pressure,
            bot_activity=intel.bot_activity,
            is_new_wallet=intel.is_new_wallet,
            has_active_mint_authority=intel.has_active_mint_authority,
            wallet_clustering=intel.wallet_clustering,
            deployer_address=intel.deployer_address,
            creator_reputation=reputation,
            is_pumpfun=market.is_pumpfun,
            bonding_curve_complete=market.bonding_curve_complete,
            creator=market.creator,
            analyzed_at=self._now,
        )
        logger.debug(
            f"[SNAPSHOT] {snapshot.symbol}: holders={snapshot.holder_count} "
            f"concentration={snapshot.holder_concentration}% "
            f"top3_ex_lp={snapshot.top3_excluding_lp_percent} "
            f"age={math.floor(snapshot.age_in_hours) if snapshot.age_in_hours is not None else 'N/A'}h"
        )
        return snapshot

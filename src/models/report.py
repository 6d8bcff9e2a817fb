"""Risk report — the stable response contract handed to the UI / HTTP layer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.models.token import UNKNOWN, TokenSnapshot


class RiskLevel(str, Enum):
    VERY_LOW = "VERY LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY HIGH"


class RugLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class RiskReport:
    """Pure function of a TokenSnapshot (plus cosmetic ai_summary)."""

    trust_score: int
    risk_level: RiskLevel
    rug_probability: str  # "NN%"
    rug_level: RugLevel
    key_threats: list[str]
    positive_signals: list[str]
    trader_note: str
    visual_indicator: str
    indicator_color: str
    snapshot: TokenSnapshot
    ai_summary: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        s = self.snapshot
        dist = s.distribution
        rep = s.creator_reputation
        return {
            "trustScore": self.trust_score,
            "riskLevel": self.risk_level.value,
            "ageInHours": s.age_in_hours or 0,
            "ageFormatted": s.age_formatted,
            "holderContext": {
                "topHolderPercent": s.top_holder_percent,
                "top3ExcludingLpPercent": s.top3_excluding_lp_percent,
                "lpLikeHolderPercent": s.lp_like_holder_percent,
                "offCurveExcludedCount": s.off_curve_excluded_count,
            },
            "tokenInfo": {
                "symbol": s.symbol,
                "name": s.name,
                "address": s.address,
                "price": s.price,
                "marketCap": s.market_cap,
                "dexId": s.dex_id,
                "creator": s.creator,
                "imageUrl": s.image_url,
                "source": s.source,
            },
            "breakdown": {
                "liquidity": s.liquidity,
                "holders": s.holder_count,
                "volume24h": s.volume_24h,
                "age": s.age_in_hours or 0,
                "topHolderPercent": s.top_holder_percent,
                "priceChange24h": s.price_change_24h,
                "volatilityScore": s.volatility_score or 0,
            },
            "socialData": {
                "socialScore": s.social_score,
                "mentionVelocity": s.mention_velocity or 0,
                "organicGrowth": s.organic_growth is not False,
                "buzzLevel": s.buzz_level or 0,
                "hasTwitter": s.has_twitter,
                "hasTelegram": s.has_telegram,
                "hasWebsite": s.has_website,
                "replies": s.replies,
                "description": s.description,
                "suspiciousSocialActivity": s.suspicious_social_activity,
            },
            "creatorData": {
                "reputationScore": rep.reputation_score if rep else 0,
                "tokensCreated": rep.tokens_created if rep else 0,
                "successfulTokens": rep.successful_tokens if rep else 0,
                "suspiciousActivity": rep.suspicious_activity if rep else False,
                "hasHistory": rep.has_history if rep else False,
                "walletAgeDays": rep.wallet_age_days if rep else None,
            },
            "distributionData": {
                "distributionScore": dist.distribution_score if dist else 0,
                "concentrationRisk": dist.concentration_risk.value if dist else UNKNOWN,
                "topHolderPercent": dist.top_holder_percent if dist else s.top_holder_percent,
                "top5Percent": dist.top5_percent if dist else 0,
                "top10Percent": dist.top10_percent if dist else 0,
                "hasHealthyDistribution": dist.has_healthy_distribution if dist else False,
                "hasSuspiciousHolders": dist.has_suspicious_holders if dist else False,
                "whaleCount": dist.whale_count if dist else 0,
                "smallHolderRatio": dist.small_holder_ratio if dist else 0,
            },
            "riskFactors": {
                "hasActiveMintAuthority": s.has_active_mint_authority,
                "sameDeployerCount": s.same_deployer_count,
                "freshWalletBuys": s.fresh_wallet_buys,
                "walletClustering": s.wallet_clustering,
                "rugCreatorRisk": s.rug_creator_risk,
                "dumpRisk": s.dump_risk,
                "buyPressure": s.buy_pressure,
                "extremeVolatility": abs(s.price_change_24h) > 200,
                "bondingCurveComplete": s.bonding_curve_complete,
            },
            "rugProbability": self.rug_probability,
            "rugLevel": self.rug_level.value,
            "keyThreats": list(self.key_threats),
            "positiveSignals": list(self.positive_signals),
            "traderNote": self.trader_note,
            "visualIndicator": self.visual_indicator,
            "indicatorColor": self.indicator_color,
            "aiSummary": self.ai_summary,
            "timestamp": s.analyzed_at.isoformat(),
            **self.extra,
        }

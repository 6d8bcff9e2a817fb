"""Per-request token records: market data, risk intel, and the merged snapshot."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from src.models.holder import HolderAnalysis
from src.utils.token_utils import format_token_age

UNKNOWN = "UNKNOWN"


class ConcentrationRisk(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXTREME = "EXTREME"


@dataclass(frozen=True)
class MarketData:
    """Market fields merged from DexScreener / Jupiter / Pump.fun."""

    address: str
    source: str
    symbol: str = "UNKNOWN"
    name: str = "Unknown Token"
    description: str = ""
    price: float = 0.0
    market_cap: float = 0.0
    liquidity: float = 0.0
    volume_24h: float = 0.0
    price_change_24h: float = 0.0
    price_changes: dict[str, float] = field(default_factory=dict)  # m5/h1/h6/h24
    volatility_score: float | None = None
    dex_id: str = "unknown"
    pair_address: str = ""
    created_at: datetime | None = None
    image_url: str | None = None
    has_twitter: bool = False
    has_telegram: bool = False
    has_website: bool = False
    comment_count: int = 0
    replies: int = 0
    creator: str | None = None
    is_pumpfun: bool = False
    bonding_curve_complete: bool = False


@dataclass(frozen=True)
class RiskIntel:
    """On-chain deployer / sniper heuristics. Degrades to unknown() on failure."""

    fresh_wallet_buys: int = 0
    same_deployer_count: int = 0
    rug_creator_risk: bool = False
    dump_risk: str = UNKNOWN
    buy_pressure: str = UNKNOWN
    bot_activity: bool = False
    is_new_wallet: bool = False
    has_active_mint_authority: bool | None = None
    wallet_clustering: bool = False
    deployer_address: str | None = None
    deployer_age_days: int | None = None

    @classmethod
    def unknown(cls, has_active_mint_authority: bool | None = None) -> "RiskIntel":
        return cls(has_active_mint_authority=has_active_mint_authority)


@dataclass(frozen=True)
class DistributionAnalysis:
    distribution_score: int
    concentration_risk: ConcentrationRisk
    top_holder_percent: int = 0
    top5_percent: int = 0
    top10_percent: int = 0
    has_healthy_distribution: bool = False
    has_suspicious_holders: bool = False
    whale_count: int = 0
    small_holder_ratio: float = 0.0


@dataclass(frozen=True)
class CreatorReputation:
    reputation_score: int = 50
    tokens_created: int = 0
    successful_tokens: int = 0
    suspicious_activity: bool = False
    has_history: bool = False
    wallet_age_days: int | None = None


@dataclass(frozen=True)
class TokenSnapshot:
    """Everything the scorers know about one token. Built once, never mutated.

    analyzed_at is excluded from equality so repeated analyses compare equal.
    """

    address: str = ""
    symbol: str = "UNKNOWN"
    name: str = "Unknown Token"
    description: str = ""
    source: str = ""
    dex_id: str = "unknown"
    image_url: str | None = None

    # Market
    price: float = 0.0
    market_cap: float = 0.0
    liquidity: float = 0.0
    volume_24h: float = 0.0
    price_change_24h: float = 0.0
    volatility_score: float | None = None

    # Chain
    holder_count: int = 0
    holder_analysis: HolderAnalysis | None = None
    total_supply: Decimal = Decimal("0")
    decimals: int = 9

    # Derived
    created_at: datetime | None = None
    age_in_hours: float | None = None
    top_holder_percent: int = 0
    holder_concentration: int = 0
    top3_excluding_lp_percent: int | None = None
    lp_like_holder_percent: int = 0
    off_curve_excluded_count: int = 0
    deployer_holder_percent: int = 0
    distribution: DistributionAnalysis | None = None

    # Social
    has_twitter: bool = False
    has_telegram: bool = False
    has_website: bool = False
    comment_count: int = 0
    replies: int = 0
    social_score: float = 0.0
    engagement_rate: float = 0.0
    bot_suspicion: int = 0
    estimated_followers: int = 0
    mention_velocity: float | None = None
    organic_growth: bool | None = None
    buzz_level: float | None = None
    suspicious_social_activity: bool = False

    # Risk intel
    fresh_wallet_buys: int = 0
    same_deployer_count: int = 0
    rug_creator_risk: bool = False
    dump_risk: str = UNKNOWN
    buy_pressure: str = UNKNOWN
    bot_activity: bool = False
    is_new_wallet: bool = False
    has_active_mint_authority: bool | None = None
    wallet_clustering: bool = False
    deployer_address: str | None = None
    creator_reputation: CreatorReputation | None = None

    # Launchpad
    is_pumpfun: bool = False
    bonding_curve_complete: bool = False
    creator: str | None = None

    analyzed_at: datetime = field(default_factory=lambda: datetime.now(UTC), compare=False)

    @property
    def top3_users_percent(self) -> int:
        """top3_excluding_lp_percent with undetermined read as 0."""
        return self.top3_excluding_lp_percent or 0

    @property
    def turnover_ratio(self) -> float:
        return self.volume_24h / self.market_cap if self.market_cap > 0 else 0.0

    @property
    def social_channel_count(self) -> int:
        return sum((self.has_twitter, self.has_telegram, self.has_website))

    @property
    def age_formatted(self) -> str:
        return format_token_age(self.age_in_hours)

    @property
    def raw_top_holder_percent(self) -> float:
        if self.holder_analysis is None or not self.holder_analysis.raw_top_holders:
            return 0.0
        return self.holder_analysis.raw_top_holders[0].pct

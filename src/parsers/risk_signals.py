"""Risk signal aggregator — threats, positives, rug probability, trader note.

Every function here is a pure function of the TokenSnapshot (and the trust
score). Nothing produced by the narrative generator is consulted.
"""

import math
from dataclasses import dataclass
from enum import Enum

from src.models.report import RugLevel
from src.models.token import TokenSnapshot

MAX_THREATS = 6
MAX_POSITIVES = 6

NO_THREATS = "No material threat signals detected from available data"
ELEVATED_MARKET_STRUCTURE = (
    "Market-structure risk remains elevated (liquidity/volatility conditions)"
)

# Threat thresholds
SNIPER_WALLETS_MIN = 25
TOP3_CONCENTRATED_MIN = 20
MICRO_CAP_MAX = 5000
SMALL_CAP_MAX = 50000
THIN_VOLUME_MAX = 100
LOW_TURNOVER_MAX = 0.08
SEVERE_DRAWDOWN_PCT = -40
VERY_NEW_MAX_HOURS = 6
POOL_DOMINANCE_MIN = 85
POOL_DOMINANCE_TOP3_MAX = 2
EARLY_CURVE_MIN = 95
RAW_HOLDER_HIDDEN_MIN = 25
FILTERED_HOLDER_MAX = 20

# Positive thresholds
HEALTHY_TOP3_MAX = 15
SOLID_LIQUIDITY_RATIO_PCT = 15
LP_EXCLUDED_MIN = 10
LP_EXCLUDED_MAX = 80

# Rug probability
RUG_BASE_POINTS = 10
RUG_TRUST_WEIGHT = 0.5
RUG_MCAP_TIERS = ((5000, 20), (15000, 12))  # below threshold
RUG_AGE_TIERS = ((1, 20), (6, 12))  # below threshold
RUG_PRICE_SWING_TIERS = ((70, 20), (40, 14), (20, 8))  # at or above
RUG_TOP3_TIERS = ((40, 14), (25, 8))  # at or above
RUG_MINT_AUTHORITY_POINTS = 15
RUG_SERIAL_DEPLOYER_POINTS = 8
RUG_SNIPER_POINTS = 8
RUG_NO_THREATS_CAP = 55
RUG_MIN = 5
RUG_MAX = 95
RUG_MEDIUM_MIN = 35
RUG_HIGH_MIN = 65

SMALL_CAP_NOTE_MAX = 100000
MANY_THREATS_MIN = 3

NOTE_CLEAN_SMALL_CAP = (
    "No major on-chain red flags detected. This is still a small-cap token, "
    "so volatility risk remains high."
)
NOTE_CLEAN = (
    "No major on-chain red flags detected. Keep normal caution for meme-token volatility."
)
NOTE_MARKET_STRUCTURE = (
    "No major on-chain red flags detected, but market-structure risk is high "
    "(micro-cap/volatility). Keep position size small."
)
NOTE_MANY_THREATS = (
    "Multiple on-chain risk signals are present. Treat this as elevated-risk "
    "and avoid oversized entries."
)
NOTE_SOME_THREATS = (
    "Some on-chain risk signals are present, but not extreme. Use tight risk "
    "management and monitor holder changes."
)

VISUAL_INDICATORS = {
    RugLevel.LOW: ("RESEARCH", "#00FF00"),
    RugLevel.MEDIUM: ("CAUTION", "#FFA500"),
    RugLevel.HIGH: ("RUN", "#FF0000"),
}


class ThreatCategory(str, Enum):
    ON_CHAIN = "on_chain"
    MARKET_STRUCTURE = "market_structure"
    LIFECYCLE = "lifecycle"
    NONE = "none"


@dataclass(frozen=True)
class Threat:
    text: str
    category: ThreatCategory


@dataclass(frozen=True)
class RugSignal:
    probability: int  # 5-95
    level: RugLevel

    @property
    def probability_label(self) -> str:
        return f"{self.probability}%"


NO_THREATS_THREAT = Threat(NO_THREATS, ThreatCategory.NONE)
ELEVATED_MARKET_STRUCTURE_THREAT = Threat(
    ELEVATED_MARKET_STRUCTURE, ThreatCategory.MARKET_STRUCTURE
)


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def collect_threats(s: TokenSnapshot) -> list[Threat]:
    """Ordered, categorized threats (at most MAX_THREATS, never empty)."""
    threats: list[Threat] = []

    def on_chain(text: str) -> None:
        threats.append(Threat(text, ThreatCategory.ON_CHAIN))

    def market(text: str) -> None:
        threats.append(Threat(text, ThreatCategory.MARKET_STRUCTURE))

    if s.deployer_holder_percent > 0:
        on_chain(f"Dev wallet owns {s.deployer_holder_percent}% of supply")
    if s.has_active_mint_authority is True:
        on_chain("Mint authority still active")
    if s.same_deployer_count > 1:
        on_chain(f"{s.same_deployer_count} tokens from same deployer")
    if s.fresh_wallet_buys >= SNIPER_WALLETS_MIN:
        on_chain(f"{s.fresh_wallet_buys} sniper wallets detected")
    top3 = s.top3_users_percent
    if top3 >= TOP3_CONCENTRATED_MIN:
        on_chain(f"Top 3 holders control {top3}%")
    if s.is_new_wallet:
        on_chain("Fresh deployer (new wallet)")
    if s.wallet_clustering and s.fresh_wallet_buys >= SNIPER_WALLETS_MIN:
        on_chain("Wallet clustering detected")

    mcap = s.market_cap
    if 0 < mcap < MICRO_CAP_MAX:
        market(f"Micro-cap size (${math.floor(mcap)}) increases manipulation risk")
    elif 0 < mcap < SMALL_CAP_MAX:
        market(f"Small-cap size (${math.floor(mcap)}) has elevated volatility risk")

    if mcap > 0 and 0 <= s.volume_24h < THIN_VOLUME_MAX:
        market(
            f"Very thin 24h trading activity (${math.floor(s.volume_24h)}) "
            "raises exit/liquidity risk"
        )

    turnover = s.turnover_ratio
    if mcap > 0 and 0 < turnover < LOW_TURNOVER_MAX:
        market(
            f"Low 24h turnover ({math.floor(turnover * 100)}% of market cap) "
            "can reduce exit liquidity"
        )

    if s.price_change_24h <= SEVERE_DRAWDOWN_PCT:
        market(f"Severe 24h drawdown ({math.floor(s.price_change_24h)}%)")

    age = s.age_in_hours or 0
    if 0 < age < VERY_NEW_MAX_HOURS:
        threats.append(Threat("Very new token (early lifecycle risk)", ThreatCategory.LIFECYCLE))

    lp_like = s.lp_like_holder_percent
    if lp_like >= POOL_DOMINANCE_MIN and top3 <= POOL_DOMINANCE_TOP3_MAX:
        market(
            f"Pool/vault dominates supply (~{lp_like}%), user holder distribution is very thin"
        )
    if lp_like >= EARLY_CURVE_MIN:
        market("Very early curve stage (most supply still in pool/vault)")

    raw_top = s.raw_top_holder_percent
    if raw_top >= RAW_HOLDER_HIDDEN_MIN and s.top_holder_percent < FILTERED_HOLDER_MAX:
        market(f"Largest raw holder/vault controls ~{math.floor(raw_top)}% of supply")

    if not threats:
        return [NO_THREATS_THREAT]
    return threats[:MAX_THREATS]


def derive_threats(s: TokenSnapshot) -> list[str]:
    return [t.text for t in collect_threats(s)]


def is_no_threats(threats: list[Threat] | list[str]) -> bool:
    if len(threats) != 1:
        return False
    first = threats[0]
    return (first.text if isinstance(first, Threat) else first) == NO_THREATS


def derive_positives(s: TokenSnapshot) -> list[str]:
    positives: list[str] = []

    if s.has_active_mint_authority is False:
        positives.append("Mint authority disabled")

    top3 = s.top3_users_percent
    if 0 < top3 <= HEALTHY_TOP3_MAX:
        positives.append(f"Top 3 holder concentration relatively healthy ({top3}%)")

    if s.market_cap > 0:
        liquidity_ratio = s.liquidity / s.market_cap * 100
        if liquidity_ratio >= SOLID_LIQUIDITY_RATIO_PCT:
            positives.append(
                f"Liquidity support is solid ({math.floor(liquidity_ratio)}% of market cap)"
            )

    if s.social_channel_count:
        positives.append(f"Social presence detected ({s.social_channel_count}/3 channels)")

    lp_like = s.lp_like_holder_percent
    if LP_EXCLUDED_MIN <= lp_like < LP_EXCLUDED_MAX and s.off_curve_excluded_count > 0:
        positives.append(
            f"LP/program vault balance detected (~{lp_like}%) and excluded "
            "from holder-concentration risk"
        )

    if s.same_deployer_count <= 1:
        positives.append("No evidence of serial token creation by deployer")

    return positives[:MAX_POSITIVES]


def _at_or_above(value: float, tiers: tuple) -> int:
    for threshold, points in tiers:
        if value >= threshold:
            return points
    return 0


def _below(value: float, tiers: tuple) -> int:
    for threshold, points in tiers:
        if value < threshold:
            return points
    return 0


def derive_rug_signal(
    s: TokenSnapshot,
    trust_score: int | None,
    threats: list[Threat] | None = None,
) -> RugSignal:
    """Deterministic rug probability in [5, 95].

    A token whose only threat is the no-threats sentinel is capped below HIGH.
    """
    if threats is None:
        threats = collect_threats(s)

    points = float(RUG_BASE_POINTS)
    if trust_score is not None:
        points += max(0, 100 - trust_score) * RUG_TRUST_WEIGHT

    if s.market_cap > 0:
        points += _below(s.market_cap, RUG_MCAP_TIERS)
    age = s.age_in_hours or 0
    if age > 0:
        points += _below(age, RUG_AGE_TIERS)
    points += _at_or_above(abs(s.price_change_24h), RUG_PRICE_SWING_TIERS)
    points += _at_or_above(s.top3_users_percent, RUG_TOP3_TIERS)

    if s.has_active_mint_authority is True:
        points += RUG_MINT_AUTHORITY_POINTS
    if s.same_deployer_count > 1:
        points += RUG_SERIAL_DEPLOYER_POINTS
    if s.fresh_wallet_buys >= SNIPER_WALLETS_MIN:
        points += RUG_SNIPER_POINTS

    if is_no_threats(threats):
        points = min(points, RUG_NO_THREATS_CAP)

    probability = max(RUG_MIN, min(RUG_MAX, _round_half_up(points)))
    return RugSignal(probability=probability, level=rug_level(probability))


def rug_level(probability: int) -> RugLevel:
    if probability >= RUG_HIGH_MIN:
        return RugLevel.HIGH
    if probability >= RUG_MEDIUM_MIN:
        return RugLevel.MEDIUM
    return RugLevel.LOW


def derive_trader_note(s: TokenSnapshot, threats: list[Threat]) -> str:
    if is_no_threats(threats):
        if 0 < s.market_cap < SMALL_CAP_NOTE_MAX:
            return NOTE_CLEAN_SMALL_CAP
        return NOTE_CLEAN

    categories = {t.category for t in threats}
    if ThreatCategory.MARKET_STRUCTURE in categories and ThreatCategory.ON_CHAIN not in categories:
        return NOTE_MARKET_STRUCTURE
    if len(threats) >= MANY_THREATS_MIN:
        return NOTE_MANY_THREATS
    return NOTE_SOME_THREATS


def visual_indicator(level: RugLevel) -> tuple[str, str]:
    """(label, hex color) for the UI badge."""
    return VISUAL_INDICATORS[level]

"""Trust score — additive 0-150 point system rescaled to 0-100.

Each signal contributes independently from its tier table; guardrails then
cap the internal score when the two strongest objective rug indicators
(active mint authority plus concentrated users, or a serial deployer) are
present, so no amount of social or volume activity can offset them.

Tier tables are (exclusive threshold, points), checked top-down, first hit wins.
"""

import math

from loguru import logger

from src.models.report import RiskLevel
from src.models.token import ConcentrationRisk, TokenSnapshot

BASE_POINTS = 30
INTERNAL_SCALE = 150
MIN_POINTS = 5
MIN_TRUST_SCORE = 5

# Liquidity (USD)
LIQUIDITY_TIERS = ((50000, 35), (20000, 25), (10000, 15), (5000, 10), (1000, 5))
LIQUIDITY_LOW_PENALTY = -10
LIQUIDITY_MISSING_PENALTY = -15

# Structured distribution
DISTRIBUTION_SCORE_TIERS = ((80, 25), (60, 20), (40, 10))
DISTRIBUTION_POOR_PENALTY = -5
CONCENTRATION_RISK_PENALTY = {ConcentrationRisk.EXTREME: -20, ConcentrationRisk.HIGH: -10}
SUSPICIOUS_HOLDERS_PENALTY = -8
HEALTHY_DISTRIBUTION_BONUS = 10

# Holder-count fallback (no structured distribution)
HOLDER_COUNT_TIERS = ((2000, 25), (1000, 20), (500, 15), (100, 10), (50, 5))
FEW_HOLDERS_PENALTY = -5

SOCIAL_WEIGHT = 0.3

MENTION_VELOCITY_TIERS = ((50, 15), (20, 10), (5, 5))
SUSPICIOUS_SOCIAL_PENALTY = -20

NON_ORGANIC_PENALTY = -15
HIGH_BUZZ_MIN = 20
HIGH_BUZZ_BONUS = 10

REPLY_TIERS = ((100, 15), (50, 10), (10, 5))

# Pump.fun
CURVE_COMPLETE_BONUS = 20
KNOWN_CREATOR_BONUS = 5
LONG_DESCRIPTION_MIN = 100
LONG_DESCRIPTION_BONUS = 10

# Volume (USD) and turnover (volume / market cap)
VOLUME_TIERS = ((100000, 20), (50000, 15), (20000, 10), (5000, 5))
VOLUME_LOW_PENALTY = -5
VOLUME_MISSING_PENALTY = -10
TURNOVER_LOW_TIERS = ((0.03, -6), (0.08, -3))  # below threshold
TURNOVER_HIGH_MIN = 0.25
TURNOVER_HIGH_BONUS = 4

# Age (hours)
AGE_OLD_TIERS = ((720, 15), (168, 10), (72, 5))  # above threshold
AGE_YOUNG_TIERS = ((1, -20), (6, -15), (24, -10))  # below threshold

# Volatility score
VOLATILITY_HIGH_TIERS = ((300, -15), (150, -10), (80, -3))  # above threshold
VOLATILITY_LOW_TIERS = ((10, 15), (20, 10))  # below threshold

# Creator reputation
SUSPICIOUS_SERIAL_CREATOR_PENALTY = -12
SERIAL_CREATOR_MIN_TOKENS = 5
SUSPICIOUS_CREATOR_PENALTY = -8
PROLIFIC_CREATOR_MIN_TOKENS = 8
PROLIFIC_CREATOR_PENALTY = -8
SUCCESS_POINTS_PER_TOKEN = 3
SUCCESS_POINTS_MAX = 15
ESTABLISHED_WALLET_DAYS = 90
ESTABLISHED_WALLET_BONUS = 5
FRESH_WALLET_DAYS = 3
FRESH_WALLET_PENALTY = -5

# Top-holder fallback (no structured distribution)
TOP_HOLDER_TIERS = ((70, -30), (50, -20), (30, -10))

# Market cap (USD)
MICRO_CAP_MAX = 5000
MICRO_CAP_PENALTY = -5
ESTABLISHED_CAP_MIN = 1_000_000
ESTABLISHED_CAP_BONUS = 10

# |24h price change| (%)
PRICE_SWING_TIERS = ((500, -12), (200, -8))
PRICE_STABLE_MAX = 15
PRICE_STABLE_BONUS = 5

# Guardrails (internal scale)
MINT_AND_CONCENTRATED_TOP3 = 35
MINT_AND_CONCENTRATED_CAP = 72
MINT_AND_SERIAL_DEPLOYER_CAP = 82

# Safety floor for tokens with basic liquidity and holders
SAFETY_FLOOR_SCORE = 10
SAFETY_FLOOR_MIN_LIQUIDITY = 1000
SAFETY_FLOOR_MIN_HOLDERS = 5

RISK_LEVEL_TIERS = (
    (85, RiskLevel.VERY_LOW),
    (70, RiskLevel.LOW),
    (50, RiskLevel.MEDIUM),
    (40, RiskLevel.HIGH),
)


def _above(value: float, tiers: tuple, default: int = 0) -> int:
    for threshold, points in tiers:
        if value > threshold:
            return points
    return default


def _below(value: float, tiers: tuple, default: int = 0) -> int:
    for threshold, points in tiers:
        if value < threshold:
            return points
    return default


def _liquidity_points(s: TokenSnapshot) -> int:
    if not s.liquidity:
        return LIQUIDITY_MISSING_PENALTY
    return _above(s.liquidity, LIQUIDITY_TIERS, LIQUIDITY_LOW_PENALTY)


def _distribution_points(s: TokenSnapshot) -> int:
    dist = s.distribution
    if dist is None:
        if not s.holder_count:
            return 0
        return _above(s.holder_count, HOLDER_COUNT_TIERS, FEW_HOLDERS_PENALTY)

    points = _above(dist.distribution_score, DISTRIBUTION_SCORE_TIERS, DISTRIBUTION_POOR_PENALTY)
    # Worst concentration penalty only
    if dist.concentration_risk in CONCENTRATION_RISK_PENALTY:
        points += CONCENTRATION_RISK_PENALTY[dist.concentration_risk]
    elif dist.has_suspicious_holders:
        points += SUSPICIOUS_HOLDERS_PENALTY
    if dist.has_healthy_distribution:
        points += HEALTHY_DISTRIBUTION_BONUS
    return points


def _social_points(s: TokenSnapshot) -> int:
    points = math.floor(max(0.0, min(100.0, s.social_score)) * SOCIAL_WEIGHT)

    if s.mention_velocity is not None:
        if s.suspicious_social_activity:
            points += SUSPICIOUS_SOCIAL_PENALTY
        else:
            points += _above(s.mention_velocity, MENTION_VELOCITY_TIERS)

    if s.organic_growth is False:
        points += NON_ORGANIC_PENALTY
    elif s.buzz_level and s.buzz_level > HIGH_BUZZ_MIN:
        points += HIGH_BUZZ_BONUS

    if s.replies:
        points += _above(s.replies, REPLY_TIERS)
    return points


def _pumpfun_points(s: TokenSnapshot) -> int:
    if not s.is_pumpfun:
        return 0
    points = 0
    if s.bonding_curve_complete:
        points += CURVE_COMPLETE_BONUS
    if s.creator:
        points += KNOWN_CREATOR_BONUS
    if len(s.description) > LONG_DESCRIPTION_MIN:
        points += LONG_DESCRIPTION_BONUS
    return points


def _volume_points(s: TokenSnapshot) -> int:
    if not s.volume_24h:
        return VOLUME_MISSING_PENALTY
    points = _above(s.volume_24h, VOLUME_TIERS, VOLUME_LOW_PENALTY)
    if s.market_cap > 0:
        turnover = s.turnover_ratio
        if turnover > TURNOVER_HIGH_MIN:
            points += TURNOVER_HIGH_BONUS
        else:
            points += _below(turnover, TURNOVER_LOW_TIERS)
    return points


def _age_points(s: TokenSnapshot) -> int:
    if s.age_in_hours is None:
        return 0
    points = _above(s.age_in_hours, AGE_OLD_TIERS)
    return points or _below(s.age_in_hours, AGE_YOUNG_TIERS)


def _volatility_points(s: TokenSnapshot) -> int:
    if s.volatility_score is None:
        return 0
    points = _above(s.volatility_score, VOLATILITY_HIGH_TIERS)
    return points or _below(s.volatility_score, VOLATILITY_LOW_TIERS)


def _creator_points(s: TokenSnapshot) -> int:
    rep = s.creator_reputation
    if rep is None:
        return 0

    points = 0
    if rep.suspicious_activity and rep.tokens_created > SERIAL_CREATOR_MIN_TOKENS:
        points += SUSPICIOUS_SERIAL_CREATOR_PENALTY
    elif rep.suspicious_activity:
        points += SUSPICIOUS_CREATOR_PENALTY
    elif rep.tokens_created > PROLIFIC_CREATOR_MIN_TOKENS:
        points += PROLIFIC_CREATOR_PENALTY

    if rep.successful_tokens > 0:
        points += min(rep.successful_tokens * SUCCESS_POINTS_PER_TOKEN, SUCCESS_POINTS_MAX)

    if rep.wallet_age_days is not None:
        if rep.wallet_age_days > ESTABLISHED_WALLET_DAYS:
            points += ESTABLISHED_WALLET_BONUS
        elif rep.wallet_age_days < FRESH_WALLET_DAYS:
            points += FRESH_WALLET_PENALTY
    return points


def _top_holder_points(s: TokenSnapshot) -> int:
    if s.distribution is not None:
        return 0
    return _above(s.top_holder_percent, TOP_HOLDER_TIERS)


def _market_cap_points(s: TokenSnapshot) -> int:
    if not s.market_cap:
        return 0
    if s.market_cap < MICRO_CAP_MAX:
        return MICRO_CAP_PENALTY
    if s.market_cap > ESTABLISHED_CAP_MIN:
        return ESTABLISHED_CAP_BONUS
    return 0


def _price_stability_points(s: TokenSnapshot) -> int:
    swing = abs(s.price_change_24h)
    points = _above(swing, PRICE_SWING_TIERS)
    if points:
        return points
    return PRICE_STABLE_BONUS if swing < PRICE_STABLE_MAX else 0


def _apply_guardrails(points: int, s: TokenSnapshot) -> int:
    if s.has_active_mint_authority is not True:
        return points
    if s.top3_users_percent >= MINT_AND_CONCENTRATED_TOP3:
        return min(points, MINT_AND_CONCENTRATED_CAP)
    if s.same_deployer_count > 1:
        return min(points, MINT_AND_SERIAL_DEPLOYER_CAP)
    return points


def raw_trust_points(snapshot: TokenSnapshot) -> int:
    """Internal 0-150 scale score with guardrails applied (before rescale)."""
    points = (
        BASE_POINTS
        + _liquidity_points(snapshot)
        + _distribution_points(snapshot)
        + _social_points(snapshot)
        + _pumpfun_points(snapshot)
        + _volume_points(snapshot)
        + _age_points(snapshot)
        + _volatility_points(snapshot)
        + _creator_points(snapshot)
        + _top_holder_points(snapshot)
        + _market_cap_points(snapshot)
        + _price_stability_points(snapshot)
    )
    return _apply_guardrails(points, snapshot)


def calculate_trust_score(snapshot: TokenSnapshot) -> int:
    """Trust score in [5, 100]."""
    points = raw_trust_points(snapshot)
    scaled = min(100, math.floor(max(MIN_POINTS, points) * 100 / INTERNAL_SCALE))

    if (
        scaled < SAFETY_FLOOR_SCORE
        and snapshot.liquidity > SAFETY_FLOOR_MIN_LIQUIDITY
        and snapshot.holder_count > SAFETY_FLOOR_MIN_HOLDERS
    ):
        scaled = SAFETY_FLOOR_SCORE

    score = max(MIN_TRUST_SCORE, scaled)
    logger.debug(f"[TRUST] {snapshot.symbol}: {points}/{INTERNAL_SCALE} points → {score}")
    return score


def risk_level(trust_score: int) -> RiskLevel:
    for threshold, level in RISK_LEVEL_TIERS:
        if trust_score >= threshold:
            return level
    return RiskLevel.VERY_HIGH

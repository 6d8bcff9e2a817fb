"""Social presence and engagement scoring from market / launchpad metadata.

No social API is queried: channel presence comes from the links the market
sources expose (plus a scan of the token description) and follower counts
are estimated from market cap.
"""

import math
import re
from dataclasses import dataclass

# Presence points
TWITTER_POINTS = 20
TELEGRAM_POINTS = 15
WEBSITE_POINTS = 5

# (min comments exclusive, points), checked top-down
COMMENT_TIERS = ((100, 20), (50, 15), (20, 10), (5, 5))

MAX_ENGAGEMENT_RATE = 10.0
ENGAGEMENT_MULTIPLIER = 2

# (min comment/follower ratio exclusive, suspicion = penalty)
BOT_RATIO_TIERS = ((0.5, 30), (0.2, 15))

ORGANIC_MIN_VOLUME = 1000
BUZZ_MAX_VOLUME = 50000
BUZZ_MAX_LEVEL = 5
BUZZ_VOLUME_STEP = 10000

_URL_RE = re.compile(r"https?://")


@dataclass(frozen=True)
class SocialPresence:
    has_twitter: bool = False
    has_telegram: bool = False
    has_website: bool = False

    @property
    def channel_count(self) -> int:
        return sum((self.has_twitter, self.has_telegram, self.has_website))


@dataclass(frozen=True)
class SocialScore:
    score: float = 0.0  # 0-100
    engagement_rate: float = 0.0
    bot_suspicion: int = 0
    estimated_followers: int = 0


def extract_socials(
    *,
    has_twitter: bool = False,
    has_telegram: bool = False,
    has_website: bool = False,
    description: str = "",
) -> SocialPresence:
    """Direct link flags, widened by links mentioned in the description."""
    text = (description or "").lower()
    return SocialPresence(
        has_twitter=has_twitter or "twitter.com" in text or "x.com" in text,
        has_telegram=has_telegram or "t.me/" in text or "telegram" in text,
        has_website=has_website or bool(_URL_RE.search(text)),
    )


def estimate_followers(market_cap: float, channel_count: int) -> int:
    if market_cap <= 0 or channel_count <= 0:
        return 0
    return math.floor(math.sqrt(market_cap) * 2 * channel_count)


def enhance_social_score(
    presence: SocialPresence, comment_count: int, market_cap: float
) -> SocialScore:
    score = 0.0
    if presence.has_twitter:
        score += TWITTER_POINTS
    if presence.has_telegram:
        score += TELEGRAM_POINTS
    if presence.has_website:
        score += WEBSITE_POINTS

    for min_comments, points in COMMENT_TIERS:
        if comment_count > min_comments:
            score += points
            break

    followers = estimate_followers(market_cap, presence.channel_count)
    engagement = 0.0
    bot_suspicion = 0
    if followers > 0:
        engagement = min(comment_count / followers * 100, MAX_ENGAGEMENT_RATE)
        score += engagement * ENGAGEMENT_MULTIPLIER

        if comment_count > 0:
            ratio = comment_count / followers
            for min_ratio, penalty in BOT_RATIO_TIERS:
                if ratio > min_ratio:
                    bot_suspicion = penalty
                    score -= penalty
                    break

    return SocialScore(
        score=max(0.0, min(100.0, score)),
        engagement_rate=round(engagement, 1),
        bot_suspicion=bot_suspicion,
        estimated_followers=followers,
    )


def mention_velocity(comment_count: int) -> int:
    return comment_count or 0


def organic_growth(volume_24h: float) -> bool:
    return volume_24h > ORGANIC_MIN_VOLUME


def buzz_level(volume_24h: float) -> int:
    if volume_24h > BUZZ_MAX_VOLUME:
        return BUZZ_MAX_LEVEL
    return max(1, math.ceil(volume_24h / BUZZ_VOLUME_STEP))

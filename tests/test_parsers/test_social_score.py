"""Tests for social presence and engagement scoring."""

import pytest

from src.parsers.social_score import (
    SocialPresence,
    buzz_level,
    enhance_social_score,
    estimate_followers,
    extract_socials,
    mention_velocity,
    organic_growth,
)


def test_extract_socials_from_description():
    presence = extract_socials(description="Join https://t.me/catcoin and follow x.com/cat")
    assert presence.has_telegram
    assert presence.has_twitter
    assert presence.has_website
    assert presence.channel_count == 3


def test_extract_socials_flags_only():
    presence = extract_socials(has_twitter=True, description="just a cat")
    assert presence == SocialPresence(has_twitter=True)
    assert presence.channel_count == 1


def test_estimate_followers():
    assert estimate_followers(10000, 2) == 400
    assert estimate_followers(0, 3) == 0
    assert estimate_followers(10000, 0) == 0


def test_engaged_community_scores_without_bot_penalty():
    presence = SocialPresence(has_twitter=True, has_telegram=True)
    result = enhance_social_score(presence, comment_count=30, market_cap=10000)
    # 20 + 15 presence, 10 for >20 comments, 7.5% engagement doubled
    assert result.estimated_followers == 400
    assert result.engagement_rate == 7.5
    assert result.bot_suspicion == 0
    assert result.score == pytest.approx(60)


def test_comment_flood_flags_bots():
    presence = SocialPresence(has_twitter=True)
    result = enhance_social_score(presence, comment_count=25, market_cap=100)
    assert result.estimated_followers == 20
    assert result.engagement_rate == 10.0
    assert result.bot_suspicion == 30
    assert result.score == pytest.approx(20)


def test_no_presence_no_score():
    result = enhance_social_score(SocialPresence(), comment_count=0, market_cap=50000)
    assert result.score == 0
    assert result.estimated_followers == 0


def test_velocity_growth_buzz():
    assert mention_velocity(42) == 42
    assert mention_velocity(0) == 0
    assert not organic_growth(1000)
    assert organic_growth(1001)
    assert buzz_level(0) == 1
    assert buzz_level(15000) == 2
    assert buzz_level(60000) == 5

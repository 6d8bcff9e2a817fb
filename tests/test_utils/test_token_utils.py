"""Tests for address validation and token age helpers."""

from datetime import UTC, datetime, timedelta

import pytest

from src.utils.token_utils import (
    age_in_hours,
    format_token_age,
    is_valid_solana_address,
    timestamp_to_datetime,
)


@pytest.mark.parametrize(
    "address",
    [
        "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263",
        "So11111111111111111111111111111111111111112",
        "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
    ],
)
def test_valid_addresses(address):
    assert is_valid_solana_address(address)


@pytest.mark.parametrize(
    "address",
    [
        "",
        None,
        12345,
        "short",
        "0xDezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB2",  # 0 is not base58
        "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263DezXAZ8z",  # too long
        "11111111111111111111111111111111",  # repeated char placeholder
        "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB26l",  # lowercase L
    ],
)
def test_invalid_addresses(address):
    assert not is_valid_solana_address(address)


def test_timestamp_seconds_and_millis_agree():
    assert timestamp_to_datetime(1700000000) == timestamp_to_datetime(1700000000000)
    assert timestamp_to_datetime(1700000000).tzinfo is UTC


@pytest.mark.parametrize("value", [None, 0, -5])
def test_timestamp_missing(value):
    assert timestamp_to_datetime(value) is None


def test_age_in_hours():
    now = datetime(2024, 1, 2, tzinfo=UTC)
    assert age_in_hours(now - timedelta(hours=36), now=now) == pytest.approx(36)
    assert age_in_hours(None, now=now) is None


@pytest.mark.parametrize(
    ("hours", "expected"),
    [
        (None, "N/A"),
        (0, "0h"),
        (-3, "0h"),
        (0.5, "0h"),
        (5, "5h"),
        (48, "2d"),
        (800, "1m 3d 8h"),
    ],
)
def test_format_token_age(hours, expected):
    assert format_token_age(hours) == expected

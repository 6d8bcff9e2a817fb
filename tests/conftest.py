"""Shared test fixtures."""

from decimal import Decimal

import pytest

from src.models.holder import HolderAnalysis, HolderRecord
from src.models.token import TokenSnapshot
from src.parsers.upstream import UpstreamGuard

BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


@pytest.fixture
def mint() -> str:
    return BONK_MINT


@pytest.fixture
def guard() -> UpstreamGuard:
    guard = UpstreamGuard(cache_ttl_sec=15, failure_threshold=3, cooldown_sec=30)
    guard.init()
    yield guard
    guard.clear()


@pytest.fixture
def make_snapshot():
    """Factory for TokenSnapshot with neutral defaults; kwargs override."""

    def _make(**kwargs) -> TokenSnapshot:
        fields = {"address": BONK_MINT, "symbol": "TEST", "name": "Test Token"}
        fields.update(kwargs)
        return TokenSnapshot(**fields)

    return _make


@pytest.fixture
def make_analysis():
    """Factory for HolderAnalysis from (owner, pct, on_curve) tuples, supply 1M."""

    def _make(holders: list[tuple[str, float, bool]]) -> HolderAnalysis:
        records = [
            HolderRecord(
                owner=owner,
                amount_raw=Decimal(str(pct * 10_000)),
                pct=pct,
                is_on_curve=on_curve,
            )
            for owner, pct, on_curve in holders
        ]
        selected = [r for r in records if r.is_on_curve] or records
        return HolderAnalysis(
            supply=Decimal("1000000"),
            top_holders=selected[:20],
            top10_concentration=sum(r.pct for r in selected[:10]),
            raw_top_holders=records[:20],
            raw_top10_concentration=sum(r.pct for r in records[:10]),
            excluded_off_curve_holders=sum(1 for r in records if not r.is_on_curve),
            account_count=len(records),
        )

    return _make

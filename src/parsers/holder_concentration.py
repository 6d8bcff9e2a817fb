"""Holder concentration engine — user-wallet concentration excluding pool vaults.

Largest token accounts are aggregated per owning wallet, each owner is
classified on-curve (ordinary wallet) or off-curve (PDA: LP vault, bonding
curve, program escrow), and concentration metrics are computed over the
on-curve set so that a liquidity vault holding most of the supply does not
read as whale concentration.
"""

import math
from collections.abc import Callable, Iterable
from decimal import Decimal

from loguru import logger
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from src.models.holder import HolderAnalysis, HolderMetrics, HolderRecord

RAW_RETENTION = 40
SELECTED_LIMIT = 20
TOP_N_CONCENTRATION = 10

# Top-3-excluding-LP heuristic
NO_LP_DISTORTION_MAX_PCT = 12.0  # largest selected holder at or below this → take true top 3
LP_AT_TOP_MIN_PCT = 15.0  # largest above this ...
LP_AT_TOP_NEXT_MAX_PCT = 8.0  # ... with a sharp drop to the next → skip index 0

# holder_concentration clamp applied when any holders were found
CONCENTRATION_FLOOR = 10
CONCENTRATION_CEIL = 95

WHALE_MIN_PCT = 5.0
SMALL_HOLDER_MAX_PCT = 1.0


def is_on_curve(address: str) -> bool:
    """Ed25519 curve membership. Unparseable addresses count as on-curve.

    Unknown addresses stay in the user-risk metrics rather than being
    silently excluded.
    """
    try:
        return Pubkey.from_string(address).is_on_curve()
    except Exception as e:
        logger.debug(f"[HOLDERS] Curve check failed for {address[:12]}: {e}")
        return True


def aggregate_by_owner(balances: Iterable[tuple[str | None, Decimal]]) -> dict[str, Decimal]:
    """Sum (owner, amount) pairs per owner, keeping first-seen order.

    Unresolved owners and non-positive amounts are skipped.
    """
    totals: dict[str, Decimal] = {}
    for owner, amount in balances:
        if not owner or amount <= 0:
            continue
        totals[owner] = totals.get(owner, Decimal("0")) + amount
    return totals


def _pct_of_supply(amount: Decimal, supply: Decimal) -> float:
    if supply <= 0:
        return 0.0
    return max(0.0, min(100.0, float(amount / supply * 100)))


def _sum_pct(holders: list[HolderRecord]) -> float:
    return sum(h.pct for h in holders)


def build_holder_analysis(
    supply: Decimal,
    owner_balances: dict[str, Decimal],
    *,
    curve_check: Callable[[str], bool] = is_on_curve,
) -> HolderAnalysis:
    """Classify, rank and select holders.

    Ties in pct keep first-seen order (sorted() is stable).
    """
    if not owner_balances:
        return HolderAnalysis.empty(supply)

    records = [
        HolderRecord(
            owner=owner,
            amount_raw=amount,
            pct=_pct_of_supply(amount, supply),
            is_on_curve=curve_check(owner),
        )
        for owner, amount in owner_balances.items()
    ]
    all_holders = sorted(records, key=lambda h: h.pct, reverse=True)[:RAW_RETENTION]

    on_curve = [h for h in all_holders if h.is_on_curve]
    selected = on_curve[:SELECTED_LIMIT] if on_curve else all_holders[:SELECTED_LIMIT]
    excluded = sum(1 for h in all_holders if not h.is_on_curve)

    analysis = HolderAnalysis(
        supply=supply,
        top_holders=selected,
        top10_concentration=_sum_pct(selected[:TOP_N_CONCENTRATION]),
        raw_top_holders=all_holders[:SELECTED_LIMIT],
        raw_top10_concentration=_sum_pct(all_holders[:TOP_N_CONCENTRATION]),
        excluded_off_curve_holders=excluded,
    )
    logger.debug(
        f"[HOLDERS] {len(all_holders)} holders, {excluded} off-curve excluded, "
        f"top10 {analysis.top10_concentration:.1f}% (raw {analysis.raw_top10_concentration:.1f}%)"
    )
    return analysis


def top3_excluding_lp(holders: list[HolderRecord]) -> int | None:
    """Top-3 user concentration with a likely LP at index 0 skipped.

    Returns None when neither branch applies: a middling largest holder
    (12-15%, or >15% without a sharp drop) cannot be told apart from a pool.
    """
    if len(holders) >= 3 and holders[0].pct <= NO_LP_DISTORTION_MAX_PCT:
        return math.floor(_sum_pct(holders[:3]))
    if (
        len(holders) >= 2
        and holders[0].pct > LP_AT_TOP_MIN_PCT
        and holders[1].pct < LP_AT_TOP_NEXT_MAX_PCT
    ):
        return math.floor(_sum_pct(holders[1:4]))
    return None


def lp_like_holder_percent(raw_holders: list[HolderRecord]) -> int:
    """Share of the largest off-curve raw holder (first match only)."""
    for holder in raw_holders:
        if not holder.is_on_curve:
            return math.floor(holder.pct)
    return 0


def derive_holder_metrics(
    analysis: HolderAnalysis | None,
    deployer_address: str | None = None,
) -> HolderMetrics:
    """Turn an analysis into the integer percentages the scorers consume."""
    if analysis is None or not analysis.top_holders:
        return HolderMetrics(
            lp_like_holder_percent=lp_like_holder_percent(analysis.raw_top_holders) if analysis else 0,
            off_curve_excluded_count=analysis.excluded_off_curve_holders if analysis else 0,
        )

    selected = analysis.top_holders
    concentration = min(
        CONCENTRATION_CEIL,
        max(CONCENTRATION_FLOOR, math.floor(analysis.top10_concentration)),
    )
    deployer_pct = (
        _sum_pct([h for h in selected if h.owner == deployer_address]) if deployer_address else 0.0
    )

    return HolderMetrics(
        top_holder_percent=math.floor(selected[0].pct),
        holder_concentration=concentration,
        top5_percent=math.floor(_sum_pct(selected[:5])),
        top10_percent=math.floor(analysis.top10_concentration),
        top3_excluding_lp_percent=top3_excluding_lp(selected),
        lp_like_holder_percent=lp_like_holder_percent(analysis.raw_top_holders),
        off_curve_excluded_count=analysis.excluded_off_curve_holders,
        deployer_holder_percent=math.floor(deployer_pct),
        whale_count=sum(1 for h in selected if h.pct >= WHALE_MIN_PCT),
        small_holder_ratio=sum(1 for h in selected if h.pct < SMALL_HOLDER_MAX_PCT) / len(selected),
    )

"""Holder concentration data — one analysis per request, never persisted."""

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class HolderRecord:
    """One wallet's aggregated balance of a mint as percent of supply.

    is_on_curve=False marks a program-derived address (pool / curve vault).
    """

    owner: str
    amount_raw: Decimal
    pct: float
    is_on_curve: bool = True


@dataclass(frozen=True)
class HolderAnalysis:
    """Concentration over the largest holders.

    top_holders is the on-curve-preferred view of raw_top_holders; it falls
    back to raw ordering when no on-curve holder exists.
    """

    supply: Decimal = Decimal("0")
    top_holders: list[HolderRecord] = field(default_factory=list)
    top10_concentration: float = 0.0
    raw_top_holders: list[HolderRecord] = field(default_factory=list)
    raw_top10_concentration: float = 0.0
    excluded_off_curve_holders: int = 0
    account_count: int = 0  # non-zero largest token accounts seen

    @classmethod
    def empty(cls, supply: Decimal = Decimal("0")) -> "HolderAnalysis":
        return cls(supply=supply)


@dataclass(frozen=True)
class HolderMetrics:
    """Scoring-ready percentages derived from a HolderAnalysis.

    top3_excluding_lp_percent is None when the LP heuristic cannot decide.
    """

    top_holder_percent: int = 0
    holder_concentration: int = 0
    top5_percent: int = 0
    top10_percent: int = 0
    top3_excluding_lp_percent: int | None = None
    lp_like_holder_percent: int = 0
    off_curve_excluded_count: int = 0
    deployer_holder_percent: int = 0
    whale_count: int = 0
    small_holder_ratio: float = 0.0

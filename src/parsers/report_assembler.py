"""Report assembler — scores a snapshot and packages the RiskReport."""

from loguru import logger

from src.models.report import RiskReport, RugLevel
from src.models.token import TokenSnapshot
from src.parsers.risk_signals import (
    ELEVATED_MARKET_STRUCTURE_THREAT,
    collect_threats,
    derive_positives,
    derive_rug_signal,
    derive_trader_note,
    is_no_threats,
    visual_indicator,
)
from src.parsers.trust_score import calculate_trust_score, risk_level


def assemble_report(
    snapshot: TokenSnapshot,
    ai_summary: str = "",
    trust_score: int | None = None,
) -> RiskReport:
    """Deterministic report for a snapshot; ai_summary is display-only."""
    if trust_score is None:
        trust_score = calculate_trust_score(snapshot)

    threats = collect_threats(snapshot)
    rug = derive_rug_signal(snapshot, trust_score, threats)

    # A clean threat list with a non-LOW rug level still gets a visible warning
    if is_no_threats(threats) and rug.level != RugLevel.LOW:
        threats = [*threats, ELEVATED_MARKET_STRUCTURE_THREAT]

    label, color = visual_indicator(rug.level)
    report = RiskReport(
        trust_score=trust_score,
        risk_level=risk_level(trust_score),
        rug_probability=rug.probability_label,
        rug_level=rug.level,
        key_threats=[t.text for t in threats],
        positive_signals=derive_positives(snapshot),
        trader_note=derive_trader_note(snapshot, threats),
        visual_indicator=label,
        indicator_color=color,
        snapshot=snapshot,
        ai_summary=ai_summary,
    )
    logger.info(
        f"[RISK] {snapshot.symbol}: trust={report.trust_score} ({report.risk_level.value}) "
        f"rug={report.rug_probability} {report.rug_level.value} threats={len(report.key_threats)}"
    )
    return report

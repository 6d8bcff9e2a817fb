from src.models.holder import HolderAnalysis, HolderMetrics, HolderRecord
from src.models.report import RiskLevel, RiskReport, RugLevel
from src.models.token import (
    ConcentrationRisk,
    CreatorReputation,
    DistributionAnalysis,
    MarketData,
    RiskIntel,
    TokenSnapshot,
)

__all__ = [
    "HolderRecord",
    "HolderAnalysis",
    "HolderMetrics",
    "MarketData",
    "RiskIntel",
    "DistributionAnalysis",
    "CreatorReputation",
    "ConcentrationRisk",
    "TokenSnapshot",
    "RiskReport",
    "RiskLevel",
    "RugLevel",
]

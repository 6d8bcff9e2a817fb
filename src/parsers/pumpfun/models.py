"""Data models for Pump.fun coin API responses."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PumpfunCoin:
    """Coin metadata from Pump.fun (creator, socials, community replies)."""

    mint: str = ""
    name: str = ""
    symbol: str = ""
    description: str = ""
    creator: str | None = None
    created_at: datetime | None = None
    image_url: str | None = None
    twitter: str | None = None
    telegram: str | None = None
    website: str | None = None
    reply_count: int = 0
    complete: bool = False  # bonding curve graduated
    usd_market_cap: float = 0.0

    @property
    def has_twitter(self) -> bool:
        return bool(self.twitter)

    @property
    def has_telegram(self) -> bool:
        return bool(self.telegram)

    @property
    def has_website(self) -> bool:
        return bool(self.website)

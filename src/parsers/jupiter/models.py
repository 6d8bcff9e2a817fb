"""Pydantic models for Jupiter Price API v2 and token list responses."""

from decimal import Decimal

from pydantic import BaseModel


class JupiterPrice(BaseModel):
    """Price data for a single token from Jupiter."""

    id: str  # mint address
    mint_symbol: str = ""
    price: Decimal | None = None


class JupiterTokenInfo(BaseModel):
    """Token list entry (symbol, name, logo)."""

    address: str
    symbol: str = ""
    name: str = ""
    logo_uri: str | None = None
    daily_volume: Decimal | None = None

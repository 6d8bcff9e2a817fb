from decimal import Decimal

from pydantic import BaseModel


class DexScreenerToken(BaseModel):
    address: str
    name: str | None = None
    symbol: str | None = None

    model_config = {"extra": "ignore"}


class DexScreenerVolume(BaseModel):
    m5: Decimal | None = None
    h1: Decimal | None = None
    h6: Decimal | None = None
    h24: Decimal | None = None

    model_config = {"extra": "ignore"}


class DexScreenerPriceChange(BaseModel):
    m5: float | None = None
    h1: float | None = None
    h6: float | None = None
    h24: float | None = None

    model_config = {"extra": "ignore"}


class DexScreenerLiquidity(BaseModel):
    usd: Decimal | None = None
    base: Decimal | None = None
    quote: Decimal | None = None

    model_config = {"extra": "ignore"}


class DexScreenerSocial(BaseModel):
    type: str = ""
    url: str = ""

    model_config = {"extra": "ignore"}


class DexScreenerWebsite(BaseModel):
    label: str | None = None
    url: str = ""

    model_config = {"extra": "ignore"}


class DexScreenerInfo(BaseModel):
    imageUrl: str | None = None
    socials: list[DexScreenerSocial] = []
    websites: list[DexScreenerWebsite] = []

    model_config = {"extra": "ignore"}


class DexScreenerPair(BaseModel):
    chainId: str = ""
    dexId: str = ""
    pairAddress: str = ""
    baseToken: DexScreenerToken | None = None
    quoteToken: DexScreenerToken | None = None
    priceUsd: str | None = None
    volume: DexScreenerVolume | None = None
    priceChange: DexScreenerPriceChange | None = None
    liquidity: DexScreenerLiquidity | None = None
    marketCap: Decimal | None = None
    fdv: Decimal | None = None
    pairCreatedAt: int | None = None
    info: DexScreenerInfo | None = None

    model_config = {"extra": "ignore"}

    @property
    def liquidity_usd(self) -> float:
        if self.liquidity is None or self.liquidity.usd is None:
            return 0.0
        return float(self.liquidity.usd)

    def has_social(self, kind: str) -> bool:
        return self.info is not None and any(s.type == kind for s in self.info.socials)

    @property
    def has_website(self) -> bool:
        return self.info is not None and len(self.info.websites) > 0

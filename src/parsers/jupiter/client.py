"""Jupiter API client — price-only market data fallback.

Pricing via /price/v2, symbol/name/logo via the token list endpoint.
Jupiter reports neither liquidity nor pair volume.
"""

from decimal import Decimal, InvalidOperation

import httpx
from loguru import logger

from src.parsers.exceptions import UpstreamError
from src.parsers.jupiter.models import JupiterPrice, JupiterTokenInfo
from src.parsers.upstream import RateLimiter, UpstreamGuard

PRICE_URL = "https://api.jup.ag/price/v2"
TOKEN_URL = "https://tokens.jup.ag/token"


class JupiterClient:
    """Async HTTP client for Jupiter APIs (free tier: 1 RPS)."""

    def __init__(
        self,
        guard: UpstreamGuard,
        api_key: str = "",
        max_rps: float = 1.0,
        timeout: float = 8.0,
    ) -> None:
        self._guard = guard
        self._rate_limiter = RateLimiter(max_rps)
        headers: dict[str, str] = {}
        if api_key:
            headers["x-api-key"] = api_key
        self._client = httpx.AsyncClient(timeout=timeout, headers=headers)

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str, params: dict | None = None) -> object:
        cache_key = f"{url}?{sorted((params or {}).items())}"

        async def _fetch() -> object:
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.get(url, params=params)
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise UpstreamError(f"Jupiter {url}: {type(e).__name__}: {e}") from e
            try:
                return resp.json()
            except ValueError as e:
                raise UpstreamError(f"Jupiter {url}: invalid JSON body: {e}") from e

        return await self._guard.call(url, _fetch, cache_key=cache_key)

    async def get_price(self, mint: str) -> JupiterPrice | None:
        """Fetch USD price for a single token. None when Jupiter has no quote."""
        data = await self._get_json(PRICE_URL, {"ids": mint})
        if not isinstance(data, dict):
            return None
        return _parse_price(data, mint)

    async def get_token_info(self, mint: str) -> JupiterTokenInfo | None:
        data = await self._get_json(f"{TOKEN_URL}/{mint}")
        if not isinstance(data, dict) or not data:
            return None
        volume = data.get("daily_volume")
        try:
            return JupiterTokenInfo(
                address=data.get("address", mint),
                symbol=data.get("symbol") or "",
                name=data.get("name") or "",
                logo_uri=data.get("logoURI"),
                daily_volume=Decimal(str(volume)) if volume is not None else None,
            )
        except (ValueError, InvalidOperation) as e:
            raise UpstreamError(f"Jupiter token info for {mint[:12]}: malformed payload: {e}") from e


def _parse_price(data: dict, mint: str) -> JupiterPrice | None:
    """Parse Jupiter API response for a single mint."""
    prices = data.get("data")
    token_data = prices.get(mint) if isinstance(prices, dict) else None
    if not isinstance(token_data, dict):
        return None

    price_str = token_data.get("price")
    if price_str is None:
        return None
    try:
        price = Decimal(str(price_str))
    except InvalidOperation:
        logger.debug(f"[JUPITER] Unparseable price {price_str!r} for {mint[:12]}")
        return None

    return JupiterPrice(
        id=mint,
        mint_symbol=str(token_data.get("mintSymbol") or ""),
        price=price,
    )

"""Pump.fun coin API client — creator, creation time, socials, replies."""

import httpx
from loguru import logger

from src.parsers.exceptions import UpstreamError
from src.parsers.pumpfun.models import PumpfunCoin
from src.parsers.upstream import RateLimiter, UpstreamGuard
from src.utils.token_utils import timestamp_to_datetime

# Tried in order; the first endpoint that answers wins
COIN_ENDPOINTS = (
    "https://frontend-api-v3.pump.fun/coins",
    "https://frontend-api.pump.fun/coins",
    "https://pumpportal.fun/api/coin-data",
)
HEADERS = {"Referer": "https://pump.fun/", "Accept": "application/json"}


class PumpfunClient:
    """Async HTTP client for Pump.fun frontend API (free, no key)."""

    def __init__(self, guard: UpstreamGuard, max_rps: float = 2.0, timeout: float = 8.0) -> None:
        self._guard = guard
        self._rate_limiter = RateLimiter(max_rps)
        self._client = httpx.AsyncClient(timeout=timeout, headers=HEADERS)

    async def close(self) -> None:
        await self._client.aclose()

    async def _get_json(self, url: str) -> object:
        async def _fetch() -> object:
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.get(url)
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise UpstreamError(f"Pump.fun {url}: {type(e).__name__}: {e}") from e
            try:
                return resp.json()
            except ValueError as e:
                raise UpstreamError(f"Pump.fun {url}: invalid JSON body: {e}") from e

        return await self._guard.call(url, _fetch, cache_key=url)

    async def get_coin(self, mint: str) -> PumpfunCoin | None:
        """Fetch coin metadata, falling back across mirror endpoints.

        Returns None when every endpoint fails or returns no data.
        """
        for base in COIN_ENDPOINTS:
            url = f"{base}/{mint}"
            try:
                data = await self._get_json(url)
            except UpstreamError as e:
                logger.debug(f"[PUMPFUN] {e}")
                continue
            if not isinstance(data, dict) or not data:
                continue
            try:
                return _parse_coin(data, mint)
            except (TypeError, ValueError, OverflowError) as e:
                logger.debug(f"[PUMPFUN] Malformed coin payload from {base}: {e}")
        logger.debug(f"[PUMPFUN] No coin data for {mint[:12]}")
        return None


def _parse_coin(data: dict, mint: str) -> PumpfunCoin:
    """Parse a coin payload; some mirrors wrap it under `data`."""
    coin = data.get("data") if isinstance(data.get("data"), dict) else data
    social = coin.get("social") if isinstance(coin.get("social"), dict) else {}

    replies = (
        coin.get("reply_count")
        or coin.get("replies")
        or coin.get("comment_count")
        or coin.get("total_replies")
        or 0
    )
    try:
        reply_count = int(replies)
    except (TypeError, ValueError):
        reply_count = 0

    return PumpfunCoin(
        mint=coin.get("mint", mint),
        name=coin.get("name") or "",
        symbol=coin.get("symbol") or "",
        description=coin.get("description") or "",
        creator=coin.get("creator") or coin.get("deployer"),
        created_at=timestamp_to_datetime(coin.get("created_timestamp")),
        image_url=coin.get("image_uri") or coin.get("image"),
        twitter=coin.get("twitter") or social.get("twitter"),
        telegram=coin.get("telegram") or social.get("telegram"),
        website=coin.get("website") or social.get("website"),
        reply_count=reply_count,
        complete=bool(coin.get("complete") or coin.get("raydium_pool")),
        usd_market_cap=float(coin.get("usd_market_cap") or 0),
    )

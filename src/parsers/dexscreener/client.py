import httpx
from loguru import logger
from pydantic import ValidationError

from src.parsers.dexscreener.models import DexScreenerPair
from src.parsers.exceptions import UpstreamError
from src.parsers.upstream import RateLimiter, UpstreamGuard

BASE_URL = "https://api.dexscreener.com"

# Launchpad-native venues win pair selection over deeper secondary pools
NATIVE_DEX_IDS = ("pumpfun", "pumpswap")


class DexScreenerClient:
    """Async REST client for DexScreener public API (no auth required)."""

    def __init__(
        self,
        guard: UpstreamGuard,
        rate_limiter: RateLimiter | None = None,
        max_rps: float = 4.0,
        timeout: float = 8.0,
    ) -> None:
        self._guard = guard
        self._client = httpx.AsyncClient(
            base_url=BASE_URL,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._rate_limiter = rate_limiter or RateLimiter(max_rps)

    async def _get_json(self, path: str) -> object:
        endpoint = f"{BASE_URL}{path}"

        async def _fetch() -> object:
            await self._rate_limiter.acquire()
            try:
                response = await self._client.get(path)
                response.raise_for_status()
            except httpx.HTTPError as e:
                raise UpstreamError(f"DexScreener {path}: {type(e).__name__}: {e}") from e
            try:
                return response.json()
            except ValueError as e:
                raise UpstreamError(f"DexScreener {path}: invalid JSON body: {e}") from e

        return await self._guard.call(endpoint, _fetch, cache_key=endpoint)

    async def get_token_pairs(self, token_address: str) -> list[DexScreenerPair]:
        """Get all pairs for a token on Solana."""
        path = f"/token-pairs/v1/solana/{token_address}"
        data = await self._get_json(path)
        if isinstance(data, list):
            pairs = data
        elif isinstance(data, dict):
            pairs = data.get("pairs", data.get("pair", []))
            if not isinstance(pairs, list):
                pairs = [pairs] if pairs else []
        else:
            return []
        try:
            return [DexScreenerPair.model_validate(p) for p in pairs]
        except ValidationError as e:
            raise UpstreamError(f"DexScreener {path}: malformed pair: {e.error_count()} errors") from e

    async def close(self) -> None:
        await self._client.aclose()


def select_best_pair(pairs: list[DexScreenerPair]) -> DexScreenerPair | None:
    """Prefer a launchpad-native pair, else the deepest liquidity pool.

    Ties on liquidity keep the first pair listed.
    """
    if not pairs:
        return None
    for pair in pairs:
        if pair.dexId in NATIVE_DEX_IDS:
            return pair
    best = pairs[0]
    for pair in pairs[1:]:
        if pair.liquidity_usd > best.liquidity_usd:
            best = pair
    logger.debug(f"[DEXSCREENER] Using {best.dexId} pair {best.pairAddress[:12]}")
    return best

"""Narrative flavor text via OpenRouter.

The model only ever sees facts that were already computed deterministically
and its text is used for display. Threats, probabilities and levels never
depend on it.
"""

from dataclasses import dataclass, field
from typing import Protocol

import httpx
from loguru import logger

from src.parsers.exceptions import UpstreamError
from src.parsers.upstream import RateLimiter, UpstreamGuard

SYSTEM_PROMPT = (
    "You are a professional cryptocurrency analyst. Write a brief, neutral one or two "
    "sentence summary of the token using only the facts given. Never give financial advice."
)


@dataclass(frozen=True)
class NarrativeFacts:
    """Validated numeric facts handed to the narrative generator."""

    symbol: str
    name: str
    price: float
    market_cap: float
    volume_24h: float
    liquidity: float
    trust_score: int
    risk_level: str
    rug_probability: str
    key_threats: list[str] = field(default_factory=list)

    def to_prompt(self) -> str:
        threats = "\n".join(f"- {t}" for t in self.key_threats) or "- none"
        return (
            f"Token: {self.symbol} - {self.name}\n"
            f"Price: ${self.price:.10g}\n"
            f"Market cap: ${self.market_cap:,.0f}\n"
            f"24h volume: ${self.volume_24h:,.0f}\n"
            f"Liquidity: ${self.liquidity:,.0f}\n"
            f"Trust score: {self.trust_score}/100 ({self.risk_level} risk)\n"
            f"Rug probability: {self.rug_probability}\n"
            f"Key threats:\n{threats}"
        )


class NarrativeGenerator(Protocol):
    async def summarize(self, facts: NarrativeFacts) -> str | None: ...

    async def close(self) -> None: ...


class NullNarrator:
    """No-op generator: used when LLM analysis is disabled and in tests."""

    async def summarize(self, facts: NarrativeFacts) -> str | None:
        return None

    async def close(self) -> None:
        return None


class LLMNarrator:
    """One-shot chat completion via OpenRouter. Returns None on any failure."""

    BASE_URL = "https://openrouter.ai/api/v1"

    def __init__(
        self,
        api_key: str,
        guard: UpstreamGuard,
        model: str = "google/gemini-2.5-flash-lite",
        max_rps: float = 2.0,
    ) -> None:
        self._guard = guard
        self._rate_limiter = RateLimiter(max_rps)
        self._model = model
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=30.0,  # LLM responses can be slow
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
        )

    async def summarize(self, facts: NarrativeFacts) -> str | None:
        endpoint = f"{self.BASE_URL}/chat/completions"

        async def _fetch() -> dict:
            await self._rate_limiter.acquire()
            try:
                resp = await self._client.post(
                    "/chat/completions",
                    json={
                        "model": self._model,
                        "messages": [
                            {"role": "system", "content": SYSTEM_PROMPT},
                            {"role": "user", "content": facts.to_prompt()},
                        ],
                        "max_tokens": 120,
                        "temperature": 0.2,
                    },
                )
                resp.raise_for_status()
            except httpx.HTTPError as e:
                raise UpstreamError(f"OpenRouter: {type(e).__name__}: {e}") from e
            try:
                return resp.json()
            except ValueError as e:
                raise UpstreamError(f"OpenRouter: invalid JSON body: {e}") from e

        try:
            data = await self._guard.call(endpoint, _fetch)
        except UpstreamError as e:
            logger.warning(f"[LLM] Narrative unavailable: {e}")
            return None

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.warning(f"[LLM] Unexpected response shape: {type(e).__name__}: {e}")
            return None
        if not isinstance(content, str):
            return None
        return content.strip() or None

    async def close(self) -> None:
        await self._client.aclose()


def fallback_summary(facts: NarrativeFacts) -> str:
    """Canned summary used whenever the generator returns nothing."""
    return f"{facts.symbol} - {facts.name} | Price: ${facts.price:.10g} | Market Cap: ${facts.market_cap:,.0f}"

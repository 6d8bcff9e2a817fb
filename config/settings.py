from pydantic_settings import BaseSettings, SettingsConfigDict

PUBLIC_RPC_HOST = "api.mainnet-beta.solana.com"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Solana RPC
    solana_rpc_url: str = f"https://{PUBLIC_RPC_HOST}"
    rpc_timeout_sec: float = 15.0
    rpc_max_rps: float = 10.0

    # Shared upstream protection (response cache + per-endpoint circuit breaker)
    http_timeout_sec: float = 8.0
    http_cache_ttl_sec: float = 15.0
    http_cb_failure_threshold: int = 3
    http_cb_cooldown_sec: float = 30.0

    # DexScreener (primary market source, no key)
    dexscreener_max_rps: float = 4.0

    # Jupiter (price-only fallback)
    enable_jupiter: bool = True
    jupiter_api_key: str = ""
    jupiter_max_rps: float = 1.0

    # Pump.fun coin metadata enrichment
    enable_pumpfun: bool = True
    pumpfun_max_rps: float = 2.0

    # Holder analysis
    holder_owner_max_concurrent: int = 5  # parallel getAccountInfo calls for owner resolution

    # Narrative flavor text via OpenRouter (display only)
    openrouter_api_key: str = ""
    enable_llm_analysis: bool = True
    llm_model: str = "google/gemini-2.5-flash-lite"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    @property
    def uses_public_rpc(self) -> bool:
        """Public mainnet RPC is heavily rate-limited; multi-call heuristics are skipped there."""
        return PUBLIC_RPC_HOST in self.solana_rpc_url


settings = Settings()

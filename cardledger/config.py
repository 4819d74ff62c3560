from pydantic_settings import BaseSettings, SettingsConfigDict

# =============================================================================
# CARD DATA CACHE DEFAULTS
# =============================================================================

# Provider data is considered fresh for one hour (prices drift, identities don't)
DEFAULT_CARD_CACHE_TTL_SECONDS = 3600

# Stale entries are swept after this many cache misses
DEFAULT_CARD_CACHE_SWEEP_EVERY = 100


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardLedger"
    debug: bool = False

    database_url: str = "postgresql+asyncpg://localhost:5432/cardledger"

    scryfall_base_url: str = "https://api.scryfall.com"
    scryfall_timeout_seconds: float = 10.0
    user_agent: str = "CardLedger/1.0"

    card_cache_ttl_seconds: int = DEFAULT_CARD_CACHE_TTL_SECONDS
    card_cache_sweep_every: int = DEFAULT_CARD_CACHE_SWEEP_EVERY

    # Upper bound for a single provider fetch during enrichment.
    # None leaves fetches bounded only by the HTTP client timeout.
    enrichment_timeout_seconds: float | None = None


settings = Settings()

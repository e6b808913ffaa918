from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardFinder"

    search_api_url: str = "http://localhost:8000/api"
    autocomplete_path: str = "/autocomplete"
    by_ids_path: str = "/cards/by-oracle-ids"
    user_agent: str = "CardFinder/1.0"

    # Transport default; the engine enforces no other timeout
    request_timeout: float = 10.0

    # Language the remote index is keyed by
    canonical_language: str = "en"

    debounce_ms: int = 300
    min_length: int = 2
    max_display_results: int = 15

    dictionary_limit: int = 10
    submit_dictionary_limit: int = 20

    rate_limit_cooldown_seconds: int = 30


settings = Settings()


# =============================================================================
# SEARCH DEFAULTS
# =============================================================================

# Fixed cooldown after an HTTP 429, regardless of any Retry-After hint
DEFAULT_RATE_LIMIT_COOLDOWN_SECONDS = 30

# Batch lookups only ever fetch the first page, ordered by relevance
BY_IDS_PAGE = 1
BY_IDS_SORT = "relevance"

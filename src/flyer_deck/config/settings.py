"""Application settings via environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings via environment variables."""

    # Anthropic Direct API
    anthropic_api_key: str = ""
    synthesis_model: str = "claude-3-5-sonnet-20241022"
    extraction_model: str = "claude-3-5-sonnet-20241022"
    synthesis_max_retries: int = 3

    # Concurrency limits per collaborator (no cap on workers)
    llm_max_concurrency: int = 4
    tool_max_concurrency: int = 4

    # External providers
    http_timeout_seconds: float = 15.0
    google_maps_api_key: str = ""
    reinfolib_api_key: str = ""
    geocoder_url: str = "https://geocode.csis.u-tokyo.ac.jp/cgi-bin/simple_geocode.cgi"
    stations_url: str = "https://express.heartrails.com/api/json"
    places_url: str = "https://places.googleapis.com/v1/places:searchNearby"
    routes_url: str = "https://routes.googleapis.com/directions/v2:computeRoutes"
    static_map_url: str = "https://maps.googleapis.com/maps/api/staticmap"
    reinfolib_url: str = "https://www.reinfolib.mlit.go.jp/ex-api/external"
    nearby_radius_meters: int = 1000

    # Loan defaults used when the caller omits financing terms
    default_interest_rate: float = 0.5  # percent per year
    default_loan_term_years: int = 35

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    sse_keepalive_seconds: float = 15.0
    run_timeout_seconds: float = 600.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

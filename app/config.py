"""Application configuration pulled from environment variables via pydantic."""
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger
logger = get_tagged_logger(__name__, tag="config")

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
)


class Settings(BaseSettings):
    """Environment-driven configuration for the stock relay service."""
    model_config = SettingsConfigDict(env_prefix="STOCK_", extra="ignore")

    # Upstream sources
    page_url: str = "https://www.gamersberg.com/grow-a-garden/stock"
    stock_api_url: str = "https://www.gamersberg.com/api/v1/grow-a-garden/stock"
    timers_api_url: str = "https://vulcanvalues.com/api/grow-a-garden/stock"
    images_api_url: str = "https://growagarden.gg/api/stock"
    user_agent: str = DEFAULT_USER_AGENT

    # Refresh loop
    poller_enabled: bool = True
    scrape_interval_seconds: float = 12.0
    stale_threshold_seconds: float = 60.0

    # Session renewal
    browser_headless: bool = True
    session_max_age_seconds: float = 240.0
    session_max_age_jitter_seconds: float = 60.0
    session_settle_seconds: float = 2.0
    navigation_timeout_seconds: float = 30.0

    # Fetch timeouts
    primary_timeout_seconds: float = 15.0
    aux_timeout_seconds: float = 8.0

    @field_validator("page_url", "stock_api_url", "timers_api_url", "images_api_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize URLs to avoid double slashes."""
        return str(v).rstrip("/")


settings = Settings()


if __name__ == "__main__":
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {settings.model_dump_json(indent=4)}")

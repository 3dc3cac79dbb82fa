from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from firecrawl_tool.errors import ConfigurationError
from firecrawl_tool.models import (
    DEFAULT_API_HOST,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    FirecrawlCredentials,
    PollingConfig,
)

MISSING_API_KEY_MESSAGE = (
    "Firecrawl API key is required. Set FIRECRAWL_API_KEY or pass it explicitly."
)


class FirecrawlSettings(BaseSettings):
    """Credentials and polling policy read from ``FIRECRAWL_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="FIRECRAWL_", extra="ignore")

    api_key: SecretStr = SecretStr("")
    api_host: str = DEFAULT_API_HOST
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_attempts: int = DEFAULT_MAX_ATTEMPTS

    def credentials(self) -> FirecrawlCredentials:
        if not self.api_key.get_secret_value():
            raise ConfigurationError(MISSING_API_KEY_MESSAGE)
        return FirecrawlCredentials(api_key=self.api_key, api_host=self.api_host)

    def polling_config(self) -> PollingConfig:
        return PollingConfig(
            poll_interval=self.poll_interval, max_attempts=self.max_attempts
        )

from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal
from .correlation.models import CorrelationConfig

Selection = Literal["none", "first", "last", "oldest", "newest"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENV: str = "dev"
    SERVICE_PORT: int = 8080
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"
    # Correlation
    UID_FIELD: str = "uid"
    TIMEOUT: float = 300
    TIMESTAMP_TAG: str = "@timestamp"
    REPLACE_TIMESTAMP: Literal["keep", "oldest", "newest"] = "keep"
    FILTER_TAG: str | None = None
    ATTACH_EVENT: Selection = "none"
    DECORATE_EVENT: Selection = "none"
    # Aging sweep cadence, also the elapsed time added per sweep
    FLUSH_INTERVAL: float = 5
    FLUSH_ENABLED: bool = True
    # WebSocket stream
    WS_PING_INTERVAL: int = 30
    WS_RATE_LIMIT_MESSAGES: int = 100
    WS_RATE_LIMIT_WINDOW: int = 60

    def correlation_config(self) -> CorrelationConfig:
        return CorrelationConfig(
            uid_field=self.UID_FIELD,
            timeout=self.TIMEOUT,
            timestamp_tag=self.TIMESTAMP_TAG,
            replace_timestamp=self.REPLACE_TIMESTAMP,
            filter_tag=self.FILTER_TAG or None,
            attach_event=self.ATTACH_EVENT,
            decorate_event=self.DECORATE_EVENT,
            flush_interval=self.FLUSH_INTERVAL,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

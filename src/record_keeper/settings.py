from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from record_keeper.forex import DEFAULT_FEED_URLS

ServiceName = Literal["tasks", "fitness", "forex", "all"]

_SERVICE_METHODS: dict[str, list[str]] = {
    "tasks": ["GET", "POST", "PUT", "DELETE"],
    "fitness": ["GET", "POST", "PUT", "DELETE"],
    "forex": ["GET", "POST", "PUT"],
    "all": ["GET", "POST", "PUT", "DELETE"],
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Service
    service: ServiceName = Field(default="tasks", validation_alias="SERVICE")
    host: str = Field(default="127.0.0.1", validation_alias="HOST")
    port: int = Field(default=8080, ge=1, le=65535, validation_alias="PORT")

    # Snapshot
    data_file: str = Field(default="database.json", validation_alias="DATA_FILE")

    # Forex feeds
    forex_feed_urls: str = Field(
        default=",".join(DEFAULT_FEED_URLS),
        validation_alias="FOREX_FEED_URLS",
    )
    forex_fetch_on_startup: bool = Field(default=True, validation_alias="FOREX_FETCH_ON_STARTUP")
    forex_fetch_deadline_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias="FOREX_FETCH_DEADLINE_SECONDS",
    )
    forex_feed_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        validation_alias="FOREX_FEED_TIMEOUT_SECONDS",
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    def feed_urls(self) -> list[str]:
        return [u.strip() for u in self.forex_feed_urls.split(",") if u.strip()]

    def allowed_methods(self) -> list[str]:
        return list(_SERVICE_METHODS[self.service])

    def serves(self, group: str) -> bool:
        if self.service == "all":
            return True
        if group == "users":
            return self.service in ("tasks", "fitness")
        return self.service == group

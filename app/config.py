# app/config.py
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    env: Literal["dev", "stage", "prod"] = "dev"
    debug: bool = False
    log_level: str = "INFO"
    access_log: bool = True
    sql_echo: bool = False
    auto_init_db: bool = True

    # Hot news provider
    hot_news_api_url: str = "https://orz.ai/api/v1/dailynews/"
    hot_news_user_agent: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    )
    hot_news_timeout_seconds: float = 30.0

    # Pipeline
    default_fetch_limit: int = 20  # used when news_fetch_limit is missing/invalid
    score_strategy: Literal["position", "weighted"] = "position"
    news_retention_days: int = 30  # 0 keeps every past batch

    # Identity headers are forwarded by the upstream identity provider
    identity_shared_secret: Optional[str] = None

    @property
    def is_dev(self) -> bool:
        return self.env == "dev" or self.debug is True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()  # type: ignore[call-arg]

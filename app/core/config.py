from functools import lru_cache
from typing import List, Literal

from pydantic import BaseModel
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorefrontConfig(BaseModel):
    """Credentials for one WooCommerce storefront."""

    name: str
    base_url: str = ""
    consumer_key: str = ""
    consumer_secret: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.base_url and self.consumer_key and self.consumer_secret)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    database_url: str = "sqlite:///./retail_sync.db"
    log_level: str = "INFO"

    redis_url: str = "redis://localhost:6379/0"
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    celery_task_always_eager: bool = False

    # Hard ceiling for one sync run, also the TTL of the redis run lock
    sync_time_limit_seconds: int = 300
    progress_backend: Literal["memory", "redis"] = "memory"
    sync_log_limit: int = 1000

    wc_request_timeout: int = 60
    wc_verify_ssl: bool = True
    wc_page_size: int = 100
    order_batch_size: int = 500

    # JSON list in the STOREFRONTS env var
    storefronts: List[StorefrontConfig] = []


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

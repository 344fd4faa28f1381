from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "CivicSense"
    env: str = "dev"
    log_level: str = "INFO"

    storage_backend: Literal["mongo", "memory"] = "mongo"
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "civicsense"

    cors_origins: str = "http://localhost:3000,http://127.0.0.1:3000"

    tracking_id_prefix: str = "RPT"
    tracking_id_attempts: int = 12
    default_radius_km: float = 5.0

    notification_buffer_size: int = Field(500, ge=1)
    notification_poll_interval_seconds: float = 30.0

    enable_geocoding: bool = False
    geocoding_url: str = "https://nominatim.openstreetmap.org/reverse"
    geocoding_timeout_seconds: float = 10.0

    class Config:
        env_file = ".env"
        extra = "ignore"

    def get_cors_origins(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    log_level: str = Field(default="info", alias="LOG_LEVEL")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    max_concurrent_requests: int = Field(default=2, alias="MAX_CONCURRENT_REQUESTS")
    max_image_size: int = Field(default=20 * 1024 * 1024, alias="MAX_IMAGE_SIZE")
    theme_workers: int = Field(default=1, alias="THEME_WORKERS")
    theme_chunk_rows: int = Field(default=64, alias="THEME_CHUNK_ROWS")

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()

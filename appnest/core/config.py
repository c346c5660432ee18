from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATA_DIR: Path = Field(
        default=Path("data"),
        description="Base directory; app data lives under <DATA_DIR>/app-data/<app_id>"
    )

    APP_SCRIPT: Path = Field(
        default=Path("scripts/app"),
        description="Executable invoked as `<APP_SCRIPT> <action> <app_id>`"
    )

    MANIFEST_FILE: str = Field(
        default="umbrel-app.yml",
        description="Manifest file name inside each app data directory"
    )

    DATABASE_URL: str = "sqlite+aiosqlite:///./appnest.db"

    DOCKER_BASE_URL: str | None = None  # Optional: connect to a remote engine

    LOG_LEVEL: str = "INFO"

    CORS_ORIGINS: list[str] = ["http://localhost:5173"]

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="APPNEST_",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()

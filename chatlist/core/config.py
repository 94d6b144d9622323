from __future__ import annotations

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _split_origins(value: str) -> list[str]:
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    group_chat_enabled: bool = Field(default=True, validation_alias="GROUP_CHAT_ENABLED")
    auto_complete_deletions: bool = Field(default=True, validation_alias="AUTO_COMPLETE_DELETIONS")
    seed_room_count: int = Field(default=0, ge=0, validation_alias="SEED_ROOM_COUNT")
    attachment_storage_dir: str = Field(
        default="storage/attachments",
        validation_alias="ATTACHMENT_STORAGE_DIR",
    )

    event_queue_size: int = Field(default=100, ge=1, validation_alias="EVENT_QUEUE_SIZE")
    frontend_origins: str = Field(
        default="http://localhost:3000",
        validation_alias="FRONTEND_ORIGINS",
    )

    @computed_field
    @property
    def frontend_origin_list(self) -> list[str]:
        return _split_origins(self.frontend_origins)


@lru_cache
def get_settings() -> Settings:
    return Settings()

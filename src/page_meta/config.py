from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    host: str = Field(default="127.0.0.1", alias="PAGE_META_HOST")
    port: int = Field(default=8000, alias="PAGE_META_PORT")
    log_level: str = Field(default="INFO", alias="PAGE_META_LOG_LEVEL")

    fetch_timeout_s: float = Field(default=20.0, gt=0, alias="PAGE_META_FETCH_TIMEOUT_S")
    follow_redirects: bool = Field(default=True, alias="PAGE_META_FOLLOW_REDIRECTS")
    user_agent: str = Field(default="page-meta/0.1.0", alias="PAGE_META_USER_AGENT")

    peek_size: int = Field(default=4096, gt=0, alias="PAGE_META_PEEK_SIZE")
    decode_errors: Literal["replace", "strict", "ignore"] = Field(
        default="replace", alias="PAGE_META_DECODE_ERRORS"
    )


def load_settings() -> Settings:
    return Settings()

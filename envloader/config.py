"""Environment configuration for the loader."""

from __future__ import annotations

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ENVLOADER_", case_sensitive=False, extra="ignore", populate_by_name=True
    )

    cache_dir: Path = Field(
        default_factory=lambda: Path(tempfile.gettempdir()),
        validation_alias=AliasChoices("ENVLOADER_CACHE_DIR", "ENVLOADER_TMPDIR"),
        description="Directory holding the cache entries",
    )
    aws_region: str | None = Field(
        None,
        validation_alias=AliasChoices("AWS_REGION", "AWS_DEFAULT_REGION"),
        description="Region used when building boto3 clients",
    )
    log_format: Literal["text", "json"] = Field(
        "text", description="Format of the lines written to stderr"
    )
    log_level: str = Field("INFO", description="Level of the envloader logger")


@lru_cache()
def get_settings() -> Settings:
    return Settings()

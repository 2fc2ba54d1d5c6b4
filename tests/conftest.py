from __future__ import annotations

from pathlib import Path

import pytest

from envloader import FileCacheStore, MappingEnvironment, Settings
from envloader.observability.logging import reset_logging


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def cache(cache_dir: Path) -> FileCacheStore:
    return FileCacheStore(cache_dir)


@pytest.fixture
def settings(cache_dir: Path) -> Settings:
    return Settings(cache_dir=cache_dir, aws_region="eu-west-1")


@pytest.fixture
def environment() -> MappingEnvironment:
    return MappingEnvironment()


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    reset_logging()

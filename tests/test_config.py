"""Tests for settings and logging configuration."""

from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from envloader.config import Settings
from envloader.env import MappingEnvironment
from envloader.observability.logging import JsonLogFormatter, configure_logging


def test_cache_dir_defaults_to_temp_dir(monkeypatch) -> None:
    monkeypatch.delenv("ENVLOADER_CACHE_DIR", raising=False)
    monkeypatch.delenv("ENVLOADER_TMPDIR", raising=False)

    assert Settings().cache_dir == Path(tempfile.gettempdir())


def test_first_cache_dir_variable_wins(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("ENVLOADER_CACHE_DIR", str(tmp_path / "primary"))
    monkeypatch.setenv("ENVLOADER_TMPDIR", str(tmp_path / "secondary"))

    assert Settings().cache_dir == tmp_path / "primary"

    monkeypatch.delenv("ENVLOADER_CACHE_DIR")
    assert Settings().cache_dir == tmp_path / "secondary"


def test_region_falls_back_to_default_region(monkeypatch) -> None:
    monkeypatch.delenv("AWS_REGION", raising=False)
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-central-1")

    assert Settings().aws_region == "eu-central-1"

    monkeypatch.setenv("AWS_REGION", "us-west-2")
    assert Settings().aws_region == "us-west-2"


def test_configure_logging_is_idempotent() -> None:
    first = configure_logging()
    second = configure_logging(log_format="json")

    assert first is second
    assert len(first.handlers) == 1
    assert first.propagate is False


def test_json_formatter_includes_extra_fields() -> None:
    record = logging.LogRecord("envloader.loader", logging.INFO, __file__, 1, "loaded %s", ("X",), None)
    record.variables = ["X"]

    payload = json.loads(JsonLogFormatter().format(record))

    assert payload["message"] == "loaded X"
    assert payload["logger"] == "envloader.loader"
    assert payload["variables"] == ["X"]


def test_mapping_environment_snapshot_is_a_copy() -> None:
    environment = MappingEnvironment({"A": "1"})

    snapshot = environment.snapshot()
    environment.set_all({"A": "2", "B": "3"})

    assert snapshot == {"A": "1"}
    assert environment.get("A") == "2"
    assert environment.get("MISSING") is None

"""File based cache surviving process restarts within one execution environment.

On the function runtime the process may restart on every invocation (or on
error), so resolved values are written to the temp directory and reused until
that directory is wiped. Entries are never refreshed: deleting the file is the
only way to resolve again.
"""
from __future__ import annotations

import io
import json
import logging
import os
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Mapping, Protocol

from dotenv.parser import parse_stream

from .errors import MalformedCacheError
from .observability.metrics import record_cache_lookup
from .secrets.base import ReferenceKind

logger = logging.getLogger(__name__)

CACHE_FILE_NAMES: dict[ReferenceKind, str] = {
    ReferenceKind.PARAMETER: "envloader-ssm-parameters.json",
    ReferenceKind.SECRET: "envloader-secretsmanager.json",
    ReferenceKind.PARAMETER_STORE: "envloader-parameter-store.env",
}

_PLAIN_VALUE = re.compile(r"[^\s'\"#][^\r\n]*")
_PLAIN_KEY = re.compile(r"[^\s'=#][^\s=#]*")
_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r"}


@dataclass(slots=True)
class CacheLookup:
    values: dict[str, str] = field(repr=False)
    computed: bool


class CacheStore(Protocol):
    """Durable storage of resolved values, one entry per reference kind."""

    def path_for(self, kind: ReferenceKind) -> Path:
        ...

    def read_or_compute(
        self, kind: ReferenceKind, compute: Callable[[], Mapping[str, str]]
    ) -> CacheLookup:
        """Return the stored entry for ``kind``, or compute and store it."""


def parse_key_value_lines(text: str) -> dict[str, str]:
    """Parse ``KEY=VALUE`` lines (dotenv syntax, without interpolation).

    Raises ``ValueError`` on a line that is not an assignment.
    """

    values: dict[str, str] = {}
    for binding in parse_stream(io.StringIO(text)):
        if binding.error:
            raise ValueError(
                f"line {binding.original.line} is not a KEY=VALUE assignment: "
                f"{binding.original.string.strip()!r}"
            )
        if binding.key is None:
            continue
        if binding.value is None:
            raise ValueError(f"line {binding.original.line} has no value for '{binding.key}'")
        values[binding.key] = binding.value
    return values


def _format_value(value: str) -> str:
    if _PLAIN_VALUE.fullmatch(value) and value == value.rstrip() and not re.search(r"\s#", value):
        return value
    return '"' + "".join(_ESCAPES.get(char, char) for char in value) + '"'


def _format_key(key: str) -> str:
    # A bare ``export`` is read as the export keyword, not as a key.
    if _PLAIN_KEY.fullmatch(key) and key != "export":
        return key
    # Quoted keys have no escapes; a parsed key needing quotes never holds "'".
    if "'" in key:
        raise ValueError(f"variable name {key!r} cannot be written as a KEY=VALUE line")
    return f"'{key}'"


def format_key_value_lines(values: Mapping[str, str]) -> str:
    """Render ``KEY = VALUE`` lines that :func:`parse_key_value_lines` reads back."""

    return "".join(
        f"{_format_key(key)} = {_format_value(value)}\n" for key, value in values.items()
    )


def _decode_json_entry(text: str) -> dict[str, str]:
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    for key, value in data.items():
        if not isinstance(value, str):
            raise ValueError(f"value of '{key}' is not a string")
    return data


class FileCacheStore:
    """Persist one resolved mapping per reference kind in ``directory``."""

    def __init__(self, directory: Path | str) -> None:
        self._directory = Path(directory)

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, kind: ReferenceKind) -> Path:
        return self._directory / CACHE_FILE_NAMES[kind]

    def read_or_compute(
        self, kind: ReferenceKind, compute: Callable[[], Mapping[str, str]]
    ) -> CacheLookup:
        path = self.path_for(kind)
        if path.is_file():
            record_cache_lookup(kind.value, hit=True)
            return CacheLookup(values=self._read(kind, path), computed=False)

        record_cache_lookup(kind.value, hit=False)
        values = dict(compute())
        self._write(kind, path, values)
        return CacheLookup(values=values, computed=True)

    def _read(self, kind: ReferenceKind, path: Path) -> dict[str, str]:
        try:
            text = path.read_text(encoding="utf-8")
            if kind is ReferenceKind.PARAMETER_STORE:
                return parse_key_value_lines(text)
            return _decode_json_entry(text)
        except ValueError as exc:
            raise MalformedCacheError(path, str(exc)) from exc

    def _write(self, kind: ReferenceKind, path: Path, values: Mapping[str, str]) -> None:
        if kind is ReferenceKind.PARAMETER_STORE:
            content = format_key_value_lines(values)
        else:
            content = json.dumps(values)

        self._directory.mkdir(parents=True, exist_ok=True)
        # mkstemp creates the file with mode 0600; replacing makes the write all or nothing.
        fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Cached %d %s values in %s", len(values), kind.value, path)


__all__ = [
    "CACHE_FILE_NAMES",
    "CacheLookup",
    "CacheStore",
    "FileCacheStore",
    "format_key_value_lines",
    "parse_key_value_lines",
]

"""Environment sinks the loader reads references from and writes values to.

``ProcessEnvironment`` writes through ``os.environ`` (which also calls
``putenv`` so child processes and C extensions observe the value) and mirrors
it into any extra mappings the host registered, such as a settings dict built
before the loader ran. ``MappingEnvironment`` wraps a plain dict
and is what tests and embedders use to keep the real process untouched.
"""
from __future__ import annotations

import os
from typing import Mapping, MutableMapping, Protocol, Sequence


class EnvironmentSink(Protocol):
    """Read and write named string variables."""

    def snapshot(self) -> dict[str, str]:
        """Return a copy of every variable, in the environment's order."""

    def get(self, name: str) -> str | None:
        ...

    def set_all(self, values: Mapping[str, str]) -> None:
        """Write every value, each to all mirrors before the next one."""


class ProcessEnvironment:
    """The real process environment plus optional mirror mappings."""

    def __init__(self, mirrors: Sequence[MutableMapping[str, str]] = ()) -> None:
        self._mirrors = list(mirrors)

    def snapshot(self) -> dict[str, str]:
        return dict(os.environ)

    def get(self, name: str) -> str | None:
        return os.environ.get(name)

    def set_all(self, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            os.environ[name] = value
            for mirror in self._mirrors:
                mirror[name] = value


class MappingEnvironment:
    """Environment backed by an in-memory mapping."""

    def __init__(self, data: MutableMapping[str, str] | None = None) -> None:
        self.data = data if data is not None else {}

    def snapshot(self) -> dict[str, str]:
        return dict(self.data)

    def get(self, name: str) -> str | None:
        return self.data.get(name)

    def set_all(self, values: Mapping[str, str]) -> None:
        for name, value in values.items():
            self.data[name] = value


__all__ = ["EnvironmentSink", "MappingEnvironment", "ProcessEnvironment"]

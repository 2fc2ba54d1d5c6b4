"""Resolve secret references found in the environment into their values.

Resolution happens in three steps, each applied to the environment as soon as
it completes so a later failure never rolls back an earlier step:

1. the parameter store bundle named by ``ENVLOADER_PARAMETER_STORE``,
2. ``envloader-ssm:`` references (one variable per SSM parameter),
3. ``envloader-secretsmanager:`` references (each secret is a JSON object whose
   keys become variables).

A variable produced by more than one step keeps the value of the last step.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from .cache import CacheStore, FileCacheStore, parse_key_value_lines
from .classifier import classify
from .config import Settings, get_settings
from .env import EnvironmentSink, ProcessEnvironment
from .errors import MalformedCacheError, MalformedPayloadError
from .observability.logging import configure_logging
from .observability.metrics import LOAD_DURATION
from .secrets.base import ClientFactory, Reference, ReferenceKind, SecretFetcher
from .secrets.providers import BotoClientFactory, ParameterStoreFetcher, SecretsManagerFetcher

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class LoadResult:
    """Outcome of one resolution pass."""

    variables: list[str] = field(default_factory=list)
    backends_called: list[str] = field(default_factory=list)
    values: dict[str, str] = field(default_factory=dict, repr=False)

    @property
    def called_backend(self) -> bool:
        return bool(self.backends_called)


def _check_variable_name(identifier: str, name: Any) -> str:
    if not isinstance(name, str) or not name or "=" in name or "\0" in name:
        raise MalformedPayloadError(identifier, f"{name!r} is not a valid environment variable name")
    return name


def decode_secret_payload(identifier: str, payload: str) -> dict[str, str]:
    """Decode a Secrets Manager ``SecretString`` into variable assignments."""

    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise MalformedPayloadError(identifier, f"invalid JSON ({exc.msg})") from exc
    if not isinstance(data, dict):
        raise MalformedPayloadError(identifier, "expected a JSON object of key/value pairs")

    values: dict[str, str] = {}
    for key, value in data.items():
        name = _check_variable_name(identifier, key)
        if isinstance(value, str):
            values[name] = value
        elif isinstance(value, (bool, int, float)):
            values[name] = json.dumps(value)
        else:
            raise MalformedPayloadError(identifier, f"value of '{name}' is not a scalar")
    return values


def decode_parameter_store_payload(identifier: str, payload: str) -> dict[str, str]:
    """Expand a ``KEY=VALUE`` bundle stored in a single SSM parameter."""

    try:
        values = parse_key_value_lines(payload)
    except ValueError as exc:
        raise MalformedPayloadError(identifier, str(exc)) from exc
    for name in values:
        _check_variable_name(identifier, name)
    return values


class SecretEnvironmentLoader:
    """Replace secret references in the environment with their values."""

    def __init__(
        self,
        *,
        environment: EnvironmentSink | None = None,
        cache: CacheStore | None = None,
        parameter_fetcher: SecretFetcher | None = None,
        secret_fetcher: SecretFetcher | None = None,
        client_factory: ClientFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        if client_factory is None:
            client_factory = BotoClientFactory(region_name=settings.aws_region)
        self._environment = environment or ProcessEnvironment()
        self._cache = cache or FileCacheStore(settings.cache_dir)
        self._parameter_fetcher = parameter_fetcher or ParameterStoreFetcher(
            client_factory=client_factory
        )
        self._secret_fetcher = secret_fetcher or SecretsManagerFetcher(client_factory=client_factory)

    def load(self) -> LoadResult:
        with LOAD_DURATION.time():
            return self._load()

    def _load(self) -> LoadResult:
        references = classify(self._environment.snapshot())
        result = LoadResult()
        if not references:
            return result

        if references.parameter_store or references.parameters:
            self._parameter_fetcher.ensure_available()
        if references.secrets:
            self._secret_fetcher.ensure_available()

        if references.parameter_store:
            values, computed = self._resolve_parameter_store(references.parameter_store)
            self._apply(result, values, self._parameter_fetcher.backend if computed else None)
        if references.parameters:
            values, computed = self._resolve_parameters(references.parameters)
            self._apply(result, values, self._parameter_fetcher.backend if computed else None)
        if references.secrets:
            values, computed = self._resolve_secrets(references.secrets)
            self._apply(result, values, self._secret_fetcher.backend if computed else None)

        # Only log when the cache was empty: the function runtime may restart
        # the process on every invocation.
        if result.called_backend:
            logger.info(
                "Loaded these environment variables from %s: %s",
                " and ".join(result.backends_called),
                ", ".join(result.variables),
            )
        return result

    def _apply(self, result: LoadResult, values: Mapping[str, str], backend: str | None) -> None:
        self._environment.set_all(values)
        for name, value in values.items():
            if name not in result.values:
                result.variables.append(name)
            result.values[name] = value
        if backend and backend not in result.backends_called:
            result.backends_called.append(backend)

    def _resolve_parameter_store(self, reference: Reference) -> tuple[dict[str, str], bool]:
        identifier = reference.identifier

        def compute() -> dict[str, str]:
            payload = self._parameter_fetcher.fetch([identifier])[identifier]
            return decode_parameter_store_payload(identifier, payload)

        lookup = self._cache.read_or_compute(ReferenceKind.PARAMETER_STORE, compute)
        return lookup.values, lookup.computed

    def _resolve_parameters(self, references: list[Reference]) -> tuple[dict[str, str], bool]:
        identifiers = list(dict.fromkeys(ref.identifier for ref in references))
        lookup = self._cache.read_or_compute(
            ReferenceKind.PARAMETER, lambda: self._parameter_fetcher.fetch(identifiers)
        )
        self._check_complete(ReferenceKind.PARAMETER, identifiers, lookup.values)
        values = {ref.variable: lookup.values[ref.identifier] for ref in references}
        return values, lookup.computed

    def _resolve_secrets(self, references: list[Reference]) -> tuple[dict[str, str], bool]:
        identifiers = list(dict.fromkeys(ref.identifier for ref in references))
        lookup = self._cache.read_or_compute(
            ReferenceKind.SECRET, lambda: self._secret_fetcher.fetch(identifiers)
        )
        self._check_complete(ReferenceKind.SECRET, identifiers, lookup.values)
        values: dict[str, str] = {}
        for identifier in identifiers:
            values.update(decode_secret_payload(identifier, lookup.values[identifier]))
        return values, lookup.computed

    def _check_complete(
        self, kind: ReferenceKind, identifiers: list[str], values: Mapping[str, str]
    ) -> None:
        missing = [identifier for identifier in identifiers if identifier not in values]
        if missing:
            # Only reachable with a cached entry written for other references.
            raise MalformedCacheError(
                self._cache.path_for(kind), f"no cached value for {', '.join(missing)}"
            )


def load_secret_environment_variables(
    *,
    environment: EnvironmentSink | None = None,
    cache: CacheStore | None = None,
    parameter_fetcher: SecretFetcher | None = None,
    secret_fetcher: SecretFetcher | None = None,
    client_factory: ClientFactory | None = None,
    settings: Settings | None = None,
) -> LoadResult:
    """Resolve every secret reference in the process environment.

    Meant to be called once while the function initializes. The library
    logger is configured to write to stderr first.
    """

    settings = settings or get_settings()
    configure_logging(log_format=settings.log_format, level=settings.log_level.upper())
    loader = SecretEnvironmentLoader(
        environment=environment,
        cache=cache,
        parameter_fetcher=parameter_fetcher,
        secret_fetcher=secret_fetcher,
        client_factory=client_factory,
        settings=settings,
    )
    return loader.load()


__all__ = [
    "LoadResult",
    "SecretEnvironmentLoader",
    "decode_parameter_store_payload",
    "decode_secret_payload",
    "load_secret_environment_variables",
]

"""Fetchers retrieving values from AWS Systems Manager and Secrets Manager."""
from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

from botocore.exceptions import ClientError

from ..errors import ConfigurationError, NotFoundError, PermissionDeniedError
from ..observability.metrics import record_backend_call
from .base import ClientFactory, FailureKind, classify_client_error

logger = logging.getLogger(__name__)

# GetParameters rejects requests naming more than 10 parameters.
SSM_BATCH_SIZE = 10


class BotoClientFactory:
    """Create boto3 clients from a shared session."""

    def __init__(self, *, region_name: str | None = None, session: Any | None = None) -> None:
        self._region_name = region_name
        self._session = session

    @property
    def session(self) -> Any:
        if self._session is None:
            import boto3

            self._session = boto3.session.Session()
        return self._session

    def ensure_available(self, service_name: str) -> None:
        if service_name not in self.session.get_available_services():
            raise ConfigurationError(
                f"The installed botocore does not provide the '{service_name}' client; "
                "install a complete boto3 distribution to resolve these references"
            )

    def __call__(self, service_name: str) -> Any:
        return self.session.client(service_name, region_name=self._region_name)


def _unique(identifiers: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(identifiers))


def _chunks(items: list[str], size: int) -> Iterator[list[str]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class _ClientBackedFetcher:
    backend = ""
    service_name = ""

    def __init__(self, *, client: Any | None = None, client_factory: ClientFactory | None = None) -> None:
        self._client = client
        self._client_factory: ClientFactory = client_factory or BotoClientFactory()

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._client_factory(self.service_name)
        return self._client

    def ensure_available(self) -> None:
        if self._client is None:
            self._client_factory.ensure_available(self.service_name)


class ParameterStoreFetcher(_ClientBackedFetcher):
    """Resolve SSM parameters in batches, decrypting SecureString values."""

    backend = "SSM"
    service_name = "ssm"

    def fetch(self, identifiers: Iterable[str]) -> dict[str, str]:
        names = _unique(identifiers)
        values: dict[str, str] = {}
        not_found: list[str] = []

        for batch in _chunks(names, SSM_BATCH_SIZE):
            try:
                record_backend_call(self.service_name)
                response = self.client.get_parameters(Names=batch, WithDecryption=True)
            except ClientError as exc:
                failure = classify_client_error(exc)
                if failure.kind is FailureKind.PERMISSION_DENIED:
                    raise PermissionDeniedError(
                        self.backend,
                        failure.message,
                        action="ssm:GetParameters",
                        status_code=failure.status_code,
                    ) from exc
                raise

            found = self._match_requested(batch, response.get("Parameters", []))
            values.update(found)
            invalid = set(response.get("InvalidParameters", []))
            not_found.extend(name for name in batch if name in invalid or name not in found)

        if not_found:
            raise NotFoundError(self.backend, not_found)

        logger.debug("Fetched %d parameters from SSM", len(values))
        return values

    @staticmethod
    def _match_requested(batch: list[str], parameters: list[dict[str, Any]]) -> dict[str, str]:
        """Map returned parameters back to the names that were requested.

        SSM answers with the bare name even when a version selector or an ARN
        was requested.
        """

        requested = set(batch)
        found: dict[str, str] = {}
        for parameter in parameters:
            name = parameter.get("Name", "")
            candidates = (name, f"{name}{parameter.get('Selector') or ''}", parameter.get("ARN"))
            for candidate in candidates:
                if candidate in requested:
                    found[candidate] = parameter["Value"]
        return found


class SecretsManagerFetcher(_ClientBackedFetcher):
    """Resolve Secrets Manager secrets one at a time."""

    backend = "Secrets Manager"
    service_name = "secretsmanager"

    def fetch(self, identifiers: Iterable[str]) -> dict[str, str]:
        values: dict[str, str] = {}
        failures: dict[str, str] = {}

        for secret_id in _unique(identifiers):
            try:
                record_backend_call(self.service_name)
                response = self.client.get_secret_value(SecretId=secret_id)
            except ClientError as exc:
                failures[secret_id] = classify_client_error(exc).message
                continue
            secret_string = response.get("SecretString")
            if secret_string is None:
                failures[secret_id] = "the secret has no SecretString (binary secrets are not supported)"
                continue
            values[secret_id] = secret_string

        if failures:
            raise NotFoundError(self.backend, failures)

        logger.debug("Fetched %d secrets from Secrets Manager", len(values))
        return values


__all__ = [
    "SSM_BATCH_SIZE",
    "BotoClientFactory",
    "ParameterStoreFetcher",
    "SecretsManagerFetcher",
]

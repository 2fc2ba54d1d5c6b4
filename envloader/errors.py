"""Exceptions raised while resolving secret references."""
from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

PERMISSION_REMEDIATION = (
    "Unable to resolve secrets referenced in environment variables from {backend} "
    "because of a permissions issue with the {backend} API. Does the execution role "
    "allow the {action} action (and kms:Decrypt for encrypted values)?"
)


class SecretResolutionError(RuntimeError):
    """Base class for every resolution failure."""


class ConfigurationError(SecretResolutionError):
    """A backend client is not available in the running environment."""


class NotFoundError(SecretResolutionError):
    """One or more identifiers could not be retrieved from a backend."""

    def __init__(self, backend: str, missing: Iterable[str] | Mapping[str, str]) -> None:
        self.backend = backend
        if isinstance(missing, Mapping):
            self.missing = dict(missing)
            details = ", ".join(f"{name} ({reason})" for name, reason in self.missing.items())
        else:
            self.missing = {name: "not found" for name in missing}
            details = ", ".join(self.missing)
        super().__init__(f"The following {backend} identifiers could not be found: {details}")


class PermissionDeniedError(SecretResolutionError):
    """The backend refused the call; the message explains the usual fix."""

    def __init__(
        self,
        backend: str,
        original_message: str,
        *,
        action: str,
        status_code: int | None = None,
    ) -> None:
        self.backend = backend
        self.original_message = original_message
        self.status_code = status_code
        remediation = PERMISSION_REMEDIATION.format(backend=backend, action=action)
        super().__init__(f"{remediation}\nFull exception message: {original_message}")


class MalformedCacheError(SecretResolutionError):
    """An existing cache entry could not be parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            f"Cache entry {self.path} is malformed ({reason}); delete it to resolve secrets again"
        )


class MalformedPayloadError(SecretResolutionError):
    """A fetched value does not decode into variable assignments."""

    def __init__(self, identifier: str, reason: str) -> None:
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Unable to decode the value of '{identifier}': {reason}")


__all__ = [
    "PERMISSION_REMEDIATION",
    "ConfigurationError",
    "MalformedCacheError",
    "MalformedPayloadError",
    "NotFoundError",
    "PermissionDeniedError",
    "SecretResolutionError",
]

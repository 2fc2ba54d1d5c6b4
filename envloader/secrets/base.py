"""Common types shared by the classifier, the fetchers and the loader."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Protocol

from botocore.exceptions import ClientError


class ReferenceKind(str, Enum):
    """Backend kind a reference resolves through."""

    PARAMETER = "parameter"
    SECRET = "secret"
    PARAMETER_STORE = "parameter-store"


@dataclass(frozen=True, slots=True)
class Reference:
    """An environment variable pointing at a remote value."""

    variable: str
    kind: ReferenceKind
    identifier: str


@dataclass(slots=True)
class ClassifiedReferences:
    """References found in one environment snapshot, grouped by kind."""

    parameters: list[Reference] = field(default_factory=list)
    secrets: list[Reference] = field(default_factory=list)
    parameter_store: Reference | None = None

    def __bool__(self) -> bool:
        return bool(self.parameters or self.secrets or self.parameter_store)


class FailureKind(str, Enum):
    NOT_FOUND = "not-found"
    PERMISSION_DENIED = "permission-denied"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class BackendFailure:
    """Normalized view of a backend error."""

    kind: FailureKind
    message: str
    code: str | None = None
    status_code: int | None = None


_NOT_FOUND_CODES = frozenset(
    {"ParameterNotFound", "ParameterVersionNotFound", "ResourceNotFoundException"}
)
_PERMISSION_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "KMS.AccessDeniedException",
        "UnauthorizedOperation",
        "UnrecognizedClientException",
    }
)
# JSON protocol APIs answer these with a 400 as well.
_OTHER_CODES = frozenset(
    {
        "ThrottlingException",
        "ValidationException",
        "InvalidParameterException",
        "TooManyUpdates",
        "InternalServerError",
    }
)


def classify_client_error(exc: ClientError) -> BackendFailure:
    """Tag a botocore ``ClientError`` as not-found, permission denied or other.

    Known error codes win. An unknown code on a 400/403 answer is treated as a
    permission problem, which is how AWS reports IAM denials on these APIs.
    """

    error = exc.response.get("Error", {})
    code = error.get("Code")
    status_code = exc.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    message = str(exc)

    if code in _NOT_FOUND_CODES:
        kind = FailureKind.NOT_FOUND
    elif code in _OTHER_CODES:
        kind = FailureKind.OTHER
    elif code in _PERMISSION_CODES or status_code in (400, 403):
        kind = FailureKind.PERMISSION_DENIED
    else:
        kind = FailureKind.OTHER
    return BackendFailure(kind=kind, message=message, code=code, status_code=status_code)


class SecretFetcher(Protocol):
    """Interface implemented by every backend fetcher."""

    backend: str

    def fetch(self, identifiers: Iterable[str]) -> dict[str, str]:
        """Return a value for every identifier or raise.

        Partial results are never returned: a single missing identifier fails
        the whole call.
        """

    def ensure_available(self) -> None:
        """Raise ``ConfigurationError`` when the backend cannot be reached at all."""


class ClientFactory(Protocol):
    """Builds backend clients on demand."""

    def __call__(self, service_name: str) -> Any:
        ...

    def ensure_available(self, service_name: str) -> None:
        ...


__all__ = [
    "BackendFailure",
    "ClassifiedReferences",
    "ClientFactory",
    "FailureKind",
    "Reference",
    "ReferenceKind",
    "SecretFetcher",
    "classify_client_error",
]

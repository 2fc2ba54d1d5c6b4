"""Backend fetchers and the types they share."""
from __future__ import annotations

from .base import (
    BackendFailure,
    ClassifiedReferences,
    ClientFactory,
    FailureKind,
    Reference,
    ReferenceKind,
    SecretFetcher,
    classify_client_error,
)
from .providers import (
    SSM_BATCH_SIZE,
    BotoClientFactory,
    ParameterStoreFetcher,
    SecretsManagerFetcher,
)

__all__ = [
    "SSM_BATCH_SIZE",
    "BackendFailure",
    "BotoClientFactory",
    "ClassifiedReferences",
    "ClientFactory",
    "FailureKind",
    "ParameterStoreFetcher",
    "Reference",
    "ReferenceKind",
    "SecretFetcher",
    "SecretsManagerFetcher",
    "classify_client_error",
]
